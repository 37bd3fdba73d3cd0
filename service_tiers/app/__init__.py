"""
Tier entitlements engine package.

Decides which features, marketplace add-ons and bundles an account's
subscription tier unlocks. It provides:

- app.api: Function-level API consumed by the serving/UI layer.
- app.rules: Tier model, normalizer, evaluator, partitioner and ruleset loading.
- app.data: The embedded default ruleset.

Guidelines:
- Evaluations are pure and in-memory; no I/O after startup.
- Unresolvable tiers bias toward denying access, never granting it.
- Preview grants are always flagged on the decision.
"""
