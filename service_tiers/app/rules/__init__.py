"""
Tier rules package.

Defines the tier/entitlement model and the evaluation components used by
the engine. Everything is evaluated in memory against an immutable
``Ruleset`` snapshot compiled from a YAML document.

Modules of interest:
- models: Frozen data classes for tiers, features, priced items, decisions.
- registry / aliases: Canonical tier ordering and legacy tier names.
- normalizer: Total mapping of raw tier values onto canonical tiers.
- catalog / quotas: Feature, add-on, bundle and limit tables.
- engine: Access evaluation, including the preview override.
- partitioner: Strict available/locked split for priced items.
- ruleset / schema: Loading and validating the configuration.
- store: Atomic swapping of the active ruleset.
"""
