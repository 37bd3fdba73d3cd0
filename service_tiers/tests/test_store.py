"""
Unit tests for RulesetStore swapping and hot reload.
"""

import threading

import pytest
import yaml

from shared.errors import RulesetError
from service_tiers.app.rules.ruleset import build_ruleset
from service_tiers.app.rules.store import RulesetStore


class TestRulesetStore:
    """Test cases for RulesetStore."""

    @pytest.fixture
    def store(self, scenario_ruleset, metrics):
        return RulesetStore(scenario_ruleset, metrics)

    @pytest.fixture
    def stricter_document(self, scenario_document):
        """Same tiers, but reports now needs elite."""
        scenario_document["version"] = "test-2"
        scenario_document["features"][1]["required_tier"] = "elite"
        return scenario_document

    def test_components_bound_to_ruleset(self, store, scenario_ruleset):
        active = store.snapshot()

        assert active.ruleset is scenario_ruleset
        assert active.evaluator.ruleset is scenario_ruleset
        assert active.partitioner.evaluator is active.evaluator

    def test_swap_returns_previous(self, store, scenario_ruleset, stricter_document):
        stricter = build_ruleset(stricter_document)

        previous = store.swap(stricter)

        assert previous is scenario_ruleset
        assert store.ruleset is stricter
        assert store.evaluator.has_access("pro", "reports").granted is False

    def test_old_evaluator_keeps_old_rules(self, store, stricter_document):
        """A reader holding the old snapshot is unaffected by the swap."""
        old_evaluator = store.evaluator

        store.swap(build_ruleset(stricter_document))

        assert old_evaluator.has_access("pro", "reports").granted is True
        assert store.evaluator.has_access("pro", "reports").granted is False

    def test_reload_from_file(self, store, stricter_document, tmp_path, metrics_registry):
        path = tmp_path / "ruleset.yaml"
        path.write_text(yaml.safe_dump(stricter_document), encoding="utf-8")

        ruleset = store.reload(path)

        assert ruleset.version == "test-2"
        assert store.ruleset is ruleset
        assert metrics_registry.get_sample_value(
            "ruleset_reloads_total", {"status": "success"}
        ) == 1

    def test_reload_default(self, store):
        ruleset = store.reload()

        assert store.ruleset is ruleset
        assert "digital_cv_viewer" in ruleset.features

    def test_failed_reload_keeps_active_ruleset(self, store, scenario_ruleset, scenario_document, tmp_path, metrics_registry):
        scenario_document["aliases"]["pro"] = "elite"
        path = tmp_path / "broken.yaml"
        path.write_text(yaml.safe_dump(scenario_document), encoding="utf-8")

        with pytest.raises(RulesetError):
            store.reload(path)

        assert store.ruleset is scenario_ruleset
        assert metrics_registry.get_sample_value(
            "ruleset_reloads_total", {"status": "failed"}
        ) == 1
        assert metrics_registry.get_sample_value(
            "errors_total", {"error_type": "RulesetError", "service": "entitlements"}
        ) == 1

    def test_readers_never_see_a_mixed_snapshot(self, store, scenario_ruleset, stricter_document):
        """Concurrent swaps and reads: every read sees one whole ruleset."""
        stricter = build_ruleset(stricter_document)
        expected = {"test-1": True, "test-2": False}
        failures = []
        stop = threading.Event()

        def reader():
            while not stop.is_set():
                active = store.snapshot()
                if active.evaluator.ruleset is not active.ruleset:
                    failures.append("evaluator/ruleset mismatch")
                granted = active.evaluator.has_access("pro", "reports").granted
                if granted != expected[active.ruleset.version]:
                    failures.append(f"{active.ruleset.version}: granted={granted}")

        threads = [threading.Thread(target=reader) for _ in range(4)]
        for thread in threads:
            thread.start()
        try:
            for i in range(200):
                store.swap(stricter if i % 2 == 0 else scenario_ruleset)
        finally:
            stop.set()
            for thread in threads:
                thread.join()

        assert failures == []
