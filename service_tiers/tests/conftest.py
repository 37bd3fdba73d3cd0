"""
Shared fixtures for tier entitlements tests.
"""

import pytest
from prometheus_client import CollectorRegistry

from shared.metrics import MetricsCollector
from service_tiers.app.rules.engine import AccessEvaluator
from service_tiers.app.rules.partitioner import CatalogPartitioner
from service_tiers.app.rules.ruleset import build_ruleset, load_default_ruleset


def _scenario_document():
    return {
        "version": "test-1",
        "tiers": [
            {"name": "free", "display_name": "Free", "price": 0},
            {"name": "starter", "display_name": "Starter", "price": 19},
            {"name": "pro", "display_name": "Pro", "price": 49, "product_id": "prod_pro"},
            {"name": "elite", "display_name": "Elite", "price": 99},
        ],
        "aliases": {"build": "pro"},
        "features": [
            {"id": "dashboard", "required_tier": "free", "description": "Dashboard"},
            {
                "id": "reports",
                "required_tier": "pro",
                "description": "Reports",
                "upgrade_message": "Upgrade to Pro to unlock reports",
            },
            {"id": "vault", "required_tier": "elite", "description": "Vault"},
        ],
        "addons": [
            {
                "id": "cv_review",
                "name": "CV Review",
                "pricing_type": "one_time",
                "price": 49,
                "required_tier": "starter",
                "category": "cv",
            },
            {
                "id": "monitoring",
                "name": "Monitoring",
                "pricing_type": "recurring",
                "recurring_price": 10,
                "recurring_interval": "month",
                "required_tier": "elite",
                "category": "credit",
            },
        ],
        "bundles": [
            {
                "id": "cv_pack",
                "name": "CV Pack",
                "included_addon_ids": ["cv_review"],
                "original_price": 60,
                "bundle_price": 49,
                "savings": 11,
                "required_tier": "pro",
            },
        ],
        "quotas": {
            "cv_versions": {"free": 0, "starter": 1, "pro": 3, "elite": "unbounded"},
        },
    }


@pytest.fixture
def scenario_document():
    """Fresh, mutable ruleset document: free < starter < pro < elite, build -> pro."""
    return _scenario_document()


@pytest.fixture
def scenario_ruleset(scenario_document):
    return build_ruleset(scenario_document)


@pytest.fixture(scope="session")
def default_ruleset():
    return load_default_ruleset()


@pytest.fixture
def metrics_registry():
    return CollectorRegistry()


@pytest.fixture
def metrics(metrics_registry):
    return MetricsCollector("entitlements", registry=metrics_registry)


@pytest.fixture
def evaluator(scenario_ruleset, metrics):
    return AccessEvaluator(scenario_ruleset, metrics)


@pytest.fixture
def default_evaluator(default_ruleset):
    return AccessEvaluator(default_ruleset)


@pytest.fixture
def partitioner(evaluator, metrics):
    return CatalogPartitioner(evaluator, metrics)
