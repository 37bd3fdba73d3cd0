"""
Process-wide holder for the active ruleset.

Readers grab the current ``_Active`` reference without locking; reloads
build a complete replacement first and then swap the single reference, so
a reader sees either the whole old ruleset or the whole new one.
"""

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from .engine import AccessEvaluator
from .partitioner import CatalogPartitioner
from .ruleset import Ruleset, load_default_ruleset, load_ruleset


@dataclass(frozen=True)
class _Active:
    ruleset: Ruleset
    evaluator: AccessEvaluator
    partitioner: CatalogPartitioner


class RulesetStore:
    """Holds the active ruleset and the engine components bound to it."""

    def __init__(self, ruleset: Ruleset, metrics: Optional[MetricsCollector] = None):
        self.logger = get_logger("entitlements.store")
        self.metrics = metrics
        self._reload_lock = threading.Lock()
        self._active = self._activate(ruleset)

    def _activate(self, ruleset: Ruleset) -> _Active:
        evaluator = AccessEvaluator(ruleset, self.metrics)
        return _Active(
            ruleset=ruleset,
            evaluator=evaluator,
            partitioner=CatalogPartitioner(evaluator, self.metrics),
        )

    @property
    def ruleset(self) -> Ruleset:
        return self._active.ruleset

    @property
    def evaluator(self) -> AccessEvaluator:
        return self._active.evaluator

    @property
    def partitioner(self) -> CatalogPartitioner:
        return self._active.partitioner

    def snapshot(self) -> _Active:
        """Current ruleset with its evaluator and partitioner, as one value."""
        return self._active

    def swap(self, ruleset: Ruleset) -> Ruleset:
        """Install ``ruleset`` and return the one it replaced."""
        replacement = self._activate(ruleset)
        with self._reload_lock:
            previous = self._active
            self._active = replacement
        self.logger.info(
            "Ruleset swapped",
            previous_version=previous.ruleset.version,
            version=ruleset.version
        )
        return previous.ruleset

    def reload(self, path: Optional[Union[str, Path]] = None) -> Ruleset:
        """Load a ruleset from ``path`` (or the embedded default) and swap it in.

        On failure the active ruleset is left untouched and the error is
        re-raised.
        """
        try:
            ruleset = load_ruleset(path) if path else load_default_ruleset()
        except Exception as e:
            self.logger.error(
                "Ruleset reload failed",
                path=str(path) if path else None,
                error=str(e),
                active_version=self.ruleset.version
            )
            if self.metrics:
                self.metrics.record_reload("failed")
                self.metrics.record_error(type(e).__name__)
            raise

        self.swap(ruleset)
        if self.metrics:
            self.metrics.record_reload("success")
        return ruleset
