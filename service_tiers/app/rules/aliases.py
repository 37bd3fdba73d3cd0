"""
Legacy tier alias table.
"""

from typing import Dict, Iterator, Mapping, Optional

from shared.errors import RulesetError
from .models import Tier, TierAlias
from .registry import TierRegistry


class AliasTable:
    """Case-insensitive map of legacy tier names onto canonical tiers."""

    def __init__(self, registry: TierRegistry, aliases: Mapping[str, str]):
        self._aliases: Dict[str, TierAlias] = {}

        for raw_alias, target in aliases.items():
            alias = raw_alias.strip().lower()
            if not alias:
                raise RulesetError("Empty tier alias")
            if alias in registry:
                raise RulesetError(
                    "Alias shadows a canonical tier name",
                    {"alias": alias}
                )
            if alias in self._aliases:
                raise RulesetError("Duplicate tier alias", {"alias": alias})

            tier = registry.find(target.strip().lower())
            if tier is None:
                raise RulesetError(
                    "Alias points at an unknown tier",
                    {"alias": alias, "tier": target}
                )
            self._aliases[alias] = TierAlias(alias=alias, tier=tier)

    def __iter__(self) -> Iterator[TierAlias]:
        return iter(self._aliases.values())

    def __len__(self) -> int:
        return len(self._aliases)

    def lookup(self, alias: str) -> Optional[Tier]:
        entry = self._aliases.get(alias.strip().lower())
        return entry.tier if entry else None

    def as_dict(self) -> Dict[str, str]:
        return {a.alias: a.tier.name for a in self._aliases.values()}
