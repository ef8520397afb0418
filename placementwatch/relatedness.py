"""
Relatedness index: which organization names denote the same business.

Edges are grouped under a parent. Every member of a group (the parent and
all of its aliases/subsidiaries) counts as related to every other member, so
lookups succeed in either direction even though edges are stored parent-first.
Names with no distinguishing tokens are refused, so generic phrases such as
"vision center" can never link unrelated practices.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from .database import RelationshipLedger
from .logger import get_logger
from .normalize import has_identity, normalize_organization_name
from .vocab import MANUAL_RELATIONSHIPS

logger = get_logger()

MANUAL = "manual"
AUTO_DISCOVERED = "auto_discovered"
ORIGINS = (MANUAL, AUTO_DISCOVERED)


@dataclass
class RelatednessResult:
    match: bool
    reason: str
    via: Optional[str] = None


class RelatednessIndex:
    def __init__(
        self,
        seed: Optional[Dict[str, List[str]]] = None,
        ledger: Optional[RelationshipLedger] = None,
    ):
        """
        Args:
            seed: Built-in parent -> aliases table registered as manual edges
                (defaults to the eye-care chains in vocab). Not persisted.
            ledger: Optional SQLite ledger; edges added at runtime are
                written to it and reloaded on start.
        """
        self.ledger = ledger
        self._groups: Dict[str, Dict[str, List[str]]] = {origin: {} for origin in ORIGINS}
        self._names: Dict[str, str] = {}
        self.refused: List[str] = []

        for parent, aliases in (MANUAL_RELATIONSHIPS if seed is None else seed).items():
            for alias in aliases:
                self._register(parent, alias, MANUAL, persist=False)

        if ledger is not None:
            for edge in ledger.load():
                self._register(edge.parent_name, edge.alias_name, edge.origin, persist=False)

    def add_edge(self, parent: str, alias: str, origin: str = MANUAL) -> bool:
        """
        Declare `alias` as the same entity as, or a subsidiary of, `parent`.

        Returns True if a new edge was registered; False if it already
        existed or was refused for lack of distinguishing tokens.
        """
        return self._register(parent, alias, origin, persist=True)

    def _register(self, parent: str, alias: str, origin: str, persist: bool) -> bool:
        if origin not in ORIGINS:
            raise ValueError(f"Unknown relationship origin: {origin}")

        parent_key = normalize_organization_name(parent)
        alias_key = normalize_organization_name(alias)

        for raw, key in ((parent, parent_key), (alias, alias_key)):
            if not has_identity(key):
                self.refused.append(raw)
                logger.debug("Refusing generic organization name", name=raw, origin=origin)
                return False

        self._names.setdefault(parent_key, parent.strip())
        self._names.setdefault(alias_key, alias.strip())
        aliases = self._groups[origin].setdefault(parent_key, [])
        if alias_key == parent_key or alias_key in aliases:
            return False
        aliases.append(alias_key)

        if persist and self.ledger is not None:
            try:
                self.ledger.record(parent_key, parent.strip(), alias_key, alias.strip(), origin)
            except SQLAlchemyError as e:
                logger.error("Could not persist relationship", parent=parent, alias=alias, error=str(e))

        if persist:
            logger.info("Relationship added", parent=parent_key, alias=alias_key, origin=origin)
        return True

    def _groups_containing(self, key: str) -> List[str]:
        parents = []
        for groups in self._groups.values():
            for parent_key, aliases in groups.items():
                if key == parent_key or key in aliases:
                    parents.append(parent_key)
        return parents

    def _members(self, parent_key: str) -> List[str]:
        members = [parent_key]
        for groups in self._groups.values():
            members.extend(groups.get(parent_key, []))
        return members

    def aliases_for(self, name: str) -> List[str]:
        """Normalized names considered the same business as `name`, itself first."""
        key = normalize_organization_name(name)
        if not has_identity(key):
            return []
        names = [key]
        for parent_key in self._groups_containing(key):
            for member in self._members(parent_key):
                if member not in names:
                    names.append(member)
        return names

    def are_related(self, org_a: str, org_b: str) -> RelatednessResult:
        key_a = normalize_organization_name(org_a)
        key_b = normalize_organization_name(org_b)

        if not key_a or not key_b:
            return RelatednessResult(False, "empty organization name")
        if not has_identity(key_a) or not has_identity(key_b):
            return RelatednessResult(False, "generic organization name with no distinguishing words")
        if key_a == key_b:
            return RelatednessResult(True, f'same organization ("{key_a}")')

        for parent_key in self._groups_containing(key_a):
            if key_b in self._members(parent_key):
                parent = self._names.get(parent_key, parent_key)
                return RelatednessResult(
                    True,
                    f'"{org_a}" and "{org_b}" are related through {parent}',
                    via=parent_key,
                )
        return RelatednessResult(False, "no known relationship")

    def all_edges(self) -> Dict[str, Dict[str, List[str]]]:
        """Edges grouped by origin: {"manual": {...}, "auto_discovered": {...}}."""
        return {origin: {k: list(v) for k, v in groups.items()} for origin, groups in self._groups.items()}

    def edge_count(self) -> int:
        return sum(len(v) for groups in self._groups.values() for v in groups.values())
