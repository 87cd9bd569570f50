"""
DataTable: the catalogue of converted prototypes.

Holds at most one instance per (kind, name). Names are unique only within a
kind. A second insert of the same key replaces the stored instance and hands
back the displaced one, unless the override policy forbids replacing that
kind in the current phase. Once frozen the table is read-only and may be
shared between threads without locking.
"""

import logging
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from .errors import DataTableError, OverrideNotAllowed, TableFrozen
from .models import Prototype, ResourceRecord
from .policy import LoadPhase, OverridePolicy

PrototypeKey = Tuple[str, str]


class DataTable:
    """Prototype instances keyed by (kind, name).

    Maintains three indices:
    - entries: kind -> name -> instance, in first-insertion order
    - origins: (kind, name) -> mod that supplied the current instance
    - resources: (kind, name) -> files the current instance refers to

    Args:
        policy: Override policy; the default forbids nothing
    """

    def __init__(self, policy: Optional[OverridePolicy] = None):
        self.policy = policy or OverridePolicy()
        self._entries: Dict[str, Dict[str, Prototype]] = {}
        self._origins: Dict[PrototypeKey, str] = {}
        self._resources: Dict[PrototypeKey, Tuple[ResourceRecord, ...]] = {}
        self._mods: List[str] = []
        self._frozen = False
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def insert(
        self,
        kind: str,
        name: str,
        instance: Prototype,
        phase: Optional[LoadPhase] = None,
        mod: str = "",
        resources: Sequence[ResourceRecord] = (),
    ) -> Optional[Prototype]:
        """Store an instance, replacing any existing one at (kind, name).

        Args:
            kind: Prototype kind
            name: Prototype name
            instance: Converted instance of that kind and name
            phase: Load phase the instance comes from (for the override policy)
            mod: Mod supplying the instance
            resources: Files the instance refers to

        Returns:
            The displaced instance, or None if the key was free

        Raises:
            TableFrozen: If the table has been frozen
            OverrideNotAllowed: If the key is taken and the policy forbids
                replacing this kind in this phase
            DataTableError: If the instance does not match kind and name
        """
        if self._frozen:
            raise TableFrozen(kind, name)
        if instance.kind != kind or instance.name != name:
            raise DataTableError(
                f"Instance {instance.kind} '{instance.name}' cannot be stored as {kind} '{name}'"
            )

        by_name = self._entries.get(kind)
        previous = by_name.get(name) if by_name is not None else None
        if previous is not None and not self.policy.allows_override(kind, phase):
            raise OverrideNotAllowed(kind, name, phase.value if phase else None)

        if by_name is None:
            by_name = self._entries[kind] = {}
        by_name[name] = instance
        self._origins[(kind, name)] = mod
        self._resources[(kind, name)] = tuple(resources)
        if mod and mod not in self._mods:
            self._mods.append(mod)

        if previous is not None:
            self.logger.debug(f"{kind} '{name}' replaced by mod '{mod}'")
        return previous

    def freeze(self) -> None:
        """Make the table read-only. Freezing twice is harmless."""
        if not self._frozen:
            self._frozen = True
            self.logger.debug(f"DataTable frozen with {len(self)} prototypes")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, kind: str, name: str) -> Optional[Prototype]:
        by_name = self._entries.get(kind)
        if by_name is None:
            return None
        return by_name.get(name)

    def find(self, kind: str, name: str) -> Prototype:
        """Like get, but raises KeyError when the prototype is missing."""
        instance = self.get(kind, name)
        if instance is None:
            raise KeyError((kind, name))
        return instance

    def find_any(self, kinds: Sequence[str], name: str) -> Optional[Prototype]:
        """First instance named `name` among several concrete kinds."""
        for kind in kinds:
            instance = self.get(kind, name)
            if instance is not None:
                return instance
        return None

    def contains(self, kind: str, name: str) -> bool:
        return self.get(kind, name) is not None

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        return self.contains(key[0], key[1])

    def kinds(self) -> List[str]:
        """Kinds holding at least one instance, in first-insertion order."""
        return [kind for kind, by_name in self._entries.items() if by_name]

    def prototypes(self, kind: str) -> Mapping[str, Prototype]:
        """Read-only name -> instance mapping of one kind."""
        return MappingProxyType(self._entries.get(kind, {}))

    def __iter__(self) -> Iterator[Prototype]:
        for by_name in self._entries.values():
            yield from by_name.values()

    def __len__(self) -> int:
        return sum(len(by_name) for by_name in self._entries.values())

    def origin(self, kind: str, name: str) -> Optional[str]:
        """Mod that supplied the current instance at (kind, name)."""
        return self._origins.get((kind, name))

    @property
    def mods(self) -> List[str]:
        """Mods that inserted at least one instance, in order of first insert."""
        return self._mods.copy()

    def resources(self) -> List[ResourceRecord]:
        """Files referenced by the instances currently stored, in table order."""
        records: List[ResourceRecord] = []
        for kind, by_name in self._entries.items():
            for name in by_name:
                records.extend(self._resources.get((kind, name), ()))
        return records

    def view(self) -> "DataTableView":
        return DataTableView(self)


class DataTableView:
    """Read-only window onto a DataTable, handed to conversion contexts."""

    __slots__ = ("_table",)

    def __init__(self, table: DataTable):
        self._table = table

    @property
    def frozen(self) -> bool:
        return self._table.frozen

    def get(self, kind: str, name: str) -> Optional[Prototype]:
        return self._table.get(kind, name)

    def find(self, kind: str, name: str) -> Prototype:
        return self._table.find(kind, name)

    def find_any(self, kinds: Sequence[str], name: str) -> Optional[Prototype]:
        return self._table.find_any(kinds, name)

    def contains(self, kind: str, name: str) -> bool:
        return self._table.contains(kind, name)

    def kinds(self) -> List[str]:
        return self._table.kinds()

    def prototypes(self, kind: str) -> Mapping[str, Prototype]:
        return self._table.prototypes(kind)

    def origin(self, kind: str, name: str) -> Optional[str]:
        return self._table.origin(kind, name)

    def __iter__(self) -> Iterator[Prototype]:
        return iter(self._table)

    def __len__(self) -> int:
        return len(self._table)
