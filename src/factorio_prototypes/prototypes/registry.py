"""
Type registry for prototype kinds.

The registry is the closed catalogue of kinds known to the loader. Each kind
names a parent, and the chain of parents ends at the single root kind
`prototype-base`. At construction the registry flattens every chain into one
descriptor tuple per kind (slices of a shared descriptor arena) and generates
the frozen dataclass used for instances of each concrete kind. All
consistency checks run here, so a broken catalogue fails at start-up instead
of during loading.
"""

import logging
from dataclasses import dataclass, field, make_dataclass
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Type

from .errors import FieldCollision, RegistryError, UnknownPrototypeType
from .fields import Check, Field, Reference, camel_case
from .models import Prototype

logger = logging.getLogger(__name__)

ROOT_KIND = "prototype-base"
RESERVED_ATTRIBUTES = frozenset({"kind", "field_values"})


@dataclass(frozen=True)
class KindSpec:
    """Declaration of one prototype kind.

    Attributes:
        name: Kind string as used in the data table (`assembling-machine`)
        parent: Parent kind, None only for the root kind
        fields: Fields this kind adds to those of its ancestors
        abstract: Abstract kinds cannot be instantiated; they group
                  descendants for inheritance and reference targets
        checks: Cross-field checks run after all fields are converted
        doc: Short description
    """
    name: str
    parent: Optional[str]
    fields: Tuple[Field, ...] = ()
    abstract: bool = False
    checks: Tuple[Check, ...] = ()
    doc: str = ""


@dataclass(frozen=True)
class _Layout:
    """Flattened layout of one kind: a slice list into the descriptor arena."""
    ancestors: Tuple[str, ...]
    slices: Tuple[Tuple[int, int], ...]
    checks: Tuple[Check, ...] = field(default=())


class TypeRegistry:
    """Closed catalogue of prototype kinds with flattened field layouts.

    Args:
        specs: Kind declarations, including the root kind

    Raises:
        RegistryError: On duplicate kinds, unknown parents, cycles, missing
            root or references to unknown kinds
        FieldCollision: When two kinds of one chain declare the same field
    """

    def __init__(self, specs: Iterable[KindSpec]):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

        self._specs: Dict[str, KindSpec] = {}
        for spec in specs:
            if spec.name in self._specs:
                raise RegistryError(f"Prototype kind '{spec.name}' is declared twice")
            self._specs[spec.name] = spec

        if ROOT_KIND not in self._specs:
            raise RegistryError(f"Root kind '{ROOT_KIND}' is not declared")
        if self._specs[ROOT_KIND].parent is not None:
            raise RegistryError(f"Root kind '{ROOT_KIND}' cannot have a parent")

        # Descriptor arena: every kind's own fields stored once, back to back
        self._arena: List[Field] = []
        self._own_slice: Dict[str, Tuple[int, int]] = {}
        for spec in self._specs.values():
            start = len(self._arena)
            self._arena.extend(spec.fields)
            self._own_slice[spec.name] = (start, len(self._arena))

        self._layouts: Dict[str, _Layout] = {}
        self._children: Dict[str, List[str]] = {name: [] for name in self._specs}
        for spec in self._specs.values():
            self._layouts[spec.name] = self._build_layout(spec.name)
            if spec.parent is not None:
                self._children[spec.parent].append(spec.name)

        self._descriptors: Dict[str, Tuple[Field, ...]] = {
            name: self._collect(name) for name in self._specs
        }
        self._check_references()

        self._classes: Dict[str, Type[Prototype]] = {
            name: self._make_class(name)
            for name, spec in self._specs.items()
            if not spec.abstract
        }

        self.logger.debug(
            f"Type registry built: {len(self._specs)} kinds, "
            f"{len(self._classes)} concrete, {len(self._arena)} field descriptors"
        )

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def _build_layout(self, kind: str) -> _Layout:
        chain: List[str] = []
        current: Optional[str] = kind
        while current is not None:
            if current in chain:
                cycle = " -> ".join(reversed(chain + [current]))
                raise RegistryError(f"Inheritance cycle: {cycle}")
            spec = self._specs.get(current)
            if spec is None:
                raise RegistryError(
                    f"Kind '{chain[-1]}' names unknown parent '{current}'"
                )
            chain.append(current)
            current = spec.parent

        ancestors = tuple(reversed(chain))
        if ancestors[0] != ROOT_KIND:
            raise RegistryError(f"Kind '{kind}' does not descend from '{ROOT_KIND}'")

        owners: Dict[str, str] = {"name": ROOT_KIND}
        checks: List[Check] = []
        for ancestor in ancestors:
            spec = self._specs[ancestor]
            for descriptor in spec.fields:
                owner = owners.get(descriptor.name)
                if descriptor.attr in RESERVED_ATTRIBUTES:
                    raise RegistryError(
                        f"Kind '{ancestor}' declares reserved field '{descriptor.name}'"
                    )
                if owner is not None:
                    raise FieldCollision(kind, descriptor.name, owner, ancestor)
                owners[descriptor.name] = ancestor
            checks.extend(spec.checks)

        return _Layout(
            ancestors=ancestors,
            slices=tuple(self._own_slice[ancestor] for ancestor in ancestors),
            checks=tuple(checks),
        )

    def _collect(self, kind: str) -> Tuple[Field, ...]:
        collected: List[Field] = []
        for start, end in self._layouts[kind].slices:
            collected.extend(self._arena[start:end])
        return tuple(collected)

    def _check_references(self) -> None:
        for descriptor in self._arena:
            for nested in descriptor.field_type.walk():
                if not isinstance(nested, Reference):
                    continue
                for target in nested.kinds:
                    if target not in self._specs:
                        raise RegistryError(
                            f"Field '{descriptor.name}' references unknown kind '{target}'"
                        )

    def _make_class(self, kind: str) -> Type[Prototype]:
        attributes: List[Any] = [
            (descriptor.attr, Any) for descriptor in self._descriptors[kind]
        ]
        return make_dataclass(
            camel_case(kind),
            attributes,
            bases=(Prototype,),
            frozen=True,
            namespace={"kind": kind},
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __contains__(self, kind: object) -> bool:
        return kind in self._specs

    def __len__(self) -> int:
        return len(self._specs)

    def kinds(self) -> List[str]:
        """All kind names in declaration order."""
        return list(self._specs)

    def concrete_kinds(self) -> List[str]:
        return [name for name, spec in self._specs.items() if not spec.abstract]

    def spec(self, kind: str) -> KindSpec:
        """Declaration of a kind.

        Raises:
            UnknownPrototypeType: If the kind is not part of the catalogue
        """
        spec = self._specs.get(kind)
        if spec is None:
            raise UnknownPrototypeType(kind)
        return spec

    def is_abstract(self, kind: str) -> bool:
        return self.spec(kind).abstract

    def ancestors(self, kind: str) -> Tuple[str, ...]:
        """Ancestor chain from the root kind to `kind` itself."""
        self.spec(kind)
        return self._layouts[kind].ancestors

    def descriptors(self, kind: str) -> Tuple[Field, ...]:
        """Concatenated field descriptors of the kind's whole chain, root first."""
        self.spec(kind)
        return self._descriptors[kind]

    def checks(self, kind: str) -> Tuple[Check, ...]:
        self.spec(kind)
        return self._layouts[kind].checks

    def is_subkind(self, kind: str, ancestor: str) -> bool:
        return ancestor in self.ancestors(kind)

    def descendants(self, kind: str) -> List[str]:
        """Concrete kinds at or below `kind`, in declaration order."""
        self.spec(kind)
        found: List[str] = []
        pending = [kind]
        while pending:
            current = pending.pop(0)
            if not self._specs[current].abstract:
                found.append(current)
            pending.extend(self._children[current])
        order = {name: index for index, name in enumerate(self._specs)}
        return sorted(found, key=order.__getitem__)

    def expand(self, kinds: Sequence[str]) -> Tuple[str, ...]:
        """Replace every kind by its concrete descendants, keeping order."""
        expanded: List[str] = []
        for kind in kinds:
            for concrete in self.descendants(kind):
                if concrete not in expanded:
                    expanded.append(concrete)
        return tuple(expanded)

    def instance_class(self, kind: str) -> Type[Prototype]:
        """Generated dataclass for a concrete kind.

        Raises:
            UnknownPrototypeType: If the kind is unknown or abstract
        """
        self.spec(kind)
        cls = self._classes.get(kind)
        if cls is None:
            raise UnknownPrototypeType(kind)
        return cls


@lru_cache(maxsize=1)
def default_registry() -> TypeRegistry:
    """Registry holding the shipped kind catalogue (built once)."""
    from .schemas import KIND_SPECS

    return TypeRegistry(KIND_SPECS)
