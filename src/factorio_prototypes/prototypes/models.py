"""
Data models for prototype loading.

Contains the value tree produced by mod scripts, the base classes for typed
prototype instances and the small value types stored inside them (weak
references, localised strings, resource records).
"""

import re
from dataclasses import dataclass, fields
from enum import Enum
from typing import (
    Any,
    ClassVar,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Tuple,
    TypeAlias,
    Union,
    cast,
)

# =============================================================================
# Value tree
# =============================================================================

LuaKey: TypeAlias = Union[str, int]
"""Table keys produced by the scripting environment."""

LuaValue: TypeAlias = Union[None, bool, int, float, str, "LuaTable"]
"""A single value tree node (nil, boolean, integer, float, string or table)."""


class LuaTable:
    """Ordered sequence of (key, value) pairs.

    Insertion order is preserved so the same type serves both map-like and
    array-like tables. Keys may repeat; lookups return the first entry and
    `duplicate_keys` reports the repeats for callers that need uniqueness.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[Tuple[LuaKey, LuaValue]] = ()):
        self._entries: List[Tuple[LuaKey, LuaValue]] = []
        for key, value in entries:
            if isinstance(key, bool) or not isinstance(key, (str, int)):
                raise TypeError(f"Table keys must be strings or integers, got {key!r}")
            self._entries.append((key, value))

    @classmethod
    def from_mapping(cls, mapping: Mapping[LuaKey, LuaValue]) -> "LuaTable":
        return cls(mapping.items())

    @classmethod
    def from_sequence(cls, values: Iterable[LuaValue]) -> "LuaTable":
        """Build an array-like table with keys 1..n."""
        return cls((index, value) for index, value in enumerate(values, start=1))

    def entries(self) -> List[Tuple[LuaKey, LuaValue]]:
        return list(self._entries)

    def keys(self) -> List[LuaKey]:
        return [key for key, _ in self._entries]

    def values(self) -> List[LuaValue]:
        return [value for _, value in self._entries]

    def get(self, key: LuaKey, default: LuaValue = None) -> LuaValue:
        for entry_key, value in self._entries:
            if entry_key == key and type(entry_key) is type(key):
                return value
        return default

    def __getitem__(self, key: LuaKey) -> LuaValue:
        for entry_key, value in self._entries:
            if entry_key == key and type(entry_key) is type(key):
                return value
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        return any(
            entry_key == key and type(entry_key) is type(key)
            for entry_key, _ in self._entries
        )

    def __iter__(self) -> Iterator[Tuple[LuaKey, LuaValue]]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LuaTable):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"LuaTable({self._entries!r})"

    def duplicate_keys(self) -> List[LuaKey]:
        """Return keys that occur more than once, in first-repeat order."""
        seen: set[Tuple[type, LuaKey]] = set()
        repeated: List[LuaKey] = []
        for key, _ in self._entries:
            marker = (type(key), key)
            if marker in seen and key not in repeated:
                repeated.append(key)
            seen.add(marker)
        return repeated

    def is_array(self) -> bool:
        """True if keys are exactly 1..n (in any order). Empty tables count."""
        keys = self.keys()
        if any(isinstance(key, str) for key in keys):
            return False
        return sorted(cast(List[int], keys)) == list(range(1, len(keys) + 1))

    def array_values(self) -> List[LuaValue]:
        """Values of an array-like table ordered by key."""
        ordered = sorted(self._entries, key=lambda entry: cast(int, entry[0]))
        return [value for _, value in ordered]

    def to_python(self) -> Union[Dict[LuaKey, Any], List[Any]]:
        """Plain dict/list rendition, mainly for diagnostics."""
        if self._entries and self.is_array():
            return [to_python(value) for value in self.array_values()]
        return {key: to_python(value) for key, value in self._entries}


def lua_type_name(value: LuaValue) -> str:
    """Name of a value tree node type, as used in error messages."""
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "float"
    if isinstance(value, str):
        return "string"
    if isinstance(value, LuaTable):
        return "table"
    return type(value).__name__


def to_value_tree(obj: Any) -> LuaValue:
    """Convert decoded JSON data (dicts, lists, scalars) into a value tree.

    Lists become array tables keyed 1..n.

    Raises:
        TypeError: If obj contains values a script could not have produced
    """
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, LuaTable):
        return obj
    if isinstance(obj, dict):
        return LuaTable(
            (key, to_value_tree(value))
            for key, value in cast(Dict[Any, Any], obj).items()
        )
    if isinstance(obj, (list, tuple)):
        return LuaTable.from_sequence(to_value_tree(value) for value in cast(List[Any], obj))
    raise TypeError(f"Cannot represent {type(obj).__name__} in a value tree")


def to_python(value: LuaValue) -> Any:
    if isinstance(value, LuaTable):
        return value.to_python()
    return value


# =============================================================================
# Typed values
# =============================================================================

@dataclass(frozen=True)
class PrototypeRef:
    """Weak reference to another prototype, stored by name.

    `kinds` lists the accepted target kinds; abstract kinds stand for all of
    their descendants. Resolution only ever happens by DataTable lookup.
    """
    kinds: Tuple[str, ...]
    name: str

    def __str__(self) -> str:
        return self.name


class ResourceType(Enum):
    """Kind of external file a prototype points at."""
    IMAGE = "image"
    SOUND = "sound"
    OTHER = "other"


@dataclass(frozen=True)
class ResourceRecord:
    """A file referenced by a prototype (sprite sheet, sound, ...)."""
    path: str
    resource_type: ResourceType
    min_width: int = 0
    min_height: int = 0
    kind: str = ""
    prototype_name: str = ""
    mod: str = ""

    def bound_to(self, kind: str, name: str, mod: str) -> "ResourceRecord":
        return ResourceRecord(
            path=self.path,
            resource_type=self.resource_type,
            min_width=self.min_width,
            min_height=self.min_height,
            kind=kind,
            prototype_name=name,
            mod=mod,
        )


_LOCALE_PARAMETER = re.compile(r"__(\d+)__")


@dataclass(frozen=True)
class LocalisedString:
    """Localised text: a locale key plus parameters.

    `key` None means a literal string (the single parameter), an empty key
    concatenates the parameters.
    """
    key: Optional[str]
    parameters: Tuple[Union[str, "LocalisedString"], ...] = ()

    def render(self, locale: Mapping[str, str]) -> str:
        """Render against locale data, falling back to the key itself."""
        if self.key is None:
            return "".join(_render_parameter(p, locale) for p in self.parameters)
        if self.key == "":
            return "".join(_render_parameter(p, locale) for p in self.parameters)
        template = locale.get(self.key)
        if template is None:
            return self.key
        rendered = [_render_parameter(p, locale) for p in self.parameters]

        def substitute(match: "re.Match[str]") -> str:
            index = int(match.group(1)) - 1
            if 0 <= index < len(rendered):
                return rendered[index]
            return match.group(0)

        return _LOCALE_PARAMETER.sub(substitute, template)


def _render_parameter(parameter: Union[str, LocalisedString], locale: Mapping[str, str]) -> str:
    if isinstance(parameter, LocalisedString):
        return parameter.render(locale)
    return parameter


@dataclass(frozen=True)
class StructValue:
    """Base class of generated nested-structure dataclasses."""

    structure: ClassVar[str] = "struct"

    def as_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class Prototype:
    """Base class of generated prototype dataclasses.

    Every concrete kind gets its own frozen subclass at registry construction,
    carrying the flattened fields of its whole ancestor chain.
    """
    name: str

    kind: ClassVar[str] = "prototype-base"

    def field_values(self) -> Dict[str, Any]:
        """All fields except `name`, in declaration order."""
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name != "name"}
