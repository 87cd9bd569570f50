"""
Field descriptors and field types for the conversion engine.

A schema is a sequence of Field descriptors. Each descriptor names the key in
the source table, the FieldType that converts the raw value tree node, and the
declared default (or REQUIRED). Field types report failures with the full
field path they were handed, so errors raised deep inside nested structures
already name e.g. `graphics_set.animation.layers[2].filename`.
"""

import keyword
import logging
from dataclasses import dataclass, make_dataclass
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
)

from .errors import (
    ConversionError,
    FieldPath,
    InvalidFieldValue,
    MissingRequiredField,
    NestedConversionFailure,
    RegistryError,
    UnexpectedFieldType,
    UnknownEnumVariant,
    DuplicateKeyInTable,
)
from .models import (
    LocalisedString,
    LuaTable,
    LuaValue,
    PrototypeRef,
    ResourceRecord,
    ResourceType,
    StructValue,
    lua_type_name,
)

if TYPE_CHECKING:
    from .conversion import ConversionContext

logger = logging.getLogger(__name__)


class _Required:
    def __repr__(self) -> str:
        return "REQUIRED"


REQUIRED: Any = _Required()
"""Marker default for fields that must be present in the source table."""

Check = Callable[[Mapping[str, Any]], Optional[str]]
"""Cross-field check: receives converted values, returns an error message or None."""


@dataclass(frozen=True)
class Field:
    """Descriptor of one field of a prototype kind or nested structure."""
    name: str
    field_type: "FieldType"
    default: Any = REQUIRED
    factory: Optional[Callable[[], Any]] = None
    doc: str = ""

    @property
    def attr(self) -> str:
        """Attribute name on the generated dataclass (`from` -> `from_`)."""
        return f"{self.name}_" if keyword.iskeyword(self.name) else self.name

    @property
    def required(self) -> bool:
        return self.default is REQUIRED and self.factory is None

    def default_value(self) -> Any:
        if self.factory is not None:
            return self.factory()
        return self.default


def optional(name: str, field_type: "FieldType", doc: str = "") -> Field:
    """Optional field whose declared default is None."""
    return Field(name, field_type, default=None, doc=doc)


def camel_case(name: str) -> str:
    """`assembling-machine` / `fluid_box` -> `AssemblingMachine` / `FluidBox`."""
    parts = name.replace("-", "_").split("_")
    return "".join(part[:1].upper() + part[1:] for part in parts if part)


# =============================================================================
# Base type
# =============================================================================

class FieldType:
    """Converts one value tree node into a typed Python value."""

    expected = "value"

    def convert(self, value: LuaValue, path: FieldPath, ctx: "ConversionContext") -> Any:
        raise NotImplementedError

    def children(self) -> Iterable["FieldType"]:
        """Directly nested field types (used for registry consistency checks)."""
        return ()

    def walk(self) -> Iterator["FieldType"]:
        """This type and every type nested below it, depth first."""
        seen: set[int] = set()
        stack: List[FieldType] = [self]
        while stack:
            current = stack.pop()
            if id(current) in seen:
                continue
            seen.add(id(current))
            yield current
            stack.extend(current.children())

    def mismatch(self, value: LuaValue, path: FieldPath) -> UnexpectedFieldType:
        return UnexpectedFieldType(path, self.expected, lua_type_name(value))


# =============================================================================
# Scalars
# =============================================================================

class Boolean(FieldType):
    expected = "boolean"

    def convert(self, value: LuaValue, path: FieldPath, ctx: "ConversionContext") -> bool:
        if not isinstance(value, bool):
            raise self.mismatch(value, path)
        return value


class _Number(FieldType):
    def __init__(self, minimum: Optional[float] = None, maximum: Optional[float] = None):
        self.minimum = minimum
        self.maximum = maximum

    def _check_range(self, number: Any, path: FieldPath) -> None:
        if self.minimum is not None and number < self.minimum:
            raise InvalidFieldValue(path, number, f"must be >= {self.minimum}")
        if self.maximum is not None and number > self.maximum:
            raise InvalidFieldValue(path, number, f"must be <= {self.maximum}")


class Integer(_Number):
    """Integer; integral floats are accepted since script numbers are doubles."""

    expected = "integer"

    def convert(self, value: LuaValue, path: FieldPath, ctx: "ConversionContext") -> int:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise self.mismatch(value, path)
        if isinstance(value, float):
            if not value.is_integer():
                raise self.mismatch(value, path)
            value = int(value)
        self._check_range(value, path)
        return value


class Float(_Number):
    expected = "number"

    def convert(self, value: LuaValue, path: FieldPath, ctx: "ConversionContext") -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise self.mismatch(value, path)
        number = float(value)
        self._check_range(number, path)
        return number


class String(FieldType):
    expected = "string"

    def __init__(self, allow_empty: bool = True):
        self.allow_empty = allow_empty

    def convert(self, value: LuaValue, path: FieldPath, ctx: "ConversionContext") -> str:
        if not isinstance(value, str):
            raise self.mismatch(value, path)
        if not value and not self.allow_empty:
            raise InvalidFieldValue(path, value, "must not be empty")
        return value


class Choice(FieldType):
    """String restricted to a closed set of variants."""

    expected = "string"

    def __init__(self, *variants: str):
        self.variants: Tuple[str, ...] = variants

    def convert(self, value: LuaValue, path: FieldPath, ctx: "ConversionContext") -> str:
        if not isinstance(value, str):
            raise self.mismatch(value, path)
        if value not in self.variants:
            raise UnknownEnumVariant(path, value, self.variants)
        return value


# =============================================================================
# Containers
# =============================================================================

class ListOf(FieldType):
    """Array converted element by element; the first failing element aborts.

    Paths use the 1-based keys of the source array. With `allow_single`, a
    value that is not an array is converted as a one-element list.
    """

    expected = "array"

    def __init__(
        self,
        item: FieldType,
        allow_single: bool = False,
        min_length: int = 0,
        max_length: Optional[int] = None,
    ):
        self.item = item
        self.allow_single = allow_single
        self.min_length = min_length
        self.max_length = max_length

    def children(self) -> Iterable[FieldType]:
        return (self.item,)

    def convert(self, value: LuaValue, path: FieldPath, ctx: "ConversionContext") -> Tuple[Any, ...]:
        if not isinstance(value, LuaTable) or not value.is_array():
            if self.allow_single:
                return (self.item.convert(value, path, ctx),)
            if isinstance(value, LuaTable):
                raise UnexpectedFieldType(path, self.expected, "table with non-sequential keys")
            raise self.mismatch(value, path)

        elements = value.array_values()
        if len(elements) < self.min_length:
            raise InvalidFieldValue(
                path, len(elements), f"needs at least {self.min_length} element(s)"
            )
        if self.max_length is not None and len(elements) > self.max_length:
            raise InvalidFieldValue(
                path, len(elements), f"allows at most {self.max_length} element(s)"
            )

        converted: List[Any] = []
        for index, element in enumerate(elements, start=1):
            converted.append(self.item.convert(element, path + (index,), ctx))
        return tuple(converted)


class MapOf(FieldType):
    """Table with unique keys converted into a dict."""

    expected = "table"

    def __init__(self, value: FieldType, key: Optional[FieldType] = None):
        self.value = value
        self.key = key or String()

    def children(self) -> Iterable[FieldType]:
        return (self.key, self.value)

    def convert(self, value: LuaValue, path: FieldPath, ctx: "ConversionContext") -> Dict[Any, Any]:
        if not isinstance(value, LuaTable):
            raise self.mismatch(value, path)
        duplicates = value.duplicate_keys()
        if duplicates:
            raise DuplicateKeyInTable(path, duplicates[0])

        result: Dict[Any, Any] = {}
        for raw_key, raw_value in value:
            entry_path = path + (raw_key,)
            key = self.key.convert(raw_key, entry_path, ctx)
            result[key] = self.value.convert(raw_value, entry_path, ctx)
        return result


class Struct(FieldType):
    """Nested structure converted through the engine into a frozen dataclass.

    Args:
        name: Structure name, used for the generated class and in errors
        fields: Field descriptors of the structure
        checks: Cross-field checks run on the converted values
        positional: Field names for the array shorthand, e.g. {"iron-plate", 2}
    """

    expected = "table"

    def __init__(
        self,
        name: str,
        fields: Sequence[Field],
        checks: Sequence[Check] = (),
        positional: Sequence[str] = (),
    ):
        self.name = name
        self.fields: Tuple[Field, ...] = tuple(fields)
        self.checks: Tuple[Check, ...] = tuple(checks)
        self.positional: Tuple[str, ...] = tuple(positional)

        seen: set[str] = set()
        for field in self.fields:
            if field.name in seen:
                raise RegistryError(f"Structure '{name}' declares field '{field.name}' twice")
            seen.add(field.name)

        self.value_class = make_dataclass(
            camel_case(name),
            [(field.attr, Any) for field in self.fields],
            bases=(StructValue,),
            frozen=True,
            namespace={"structure": name},
        )

    def children(self) -> Iterable[FieldType]:
        return tuple(field.field_type for field in self.fields)

    def convert(self, value: LuaValue, path: FieldPath, ctx: "ConversionContext") -> StructValue:
        if not isinstance(value, LuaTable):
            raise self.mismatch(value, path)
        table = self._expand_positional(value, path)
        values = ctx.engine.extract(self.fields, table, path, ctx)
        run_checks(self.checks, values, path, self.name)
        return self.value_class(**values)

    def _expand_positional(self, table: LuaTable, path: FieldPath) -> LuaTable:
        if not self.positional or len(table) == 0 or not table.is_array():
            return table
        elements = table.array_values()
        if len(elements) > len(self.positional):
            raise InvalidFieldValue(
                path,
                len(elements),
                f"shorthand form takes at most {len(self.positional)} values",
            )
        return LuaTable(zip(self.positional, elements))


def run_checks(checks: Sequence[Check], values: Mapping[str, Any], path: FieldPath, structure: str) -> None:
    """Run cross-field checks, raising NestedConversionFailure on the first failure."""
    for check in checks:
        problem = check(values)
        if problem:
            raise NestedConversionFailure(path, structure, problem)


class TaggedUnion(FieldType):
    """Structure whose layout is selected by a tag field such as `type`."""

    expected = "table"

    def __init__(self, variants: Mapping[str, Struct], tag: str = "type", default: Optional[str] = None):
        self.variants: Dict[str, Struct] = dict(variants)
        self.tag = tag
        self.default = default

    def children(self) -> Iterable[FieldType]:
        return tuple(self.variants.values())

    def convert(self, value: LuaValue, path: FieldPath, ctx: "ConversionContext") -> StructValue:
        if not isinstance(value, LuaTable):
            raise self.mismatch(value, path)
        tag_value = value.get(self.tag)
        if tag_value is None:
            if self.default is None:
                raise MissingRequiredField(path + (self.tag,))
            tag_value = self.default
        if not isinstance(tag_value, str):
            raise UnexpectedFieldType(path + (self.tag,), "string", lua_type_name(tag_value))
        variant = self.variants.get(tag_value)
        if variant is None:
            raise UnknownEnumVariant(path + (self.tag,), tag_value, sorted(self.variants))
        return variant.convert(value, path, ctx)


class OneOf(FieldType):
    """First alternative that converts successfully wins.

    When none converts, alternatives that rejected the value's shape outright
    are set aside. If that leaves no failure, the value has the wrong shape
    for the field; if it leaves one, that alternative's error is raised as
    is so its full path survives.
    """

    def __init__(self, *alternatives: FieldType):
        self.alternatives = alternatives
        self.expected = " or ".join(alternative.expected for alternative in alternatives)

    def children(self) -> Iterable[FieldType]:
        return self.alternatives

    def convert(self, value: LuaValue, path: FieldPath, ctx: "ConversionContext") -> Any:
        failures: List[ConversionError] = []
        for alternative in self.alternatives:
            resources_before = len(ctx.resources)
            try:
                return alternative.convert(value, path, ctx)
            except ConversionError as e:
                del ctx.resources[resources_before:]
                if not (isinstance(e, UnexpectedFieldType) and e.path == path):
                    failures.append(e)
        if not failures:
            raise self.mismatch(value, path)
        if len(failures) == 1:
            raise failures[0]
        raise NestedConversionFailure(path, self.expected, "no alternative matched", failures)


# =============================================================================
# References and external data
# =============================================================================

class Reference(FieldType):
    """Name of another prototype, kept as a weak reference.

    No existence check happens here; the post-load validator resolves the
    reference once every mod has been loaded.
    """

    expected = "prototype name"

    def __init__(self, *kinds: str):
        if not kinds:
            raise RegistryError("Reference needs at least one target kind")
        self.kinds: Tuple[str, ...] = kinds

    def convert(self, value: LuaValue, path: FieldPath, ctx: "ConversionContext") -> PrototypeRef:
        if not isinstance(value, str):
            raise self.mismatch(value, path)
        if not value:
            raise InvalidFieldValue(path, value, "prototype name must not be empty")
        return PrototypeRef(self.kinds, value)


class FileName(FieldType):
    """Path of a mod file; recorded in the context for resource validation."""

    expected = "file name"

    def __init__(self, resource_type: ResourceType = ResourceType.OTHER, record: bool = True):
        self.resource_type = resource_type
        self.record = record

    def convert(self, value: LuaValue, path: FieldPath, ctx: "ConversionContext") -> str:
        if not isinstance(value, str):
            raise self.mismatch(value, path)
        if not value:
            raise InvalidFieldValue(path, value, "file name must not be empty")
        if self.record:
            ctx.add_resource(ResourceRecord(value, self.resource_type))
        return value


MAX_LOCALISED_PARAMETERS = 20


class LocalisedStringType(FieldType):
    """Plain string (literal) or `{key, parameters...}` table."""

    expected = "localised string"

    def convert(self, value: LuaValue, path: FieldPath, ctx: "ConversionContext") -> LocalisedString:
        if isinstance(value, str):
            return LocalisedString(None, (value,))
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return LocalisedString(None, (_number_text(value),))
        if not isinstance(value, LuaTable) or not value.is_array():
            raise self.mismatch(value, path)

        elements = value.array_values()
        if not elements:
            raise InvalidFieldValue(path, "{}", "localised string needs a key")
        key = elements[0]
        if not isinstance(key, str):
            raise UnexpectedFieldType(path + (1,), "string", lua_type_name(key))
        parameters = elements[1:]
        if len(parameters) > MAX_LOCALISED_PARAMETERS:
            raise InvalidFieldValue(
                path, len(parameters), f"at most {MAX_LOCALISED_PARAMETERS} parameters allowed"
            )

        converted: List[Any] = []
        for index, parameter in enumerate(parameters, start=2):
            if isinstance(parameter, str):
                converted.append(parameter)
            elif isinstance(parameter, bool):
                converted.append("true" if parameter else "false")
            elif isinstance(parameter, (int, float)):
                converted.append(_number_text(parameter))
            elif isinstance(parameter, LuaTable):
                converted.append(self.convert(parameter, path + (index,), ctx))
            else:
                raise UnexpectedFieldType(path + (index,), "string", lua_type_name(parameter))

        if key and ctx.locale and key not in ctx.locale:
            logger.debug(f"Locale key '{key}' not found (at {path}, mod '{ctx.mod}')")
        return LocalisedString(key, tuple(converted))


def _number_text(number: float) -> str:
    if isinstance(number, float) and number.is_integer():
        return str(int(number))
    return str(number)
