"""
Error taxonomy for prototype loading.

Every error raised while executing mod scripts, converting value trees or
maintaining the DataTable derives from PrototypeError. Conversion errors carry
the field path they were raised at, plus the mod/kind/prototype identity once
they leave a prototype conversion.
"""

from typing import Any, Iterable, Optional, Sequence, Tuple, Union

PathSegment = Union[str, int]
FieldPath = Tuple[PathSegment, ...]


def format_path(path: Sequence[PathSegment]) -> str:
    """Render a field path as `graphics_set.animation.layers[2].filename`."""
    rendered = ""
    for segment in path:
        if isinstance(segment, int):
            rendered += f"[{segment}]"
        elif rendered:
            rendered += f".{segment}"
        else:
            rendered = segment
    return rendered or "<root>"


class PrototypeError(Exception):
    """Base class for all prototype loading errors."""
    pass


class ConfigError(PrototypeError):
    """Raised when configuration is invalid or cannot be accessed."""
    pass


class ScriptExecutionError(PrototypeError):
    """A mod's data-stage script failed to run."""

    def __init__(self, mod: str, message: str, location: Optional[str] = None):
        self.mod = mod
        self.message = message
        self.location = location
        super().__init__(mod, message, location)

    def __str__(self) -> str:
        where = f" at {self.location}" if self.location else ""
        return f"Script of mod '{self.mod}' failed{where}: {self.message}"


class StructuralError(PrototypeError):
    """The value tree does not have the kind -> name -> fields shape."""

    def __init__(self, path: Sequence[PathSegment], message: str):
        self.path: FieldPath = tuple(path)
        self.message = message
        self.mod: Optional[str] = None
        super().__init__(self.path, message)

    def __str__(self) -> str:
        origin = f" (mod '{self.mod}')" if self.mod else ""
        return f"Malformed data at '{format_path(self.path)}'{origin}: {self.message}"


class UnknownPrototypeType(PrototypeError):
    """A kind string that the type registry does not know."""

    def __init__(self, kind: str):
        self.kind = kind
        self.mod: Optional[str] = None
        super().__init__(kind)

    def __str__(self) -> str:
        origin = f" (mod '{self.mod}')" if self.mod else ""
        return f"Unknown prototype type '{self.kind}'{origin}"


class ConversionError(PrototypeError):
    """Base class for per-field conversion failures.

    Attributes:
        path: Full field path inside the prototype, e.g. ("results", 2, "name")
        mod: Mod whose data failed (set when leaving a prototype conversion)
        kind: Prototype kind being converted
        prototype_name: Name of the prototype being converted
    """

    def __init__(self, path: Sequence[PathSegment], message: str = ""):
        self.path: FieldPath = tuple(path)
        self.message = message
        self.mod: Optional[str] = None
        self.kind: Optional[str] = None
        self.prototype_name: Optional[str] = None
        super().__init__(self.path, message)

    @property
    def field(self) -> str:
        """Dotted/indexed rendering of the failing field path."""
        return format_path(self.path)

    def attach(self, mod: str, kind: str, name: str) -> "ConversionError":
        """Record which prototype this error belongs to."""
        self.mod = mod
        self.kind = kind
        self.prototype_name = name
        return self

    def describe(self) -> str:
        return self.message

    def __str__(self) -> str:
        prefix = ""
        if self.kind is not None:
            prefix = f"{self.kind} '{self.prototype_name}'"
            if self.mod:
                prefix += f" from mod '{self.mod}'"
            prefix += ": "
        return f"{prefix}{self.field}: {self.describe()}"


class MissingRequiredField(ConversionError):
    def describe(self) -> str:
        return "required field is missing"


class UnexpectedFieldType(ConversionError):
    def __init__(self, path: Sequence[PathSegment], expected: str, actual: str):
        self.expected = expected
        self.actual = actual
        super().__init__(path, f"expected {expected}, got {actual}")


class UnknownEnumVariant(ConversionError):
    def __init__(self, path: Sequence[PathSegment], value: Any, allowed: Iterable[str] = ()):
        self.value = value
        self.allowed = tuple(allowed)
        message = f"unknown variant {value!r}"
        if self.allowed:
            message += f" (allowed: {', '.join(self.allowed)})"
        super().__init__(path, message)


class DuplicateKeyInTable(ConversionError):
    def __init__(self, path: Sequence[PathSegment], key: PathSegment):
        self.key = key
        super().__init__(path, f"key {key!r} appears more than once")


class InvalidFieldValue(ConversionError):
    """Value has the right shape but is outside the accepted domain."""

    def __init__(self, path: Sequence[PathSegment], value: Any, reason: str):
        self.value = value
        self.reason = reason
        super().__init__(path, f"invalid value {value!r}: {reason}")


class NestedConversionFailure(ConversionError):
    """A nested structure could not be built as a whole.

    Raised by structure-level checks and by alternatives of which none matched;
    `causes` holds the individual failures when there were several candidates.
    """

    def __init__(
        self,
        path: Sequence[PathSegment],
        structure: str,
        message: str,
        causes: Sequence[ConversionError] = (),
    ):
        self.structure = structure
        self.causes = tuple(causes)
        super().__init__(path, message)

    def describe(self) -> str:
        text = f"{self.structure}: {self.message}"
        for cause in self.causes:
            text += f"\n  - {cause.field}: {cause.describe()}"
        return text


class RegistryError(PrototypeError):
    """The type registry is inconsistent; the program cannot start."""
    pass


class FieldCollision(RegistryError):
    def __init__(self, kind: str, field_name: str, first_owner: str, second_owner: str):
        self.kind = kind
        self.field_name = field_name
        self.first_owner = first_owner
        self.second_owner = second_owner
        super().__init__(
            f"Field '{field_name}' of kind '{kind}' is declared by both "
            f"'{first_owner}' and '{second_owner}'"
        )


class DataTableError(PrototypeError):
    """Base class for DataTable misuse."""
    pass


class OverrideNotAllowed(DataTableError):
    def __init__(self, kind: str, name: str, phase: Optional[str] = None):
        self.kind = kind
        self.name = name
        self.phase = phase
        during = f" during '{phase}'" if phase else ""
        super().__init__(f"{kind} '{name}' may not be overridden{during}")


class TableFrozen(DataTableError):
    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"DataTable is frozen; cannot insert {kind} '{name}'")


class TableNotFrozen(DataTableError):
    def __init__(self):
        super().__init__("DataTable must be frozen before references are validated")
