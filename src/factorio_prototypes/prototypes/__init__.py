"""
Prototype loading: value trees in, a validated DataTable of typed instances out.

Usage:
    from factorio_prototypes.prototypes import DataDumpExecutor, PrototypeLoader

    loader = PrototypeLoader(None, DataDumpExecutor("script-output/data-dumps"))
    report = loader.load(["base", "my-mod"])
    recipe = report.table.get("recipe", "iron-gear-wheel")
"""

from .conversion import ConversionContext, ConversionEngine, ConvertedPrototype, TreeConversion
from .datatable import DataTable, DataTableView
from .errors import (
    ConfigError,
    ConversionError,
    DataTableError,
    DuplicateKeyInTable,
    FieldCollision,
    InvalidFieldValue,
    MissingRequiredField,
    NestedConversionFailure,
    OverrideNotAllowed,
    PrototypeError,
    RegistryError,
    ScriptExecutionError,
    StructuralError,
    TableFrozen,
    TableNotFrozen,
    UnexpectedFieldType,
    UnknownEnumVariant,
    UnknownPrototypeType,
    format_path,
)
from .loaders import DataDumpExecutor, InMemoryExecutor, ScriptExecutor
from .models import (
    LocalisedString,
    LuaTable,
    Prototype,
    PrototypeRef,
    ResourceRecord,
    ResourceType,
    StructValue,
    to_python,
    to_value_tree,
)
from .policy import LoadPhase, OverridePolicy
from .registry import KindSpec, TypeRegistry, default_registry
from .service import LoadReport, OverrideRecord, PrototypeLoader, load_from_settings
from .validation import (
    BrokenReference,
    FileSystemResourceValidator,
    PostLoadValidator,
    ResourceError,
    validate_resources,
)

__all__ = [
    # Loading
    "PrototypeLoader",
    "LoadReport",
    "OverrideRecord",
    "load_from_settings",
    "DataDumpExecutor",
    "InMemoryExecutor",
    "ScriptExecutor",
    "LoadPhase",
    "OverridePolicy",
    # Registry and conversion
    "TypeRegistry",
    "KindSpec",
    "default_registry",
    "ConversionEngine",
    "ConversionContext",
    "ConvertedPrototype",
    "TreeConversion",
    # Table and validation
    "DataTable",
    "DataTableView",
    "PostLoadValidator",
    "BrokenReference",
    "FileSystemResourceValidator",
    "ResourceError",
    "validate_resources",
    # Values
    "LuaTable",
    "LocalisedString",
    "Prototype",
    "PrototypeRef",
    "ResourceRecord",
    "ResourceType",
    "StructValue",
    "to_python",
    "to_value_tree",
    # Errors
    "PrototypeError",
    "ConfigError",
    "ScriptExecutionError",
    "StructuralError",
    "UnknownPrototypeType",
    "ConversionError",
    "MissingRequiredField",
    "UnexpectedFieldType",
    "UnknownEnumVariant",
    "DuplicateKeyInTable",
    "InvalidFieldValue",
    "NestedConversionFailure",
    "RegistryError",
    "FieldCollision",
    "DataTableError",
    "OverrideNotAllowed",
    "TableFrozen",
    "TableNotFrozen",
    "format_path",
]
