"""
factorio-prototypes: loader for Factorio-style data-stage prototype definitions

Turns the tables produced by mods' data-stage scripts into typed,
reference-checked prototype instances.
"""

__version__ = "0.1.0"
__author__ = "factorio-prototypes Contributors"

from .prototypes import (
    DataDumpExecutor,
    DataTable,
    LoadPhase,
    LoadReport,
    OverridePolicy,
    PrototypeLoader,
    TypeRegistry,
    default_registry,
    load_from_settings,
)
from .utils.logging_config import setup_logging

__all__ = [
    "PrototypeLoader",
    "LoadReport",
    "load_from_settings",
    "DataDumpExecutor",
    "DataTable",
    "LoadPhase",
    "OverridePolicy",
    "TypeRegistry",
    "default_registry",
    "setup_logging",
]
