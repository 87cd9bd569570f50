"""
Mod metadata and load order.
"""

from .models import (
    BASE_MOD,
    CORE_MOD,
    DependencyType,
    ModDependency,
    ModDependencyError,
    ModInfo,
    parse_version,
)
from .locale import load_locale, parse_locale
from .ordering import (
    check_dependencies,
    discover_mods,
    natural_key,
    newest_versions,
    read_mod_list,
    sort_load_order,
)

__all__ = [
    "BASE_MOD",
    "CORE_MOD",
    "DependencyType",
    "ModDependency",
    "ModDependencyError",
    "ModInfo",
    "parse_version",
    "load_locale",
    "parse_locale",
    "check_dependencies",
    "discover_mods",
    "natural_key",
    "newest_versions",
    "read_mod_list",
    "sort_load_order",
]
