"""
Configuration type definitions and exceptions for factorio-prototypes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List

from ..prototypes.errors import ConfigError


class ConfigVersion(Enum):
    """Layout version stamped into each profile."""
    V1_0 = "1.0"
    CURRENT = V1_0


@dataclass
class ValidationResult:
    """Result of configuration validation."""
    is_valid: bool
    errors: List[str]
    warnings: List[str]


__all__ = ["ConfigVersion", "ConfigError", "ValidationResult"]
