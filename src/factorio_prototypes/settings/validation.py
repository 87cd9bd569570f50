"""
Settings validation system for factorio-prototypes.
"""

import logging
from typing import List, TYPE_CHECKING

from .logging import VALID_LEVELS
from .types import ValidationResult

if TYPE_CHECKING:
    from .core import AppSettings

logger = logging.getLogger(__name__)


class SettingsValidator:
    """Validates configuration settings."""

    def __init__(self, settings: "AppSettings"):
        self.settings = settings

    def validate(self) -> ValidationResult:
        """Validate current configuration."""
        errors: List[str] = []
        warnings: List[str] = []
        paths = self.settings.paths

        # Factorio root
        if paths.factorio_path:
            if not paths.factorio_path.exists():
                errors.append(f"Factorio path does not exist: {paths.factorio_path}")
            elif not (paths.factorio_path / "data" / "base").exists():
                warnings.append(
                    f"Factorio path might be invalid (no 'data/base' directory): {paths.factorio_path}"
                )
        else:
            warnings.append("Factorio path not set")

        if paths.mods_path and not paths.mods_path.exists():
            warnings.append(f"Mods directory does not exist: {paths.mods_path}")

        if paths.dumps_path is None:
            errors.append("Script output directory not set")
        elif not paths.dumps_path.exists():
            warnings.append(f"Script output directory does not exist: {paths.dumps_path}")

        policy_file = paths.override_policy_file
        if policy_file and not policy_file.is_file():
            errors.append(f"Override policy file does not exist: {policy_file}")

        if self.settings.logging.console_log_level.upper() not in VALID_LEVELS:
            warnings.append(f"Unknown console log level: {self.settings.logging.console_log_level}")

        result = ValidationResult(
            is_valid=len(errors) == 0, errors=errors, warnings=warnings
        )
        logger.debug(f"Settings validated: {len(errors)} errors, {len(warnings)} warnings")
        return result
