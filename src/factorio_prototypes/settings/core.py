"""
Core settings management for factorio-prototypes.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from PySide6.QtCore import QSettings

from .types import ValidationResult
from .migration import SettingsMigrator
from .validation import SettingsValidator
from .paths import PathSettings
from .logging import LoggingSettings
from .mods import ModSettings
from .loader import LoaderSettings
from .locale import LocaleSettings

logger = logging.getLogger(__name__)

ORGANIZATION = "factorio-prototypes"
APPLICATION = "factorio_prototypes"


class AppSettings:
    """
    Loader configuration stored in QSettings.

    Settings live under one group per profile, either in the platform's
    native store or in an INI file when one is given. Each concern has its
    own subsystem object (paths, mods, loader, logging); the most used
    values are also exposed here directly.
    """

    def __init__(self, profile: str = "default", settings_file: Optional[Union[str, Path]] = None):
        """Open the settings store and select a profile.

        Args:
            profile: Group name all keys are stored under
            settings_file: INI file to use instead of the native store
        """
        if settings_file is None:
            self.settings = QSettings(ORGANIZATION, APPLICATION)
        else:
            self.settings = QSettings(str(settings_file), QSettings.Format.IniFormat)
        self.profile = profile
        self.settings.beginGroup(profile)

        self._migrator = SettingsMigrator(self.settings)
        self._paths = PathSettings(self.settings)
        self._mods = ModSettings(self.settings)
        self._loader = LoaderSettings(self.settings)
        self._locale = LocaleSettings(self.settings)
        self._logging = LoggingSettings(self.settings)
        self._validator = SettingsValidator(self)

        self._migrator.ensure_version()
        logger.debug(f"Profile '{profile}' opened from {self.settings.fileName()}")

    # === SUBSYSTEMS ===

    @property
    def paths(self) -> PathSettings:
        return self._paths

    @property
    def mods(self) -> ModSettings:
        return self._mods

    @property
    def loader(self) -> LoaderSettings:
        return self._loader

    @property
    def locale(self) -> LocaleSettings:
        return self._locale

    @property
    def logging(self) -> LoggingSettings:
        return self._logging

    # === APPLICATION STATE ===

    @property
    def is_first_run(self) -> bool:
        """True until set_first_run_complete() has been called for this profile."""
        return self._migrator.first_run

    def set_first_run_complete(self) -> None:
        self._migrator.mark_first_run_complete()

    @property
    def version(self) -> str:
        """Configuration layout version stamped by the migrator."""
        return self._migrator.version

    # === SHORTCUTS ===

    @property
    def factorio_path(self) -> Optional[Path]:
        """Game root directory (holds data/, mods/ and script-output/)."""
        return self._paths.factorio_path

    @factorio_path.setter
    def factorio_path(self, value: Optional[Path]) -> None:
        self._paths.factorio_path = value

    @property
    def mods_path(self) -> Optional[Path]:
        return self._paths.mods_path

    @property
    def dumps_path(self) -> Optional[Path]:
        return self._paths.dumps_path

    @property
    def active_mods(self) -> List[str]:
        """Names of the mods to load; empty means decide from the mod list."""
        return self._mods.active_mods

    @active_mods.setter
    def active_mods(self, value: List[str]) -> None:
        self._mods.active_mods = value

    # === VALIDATION AND STORAGE ===

    def validate(self) -> ValidationResult:
        return self._validator.validate()

    def get_settings_file_path(self) -> str:
        return self.settings.fileName()

    def sync(self) -> None:
        self.settings.sync()
