"""
Path-related settings for factorio-prototypes.
"""

from pathlib import Path
from typing import Optional

from .base import SettingsSection


class PathSettings(SettingsSection):
    """Manages path-related settings.

    Only the Factorio root is mandatory; the data, mods and dump directories
    derive from it unless set explicitly.
    """

    @property
    def factorio_path(self) -> Optional[Path]:
        """Get Factorio installation directory."""
        return self._get_path("paths/factorio")

    @factorio_path.setter
    def factorio_path(self, value: Optional[Path]) -> None:
        """Set Factorio installation directory."""
        self._set_path("paths/factorio", value)

    @property
    def data_path(self) -> Optional[Path]:
        """Get the directory holding the shipped mods (core, base...)."""
        if self.factorio_path:
            return self.factorio_path / "data"
        return None

    @property
    def mods_path(self) -> Optional[Path]:
        """Get user mods directory (explicit, or derived from factorio_path)."""
        explicit = self._get_path("paths/mods")
        if explicit:
            return explicit
        if self.factorio_path:
            return self.factorio_path / "mods"
        return None

    @mods_path.setter
    def mods_path(self, value: Optional[Path]) -> None:
        """Set user mods directory (empty to derive it again)."""
        self._set_path("paths/mods", value)

    @property
    def dumps_path(self) -> Optional[Path]:
        """Get the directory holding evaluated data-stage script output."""
        explicit = self._get_path("paths/dumps")
        if explicit:
            return explicit
        if self.factorio_path:
            return self.factorio_path / "script-output" / "data-dumps"
        return None

    @dumps_path.setter
    def dumps_path(self, value: Optional[Path]) -> None:
        """Set the script output directory (empty to derive it again)."""
        self._set_path("paths/dumps", value)

    @property
    def mod_list_file(self) -> Optional[Path]:
        """Get mod-list.json location (inside the mods directory)."""
        if self.mods_path:
            return self.mods_path / "mod-list.json"
        return None

    @property
    def override_policy_file(self) -> Optional[Path]:
        """Get the override policy JSON file, if one is configured."""
        return self._get_path("paths/override_policy")

    @override_policy_file.setter
    def override_policy_file(self, value: Optional[Path]) -> None:
        """Set the override policy JSON file."""
        self._set_path("paths/override_policy", value)
