"""
Shared value access for settings subsystems.
"""

from pathlib import Path
from typing import Any, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from PySide6.QtCore import QSettings


class SettingsSection:
    """Base for one group of keys in the shared QSettings store.

    The native store keeps Python types, INI files hand everything back as
    strings (and one-element lists as a bare string), so reads normalise.
    """

    def __init__(self, settings: "QSettings"):
        self.settings = settings

    def _store(self, key: str, value: Any) -> None:
        self.settings.setValue(key, value)
        self.settings.sync()

    def _get_str(self, key: str, default: str = "") -> str:
        value = self.settings.value(key, default)
        return default if value is None else str(value)

    def _get_bool(self, key: str, default: bool = False) -> bool:
        value = self.settings.value(key, default)
        if value is None:
            return default
        if isinstance(value, str):
            return value.strip().lower() in ("true", "1", "yes")
        return bool(value)

    def _get_int(self, key: str, default: int = 0) -> int:
        value = self.settings.value(key, default)
        try:
            return int(str(value))
        except (TypeError, ValueError):
            return default

    def _get_list(self, key: str) -> List[str]:
        value = self.settings.value(key, [])
        if isinstance(value, (list, tuple)):
            return ["" if item is None else str(item) for item in value]
        if isinstance(value, str) and value:
            return [value]
        return []

    def _get_path(self, key: str) -> Optional[Path]:
        text = self._get_str(key)
        return Path(text) if text else None

    def _set_path(self, key: str, value: Optional[Path]) -> None:
        self._store(key, str(value) if value else "")
