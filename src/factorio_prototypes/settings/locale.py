"""
Locale settings for factorio-prototypes.
"""

import logging

from .base import SettingsSection

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"


class LocaleSettings(SettingsSection):
    """Language of the locale tables loaded from mods."""

    @property
    def language(self) -> str:
        """Locale folder name, such as "en" or "pt-BR"."""
        return self._get_str("locale/language", DEFAULT_LANGUAGE).strip() or DEFAULT_LANGUAGE

    @language.setter
    def language(self, value: str) -> None:
        value = value.strip()
        if not value or "/" in value or "\\" in value:
            logger.warning(f"Ignoring language '{value}', staying at '{self.language}'")
            return
        self._store("locale/language", value)
