"""
Settings version stamping for factorio-prototypes.
"""

import logging

from .base import SettingsSection
from .types import ConfigVersion

logger = logging.getLogger(__name__)


class SettingsMigrator(SettingsSection):
    """Stamps profiles with the layout version they are written in.

    There is a single layout so far; a profile carrying any other version
    is used as is and restamped.
    """

    def ensure_version(self) -> None:
        stored = self._get_str("app/version")
        current = ConfigVersion.CURRENT.value

        if not stored:
            self.settings.setValue("app/version", current)
            self._store("app/first_run", True)
            logger.info("No configuration found, starting a new profile")
            return
        if stored == current:
            return

        logger.warning(f"Unknown configuration version {stored}, restamping as {current}")
        self.settings.setValue("app/version", current)
        self._store("app/migrated_from", stored)

    # === APPLICATION STATE ===

    @property
    def first_run(self) -> bool:
        return self._get_bool("app/first_run", True)

    def mark_first_run_complete(self) -> None:
        self._store("app/first_run", False)

    @property
    def version(self) -> str:
        return self._get_str("app/version", ConfigVersion.CURRENT.value)
