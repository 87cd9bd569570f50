"""
Loader-related settings for factorio-prototypes.
"""

import logging

from .base import SettingsSection

logger = logging.getLogger(__name__)


class LoaderSettings(SettingsSection):
    """Options for PrototypeLoader runs started from settings."""

    @property
    def max_workers(self) -> int:
        """Threads converting one mod's prototypes (1 converts inline)."""
        return max(1, self._get_int("loader/max_workers", 1))

    @max_workers.setter
    def max_workers(self, value: int) -> None:
        if value < 1:
            logger.warning(f"Ignoring worker count {value}, staying at {self.max_workers}")
            return
        self._store("loader/max_workers", value)

    @property
    def validate_resources(self) -> bool:
        """Whether referenced sprite and sound files are checked on disk after loading."""
        return self._get_bool("loader/validate_resources", False)

    @validate_resources.setter
    def validate_resources(self, value: bool) -> None:
        self._store("loader/validate_resources", value)
