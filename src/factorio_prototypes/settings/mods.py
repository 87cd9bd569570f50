"""
Mod-related settings for factorio-prototypes.
"""

from typing import List

from .base import SettingsSection


class ModSettings(SettingsSection):
    """Which mods take part in a load.

    An explicit active list wins. Without one, the game's mod-list.json is
    used when use_mod_list is on, otherwise every discovered mod loads.
    """

    @property
    def active_mods(self) -> List[str]:
        return self._get_list("mods/active")

    @active_mods.setter
    def active_mods(self, value: List[str]) -> None:
        self._store("mods/active", list(value))

    def add_mod(self, mod_name: str) -> None:
        active = self.active_mods
        if mod_name not in active:
            self.active_mods = active + [mod_name]

    def remove_mod(self, mod_name: str) -> None:
        self.active_mods = [name for name in self.active_mods if name != mod_name]

    def clear_active_mods(self) -> None:
        self.active_mods = []

    def is_mod_active(self, mod_name: str) -> bool:
        return mod_name in self.active_mods

    @property
    def use_mod_list(self) -> bool:
        return self._get_bool("mods/use_mod_list", True)

    @use_mod_list.setter
    def use_mod_list(self, value: bool) -> None:
        self._store("mods/use_mod_list", value)
