"""
Locale tables from the `locale/<language>/*.cfg` files of mods.

Each file is INI text: `[section]` headers followed by `key=value` lines.
A key inside a section is looked up as `section.key`; a key before the
first header keeps its bare name. Mods later in load order override
earlier ones.
"""

import configparser
import logging
from typing import Dict, Iterable

from .models import ModInfo

logger = logging.getLogger(__name__)

# Header given to keys written before the first section
_ROOT_SECTION = "\x00root"


def _parser() -> configparser.ConfigParser:
    parser = configparser.ConfigParser(
        interpolation=None,
        delimiters=("=",),
        comment_prefixes=(";", "#"),
        strict=False,
        default_section="\x00default",
    )
    parser.optionxform = str  # keys are case sensitive
    return parser


def parse_locale(text: str, source: str = "<locale>") -> Dict[str, str]:
    """Flatten one locale file into `section.key` entries.

    Raises:
        configparser.Error: If a line is neither a header, a comment nor `key=value`
    """
    # Indented lines are not continuations in locale files
    lines = [line.strip() for line in text.splitlines()]
    parser = _parser()
    parser.read_string("\n".join([f"[{_ROOT_SECTION}]"] + lines), source=source)

    entries: Dict[str, str] = {}
    for section in parser.sections():
        for key, value in parser.items(section, raw=True):
            entries[key if section == _ROOT_SECTION else f"{section}.{key}"] = value
    return entries


def load_locale(mods: Iterable[ModInfo], language: str = "en") -> Dict[str, str]:
    """Merge the locale files of `mods` (in load order) for one language.

    Files that cannot be read or parsed are logged and skipped.
    """
    table: Dict[str, str] = {}
    for info in mods:
        if info.path is None:
            continue
        locale_dir = info.files_root() / "locale" / language
        if not locale_dir.is_dir():
            continue
        files = sorted(
            (entry for entry in locale_dir.iterdir() if entry.name.endswith(".cfg") and entry.is_file()),
            key=lambda entry: entry.name,
        )
        for entry in files:
            source = f"{info.name}/locale/{language}/{entry.name}"
            try:
                table.update(parse_locale(entry.read_text(encoding="utf-8-sig"), source))
            except (OSError, UnicodeDecodeError, configparser.Error) as e:
                logger.warning(f"Skipping locale file {source}: {e}")

    logger.info(f"Loaded {len(table)} locale entries for '{language}'")
    return table
