"""
Mod metadata: info.json contents and dependency strings.
"""

import logging
import re
import zipfile
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Union

import orjson

logger = logging.getLogger(__name__)

Version = Tuple[int, ...]

BASE_MOD = "base"
CORE_MOD = "core"

# Mods that load without an implicit dependency on base
ROOT_MODS = (CORE_MOD, BASE_MOD)


class ModDependencyError(Exception):
    """Raised when mod metadata is invalid or mods cannot be put in load order."""
    pass


class DependencyType(Enum):
    """Kinds of mod dependency, by the prefix of the dependency string."""
    REQUIRED = ""
    INCOMPATIBLE = "!"
    OPTIONAL = "?"
    HIDDEN_OPTIONAL = "(?)"
    NO_LOAD_ORDER = "~"

    @property
    def affects_load_order(self) -> bool:
        """Whether the dependency must load before the dependant."""
        return self in (DependencyType.REQUIRED, DependencyType.OPTIONAL, DependencyType.HIDDEN_OPTIONAL)


_DEPENDENCY = re.compile(
    r"^(?:(?P<prefix>[!?~]|\(\?\)) *)?"
    r"(?P<name>[a-zA-Z0-9_-]+(?: +[a-zA-Z0-9_-]+)*?)"
    r"(?: *(?P<operator><=|>=|<|>|=) *(?P<version>\d+(?:\.\d+){1,2}))?$"
)

_OPERATORS = {
    "<": lambda actual, wanted: actual < wanted,
    "<=": lambda actual, wanted: actual <= wanted,
    "=": lambda actual, wanted: actual == wanted,
    ">=": lambda actual, wanted: actual >= wanted,
    ">": lambda actual, wanted: actual > wanted,
}


def parse_version(text: str) -> Version:
    """Parse a 2 or 3 part dotted version ("1.1" is 1.1.0).

    Raises:
        ModDependencyError: If the text is not such a version
    """
    parts = text.strip().split(".")
    if not 2 <= len(parts) <= 3 or not all(part.isdigit() for part in parts):
        raise ModDependencyError(f"Invalid version: '{text}'")
    numbers = tuple(int(part) for part in parts)
    return numbers + (0,) * (3 - len(numbers))


def format_version(version: Version) -> str:
    return ".".join(str(part) for part in version)


def packed_info_member(names: Iterable[str]) -> Optional[str]:
    """Name of the info.json in a mod archive's top-level folder, if any."""
    for name in names:
        parts = name.split("/")
        if parts[-1] == "info.json" and len(parts) <= 2:
            return name
    return None


@dataclass(frozen=True)
class ModDependency:
    """One entry of a mod's dependency list.

    Attributes:
        name: Name of the mod depended upon
        dependency_type: Required, optional, incompatible...
        operator: Version comparison operator, if a version is required
        version: Version the operator compares against
    """
    name: str
    dependency_type: DependencyType = DependencyType.REQUIRED
    operator: Optional[str] = None
    version: Optional[Version] = None

    @classmethod
    def parse(cls, text: str) -> "ModDependency":
        """Parse a dependency string such as "? space-age >= 2.0".

        Raises:
            ModDependencyError: If the string is malformed
        """
        match = _DEPENDENCY.match(text.strip())
        if match is None:
            raise ModDependencyError(f"Invalid dependency string: '{text}'")

        version = None
        if match.group("version"):
            version = parse_version(match.group("version"))
        return cls(
            name=match.group("name"),
            dependency_type=DependencyType(match.group("prefix") or ""),
            operator=match.group("operator"),
            version=version,
        )

    def is_satisfied_by(self, version: Version) -> bool:
        """Check a present mod's version against the requirement."""
        if self.operator is None or self.version is None:
            return True
        return _OPERATORS[self.operator](version, self.version)

    def __str__(self) -> str:
        text = f"{self.dependency_type.value} {self.name}".strip()
        if self.operator and self.version:
            text += f" {self.operator} {format_version(self.version)}"
        return text


@dataclass
class ModInfo:
    """Contents of a mod's info.json.

    Attributes:
        name: Internal mod name (as used in `__name__/` paths)
        version: Mod version
        title: Display title
        author: Author line
        dependencies: Parsed dependency list
        path: Directory or zip archive the mod was read from, if any
        archive_root: Top-level folder inside the zip archive of a packed mod
    """
    name: str
    version: Version
    title: str = ""
    author: str = ""
    dependencies: List[ModDependency] = field(default_factory=list)
    path: Optional[Path] = None
    archive_root: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], path: Optional[Path] = None) -> "ModInfo":
        """Build mod info from decoded info.json data.

        A missing dependency list means a single dependency on base,
        except for core and base themselves.

        Raises:
            ModDependencyError: If required keys are missing or malformed
        """
        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise ModDependencyError(f"info.json without a mod name ({path})")
        version = data.get("version")
        if not isinstance(version, str):
            raise ModDependencyError(f"Mod '{name}' has no version string")

        raw_dependencies = data.get("dependencies")
        if raw_dependencies is None:
            raw_dependencies = [] if name in ROOT_MODS else [BASE_MOD]
        if not isinstance(raw_dependencies, list):
            raise ModDependencyError(f"Mod '{name}' dependencies must be a list")

        dependencies = []
        for entry in raw_dependencies:
            if not isinstance(entry, str):
                raise ModDependencyError(f"Mod '{name}' has a non-string dependency: {entry!r}")
            dependencies.append(ModDependency.parse(entry))

        return cls(
            name=name,
            version=parse_version(version),
            title=str(data.get("title", name)),
            author=str(data.get("author", "")),
            dependencies=dependencies,
            path=path,
        )

    @classmethod
    def load(cls, path: Union[str, Path]) -> "ModInfo":
        """Read a mod directory's info.json (or the file itself).

        Raises:
            ModDependencyError: If the file is unreadable or invalid
        """
        path = Path(path)
        info_file = path / "info.json" if path.is_dir() else path
        try:
            with info_file.open("rb") as f:  # orjson works with bytes
                data = orjson.loads(f.read())
        except (OSError, orjson.JSONDecodeError) as e:
            raise ModDependencyError(f"Cannot read {info_file}: {e}") from e
        if not isinstance(data, dict):
            raise ModDependencyError(f"{info_file} does not hold a JSON object")
        return cls.from_dict(data, info_file.parent)

    @classmethod
    def load_archive(cls, path: Union[str, Path]) -> "ModInfo":
        """Read the info.json of a packed mod.

        The archive holds a single top-level folder, usually
        `<name>_<version>`, with info.json directly inside it.

        Raises:
            ModDependencyError: If the archive or its info.json is unreadable
        """
        path = Path(path)
        try:
            with zipfile.ZipFile(path) as archive:
                member = packed_info_member(archive.namelist())
                if member is None:
                    raise ModDependencyError(f"{path} has no top-level info.json")
                data = orjson.loads(archive.read(member))
        except (OSError, zipfile.BadZipFile, orjson.JSONDecodeError) as e:
            raise ModDependencyError(f"Cannot read {path}: {e}") from e
        if not isinstance(data, dict):
            raise ModDependencyError(f"{path}:{member} does not hold a JSON object")
        info = cls.from_dict(data, path)
        info.archive_root = member.rpartition("/")[0]
        return info

    @property
    def is_packed(self) -> bool:
        return self.path is not None and self.path.suffix.lower() == ".zip"

    def files_root(self) -> Union[Path, zipfile.Path]:
        """Root of the mod's files, a directory or a folder inside its archive.

        Both kinds support `/`, `is_file()`, `is_dir()`, `iterdir()` and `open("rb")`.

        Raises:
            ModDependencyError: If the mod was not read from disk
        """
        if self.path is None:
            raise ModDependencyError(f"Mod '{self.name}' has no location on disk")
        if not self.is_packed:
            return self.path
        return zipfile.Path(self.path, at=f"{self.archive_root}/" if self.archive_root else "")

    @property
    def version_string(self) -> str:
        return format_version(self.version)

    def depends_on(self, name: str) -> bool:
        """True if `name` has to load before this mod."""
        return any(
            dependency.name == name and dependency.dependency_type.affects_load_order
            for dependency in self.dependencies
        )
