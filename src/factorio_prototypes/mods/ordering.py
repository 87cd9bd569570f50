"""
Mod discovery and load order.

Mods load after everything they depend on (required, optional and hidden
optional dependencies that are present). Among mods whose dependencies are
all loaded, core goes first, then base, and the rest follow natural name
order, so "mod2" sorts before "mod10".
"""

import heapq
import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, Tuple, Union

import orjson

from .models import BASE_MOD, CORE_MOD, DependencyType, ModDependencyError, ModInfo, format_version

logger = logging.getLogger(__name__)

_NATURAL_CHUNK = re.compile(r"(\d+)")


def natural_key(name: str) -> Tuple:
    """Sort key comparing digit runs as numbers and the rest case-insensitively."""
    chunks = _NATURAL_CHUNK.split(name.lower())
    return tuple((0, int(chunk), "") if chunk.isdigit() else (1, 0, chunk) for chunk in chunks if chunk)


def _priority(info: ModInfo) -> Tuple:
    rank = {CORE_MOD: 0, BASE_MOD: 1}.get(info.name, 2)
    return (rank, natural_key(info.name), info.name)


def check_dependencies(mods: Iterable[ModInfo]) -> None:
    """Verify required dependencies, version requirements and incompatibilities.

    Raises:
        ModDependencyError: Naming the first violated dependency
    """
    by_name = {info.name: info for info in mods}
    for info in by_name.values():
        for dependency in info.dependencies:
            present = by_name.get(dependency.name)
            if dependency.dependency_type is DependencyType.INCOMPATIBLE:
                if present is not None:
                    raise ModDependencyError(
                        f"Mod '{info.name}' is incompatible with mod '{dependency.name}'"
                    )
                continue
            if present is None:
                if dependency.dependency_type is DependencyType.REQUIRED:
                    raise ModDependencyError(
                        f"Mod '{info.name}' requires missing mod '{dependency.name}'"
                    )
                continue
            if not dependency.is_satisfied_by(present.version):
                raise ModDependencyError(
                    f"Mod '{info.name}' requires {dependency}, found version "
                    f"{format_version(present.version)}"
                )


def sort_load_order(mods: Iterable[ModInfo]) -> List[ModInfo]:
    """Order mods so every mod loads after its present dependencies.

    Args:
        mods: Mods to load (names must be unique)

    Returns:
        The mods in load order

    Raises:
        ModDependencyError: On duplicates, unmet or incompatible dependencies,
            or a dependency cycle
    """
    mods = list(mods)
    by_name: Dict[str, ModInfo] = {}
    for info in mods:
        if info.name in by_name:
            raise ModDependencyError(f"Mod '{info.name}' found more than once")
        by_name[info.name] = info

    check_dependencies(mods)

    waiting: Dict[str, int] = {}
    dependants: Dict[str, List[str]] = {name: [] for name in by_name}
    for info in mods:
        before = {
            dependency.name
            for dependency in info.dependencies
            if dependency.dependency_type.affects_load_order and dependency.name in by_name
        }
        waiting[info.name] = len(before)
        for name in before:
            dependants[name].append(info.name)

    ready = [_priority(info) for info in mods if waiting[info.name] == 0]
    heapq.heapify(ready)
    ordered: List[ModInfo] = []
    while ready:
        name = heapq.heappop(ready)[2]
        ordered.append(by_name[name])
        for dependant in dependants[name]:
            waiting[dependant] -= 1
            if waiting[dependant] == 0:
                heapq.heappush(ready, _priority(by_name[dependant]))

    if len(ordered) != len(mods):
        stuck = sorted((name for name, count in waiting.items() if count > 0), key=natural_key)
        raise ModDependencyError(f"Dependency cycle between mods: {', '.join(stuck)}")

    logger.debug(f"Mod load order: {', '.join(info.name for info in ordered)}")
    return ordered


def newest_versions(mods: Iterable[ModInfo]) -> List[ModInfo]:
    """Keep one mod per name: the highest version, unpacked winning a tie.

    Names keep the order in which they were first seen.
    """
    chosen: Dict[str, ModInfo] = {}
    for info in mods:
        current = chosen.get(info.name)
        if current is None:
            chosen[info.name] = info
            continue
        if (info.version, not info.is_packed) > (current.version, not current.is_packed):
            chosen[info.name] = info
            logger.debug(f"Mod '{info.name}': {info.path} replaces {current.path}")
        else:
            logger.debug(f"Mod '{info.name}': ignoring {info.path}")
    return list(chosen.values())


def discover_mods(mods_dir: Union[str, Path]) -> List[ModInfo]:
    """Read the mods in `mods_dir`: sub-directories holding an info.json and zip archives.

    When a mod is present more than once only its newest version is kept.
    Unreadable mods are logged and skipped.
    """
    mods_dir = Path(mods_dir)
    if not mods_dir.is_dir():
        logger.warning(f"Mods directory does not exist: {mods_dir}")
        return []

    found: List[ModInfo] = []
    for entry in sorted(mods_dir.iterdir()):
        try:
            if entry.is_dir():
                if not (entry / "info.json").is_file():
                    continue
                found.append(ModInfo.load(entry))
            elif entry.suffix.lower() == ".zip":
                found.append(ModInfo.load_archive(entry))
        except ModDependencyError as e:
            logger.error(f"Skipping mod in {entry}: {e}")

    found = newest_versions(found)
    logger.info(f"Discovered {len(found)} mods in {mods_dir}")
    return found


def read_mod_list(path: Union[str, Path]) -> List[str]:
    """Names of the enabled mods in a mod-list.json file.

    Raises:
        ModDependencyError: If the file is unreadable or malformed
    """
    path = Path(path)
    try:
        with path.open("rb") as f:
            data = orjson.loads(f.read())
    except (OSError, orjson.JSONDecodeError) as e:
        raise ModDependencyError(f"Cannot read mod list {path}: {e}") from e

    entries = data.get("mods") if isinstance(data, dict) else None
    if not isinstance(entries, list):
        raise ModDependencyError(f"Mod list {path} has no 'mods' array")

    enabled: List[str] = []
    for entry in entries:
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
            raise ModDependencyError(f"Mod list {path} has a malformed entry: {entry!r}")
        if entry.get("enabled", True):
            enabled.append(entry["name"])
    return enabled
