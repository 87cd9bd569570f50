"""
Post-load validation.

Runs once, after every mod has been loaded and the DataTable frozen:
weak references are resolved by table lookup and every miss is collected.
Resource validation checks the files prototypes point at.
"""

import logging
import re
import zipfile
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Protocol, Tuple, Union

from PIL import Image

from .datatable import DataTable
from .errors import FieldPath, TableNotFrozen, format_path
from .models import Prototype, PrototypeRef, ResourceRecord, ResourceType, StructValue
from .registry import TypeRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BrokenReference:
    """A weak reference whose target is not in the table.

    Attributes:
        target_kinds: Kinds the reference accepts
        target_name: Name that could not be found
        source_kind: Kind of the referencing prototype
        source_name: Name of the referencing prototype
        field_path: Path of the reference inside the referencing prototype
    """
    target_kinds: Tuple[str, ...]
    target_name: str
    source_kind: str
    source_name: str
    field_path: FieldPath

    @property
    def field(self) -> str:
        return format_path(self.field_path)

    def __str__(self) -> str:
        targets = "/".join(self.target_kinds)
        return (
            f"{self.source_kind} '{self.source_name}' field {self.field} references "
            f"missing {targets} '{self.target_name}'"
        )


def iter_references(value: Any, path: FieldPath = ()) -> Iterator[Tuple[FieldPath, PrototypeRef]]:
    """Yield (path, reference) for every weak reference below a value."""
    if isinstance(value, PrototypeRef):
        yield path, value
    elif isinstance(value, (Prototype, StructValue)):
        for item in fields(value):
            if isinstance(value, Prototype) and item.name == "name":
                continue
            yield from iter_references(getattr(value, item.name), path + (item.name,))
    elif isinstance(value, (tuple, list)):
        for index, element in enumerate(value, start=1):
            yield from iter_references(element, path + (index,))
    elif isinstance(value, dict):
        for key, element in value.items():
            yield from iter_references(element, path + (key,))


class PostLoadValidator:
    """Resolves every weak reference of a frozen table."""

    def __init__(self, registry: TypeRegistry):
        self.registry = registry
        self._targets: Dict[Tuple[str, ...], Tuple[str, ...]] = {}
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def _concrete_targets(self, kinds: Tuple[str, ...]) -> Tuple[str, ...]:
        targets = self._targets.get(kinds)
        if targets is None:
            targets = self._targets[kinds] = self.registry.expand(kinds)
        return targets

    def validate_all(self, table: DataTable) -> List[BrokenReference]:
        """Check every reference of every instance; never stops at the first miss.

        Returns:
            All broken references in table order (empty on full integrity)

        Raises:
            TableNotFrozen: If the table is still being loaded
        """
        if not table.frozen:
            raise TableNotFrozen()

        broken: List[BrokenReference] = []
        checked = 0
        for instance in table:
            for path, reference in iter_references(instance):
                checked += 1
                targets = self._concrete_targets(reference.kinds)
                if table.find_any(targets, reference.name) is None:
                    miss = BrokenReference(
                        target_kinds=reference.kinds,
                        target_name=reference.name,
                        source_kind=instance.kind,
                        source_name=instance.name,
                        field_path=path,
                    )
                    self.logger.warning(f"Broken reference: {miss}")
                    broken.append(miss)

        self.logger.info(
            f"Validated {checked} references in {len(table)} prototypes, {len(broken)} broken"
        )
        return broken


# =============================================================================
# Resources
# =============================================================================

@dataclass(frozen=True)
class ResourceError:
    record: ResourceRecord
    message: str

    def __str__(self) -> str:
        return (
            f"{self.record.kind} '{self.record.prototype_name}' (mod '{self.record.mod}'): "
            f"{self.record.path}: {self.message}"
        )


class ResourceValidator(Protocol):
    def check(self, record: ResourceRecord) -> Optional[str]:
        """Return a problem description, or None if the resource is fine."""
        ...


_MOD_PATH = re.compile(r"^__([^/]+)__/(.+)$")


class FileSystemResourceValidator:
    """Checks `__mod__/path` files against mod directories and archives on disk.

    Args:
        mod_roots: Mod name -> directory holding the mod's files, or the
            `zipfile.Path` of its folder inside a packed mod
    """

    def __init__(self, mod_roots: Mapping[str, Union[str, Path, zipfile.Path]]):
        self.mod_roots = {
            mod: root if isinstance(root, zipfile.Path) else Path(root)
            for mod, root in mod_roots.items()
        }
        self._sizes: Dict[str, Tuple[int, int]] = {}

    def resolve(self, path: str) -> Optional[Union[Path, zipfile.Path]]:
        match = _MOD_PATH.match(path)
        if match is None:
            return None
        root = self.mod_roots.get(match.group(1))
        if root is None:
            return None
        return root / match.group(2)

    def check(self, record: ResourceRecord) -> Optional[str]:
        file_path = self.resolve(record.path)
        if file_path is None:
            return "path does not name a known mod"
        if not file_path.is_file():
            return "file not found"
        if record.resource_type is not ResourceType.IMAGE or not (record.min_width or record.min_height):
            return None

        size = self._sizes.get(str(file_path))
        if size is None:
            try:
                with file_path.open("rb") as f, Image.open(f) as image:
                    size = image.size
            except (OSError, zipfile.BadZipFile) as e:
                return f"cannot read image: {e}"
            self._sizes[str(file_path)] = size

        width, height = size
        if width < record.min_width or height < record.min_height:
            return (
                f"image is {width}x{height}, needs at least "
                f"{record.min_width}x{record.min_height}"
            )
        return None


def validate_resources(table: DataTable, validator: ResourceValidator) -> List[ResourceError]:
    """Run a resource validator over every file the table's prototypes refer to."""
    errors: List[ResourceError] = []
    for record in table.resources():
        problem = validator.check(record)
        if problem:
            error = ResourceError(record, problem)
            logger.warning(f"Resource problem: {error}")
            errors.append(error)
    return errors
