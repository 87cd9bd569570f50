"""
Load session: runs every mod through every data phase into one DataTable.

Provides the high-level API: hand PrototypeLoader a registry, a script
executor and the mods in load order, get back a LoadReport holding the
frozen table plus every problem found on the way.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, List, Mapping, Optional, Sequence

from .conversion import ConversionEngine
from .datatable import DataTable
from .errors import (
    ConfigError,
    ConversionError,
    OverrideNotAllowed,
    ScriptExecutionError,
    StructuralError,
    UnknownPrototypeType,
)
from .loaders import DataDumpExecutor, ScriptExecutor
from .policy import LoadPhase, OverridePolicy
from .registry import TypeRegistry, default_registry
from .validation import (
    BrokenReference,
    FileSystemResourceValidator,
    PostLoadValidator,
    ResourceError,
    ResourceValidator,
    validate_resources,
)

if TYPE_CHECKING:
    from ..settings import AppSettings


@dataclass(frozen=True)
class OverrideRecord:
    """A (kind, name) that a mod defined again, replaced or not."""
    kind: str
    name: str
    previous_mod: Optional[str]
    mod: str
    phase: LoadPhase

    def __str__(self) -> str:
        return (
            f"{self.kind} '{self.name}' from mod '{self.previous_mod}' "
            f"redefined by mod '{self.mod}' during {self.phase.value}"
        )


@dataclass
class LoadReport:
    """Outcome of one load session.

    `locale` is the table that localised names and descriptions render against.
    """
    table: DataTable
    mods: List[str] = field(default_factory=list)
    script_errors: List[ScriptExecutionError] = field(default_factory=list)
    structural_errors: List[StructuralError] = field(default_factory=list)
    unknown_kinds: List[UnknownPrototypeType] = field(default_factory=list)
    conversion_errors: List[ConversionError] = field(default_factory=list)
    overrides: List[OverrideRecord] = field(default_factory=list)
    rejected_overrides: List[OverrideRecord] = field(default_factory=list)
    broken_references: List[BrokenReference] = field(default_factory=list)
    resource_errors: List[ResourceError] = field(default_factory=list)
    locale: Mapping[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """True when loading and validation found no problem at all."""
        return not (
            self.script_errors
            or self.structural_errors
            or self.unknown_kinds
            or self.conversion_errors
            or self.rejected_overrides
            or self.broken_references
            or self.resource_errors
        )

    def summary(self) -> str:
        return (
            f"{len(self.table)} prototypes from {len(self.mods)} mods; "
            f"{len(self.script_errors)} script errors, "
            f"{len(self.structural_errors)} structural errors, "
            f"{len(self.unknown_kinds)} unknown kinds, "
            f"{len(self.conversion_errors)} conversion errors, "
            f"{len(self.overrides)} overrides ({len(self.rejected_overrides)} rejected), "
            f"{len(self.broken_references)} broken references, "
            f"{len(self.resource_errors)} resource errors"
        )


class PrototypeLoader:
    """Loads mods phase by phase into a DataTable.

    Phases run in order (data, data-updates, data-final-fixes); within each
    phase the mods run strictly one after another in the given order. A
    script failure drops the mod from the remaining phases; prototypes it
    already committed stay.

    Args:
        registry: Kind catalogue; the default registry when None
        executor: Script executor adapter
        policy: Override policy; forbids nothing when None
        settings: Application settings (worker count when not given)
        max_workers: Threads converting prototypes within one mod's tree
        resource_validator: When given, referenced files are checked after loading
        locale: Locale data handed to conversion contexts
    """

    def __init__(
        self,
        registry: Optional[TypeRegistry],
        executor: ScriptExecutor,
        policy: Optional[OverridePolicy] = None,
        settings: Optional["AppSettings"] = None,
        max_workers: Optional[int] = None,
        resource_validator: Optional[ResourceValidator] = None,
        locale: Optional[Mapping[str, str]] = None,
    ):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.registry = registry or default_registry()
        self.executor = executor
        self.policy = policy or OverridePolicy()
        self.settings = settings
        if max_workers is None:
            max_workers = settings.loader.max_workers if settings else 1
        self.max_workers = max(1, max_workers)
        self.resource_validator = resource_validator
        self.locale: Mapping[str, str] = locale or {}
        self.engine = ConversionEngine(self.registry)

    def load(self, mods: Sequence[str]) -> LoadReport:
        """Run every mod through every phase, then freeze and validate.

        Args:
            mods: Mod names in load order

        Returns:
            LoadReport with the frozen table and all collected problems
        """
        table = DataTable(self.policy)
        report = LoadReport(table=table, mods=list(mods), locale=self.locale)
        failed: set[str] = set()

        self.logger.info(f"Loading {len(mods)} mods: {', '.join(mods)}")
        for phase in LoadPhase.ordered():
            self.logger.info(f"Running phase '{phase.value}'")
            for mod in mods:
                if mod in failed:
                    continue
                if not self._load_mod_phase(mod, phase, table, report):
                    failed.add(mod)

        table.freeze()
        report.broken_references = PostLoadValidator(self.registry).validate_all(table)
        if self.resource_validator is not None:
            report.resource_errors = validate_resources(table, self.resource_validator)

        self.logger.info(f"Prototype loading completed: {report.summary()}")
        return report

    def _load_mod_phase(self, mod: str, phase: LoadPhase, table: DataTable, report: LoadReport) -> bool:
        """Execute and commit one mod's script for one phase.

        Returns:
            False if the script failed and the mod must be skipped from now on
        """
        try:
            tree = self.executor.execute(mod, phase)
        except ScriptExecutionError as e:
            self.logger.error(str(e))
            report.script_errors.append(e)
            return False
        if tree is None:
            return True

        ctx = self.engine.context(mod, table=table.view(), locale=self.locale, phase=phase)
        try:
            conversion = self.engine.convert_tree(tree, ctx, self.max_workers)
        except StructuralError as e:
            e.mod = mod
            self.logger.error(str(e))
            report.structural_errors.append(e)
            return True

        for problem in conversion.structural_errors:
            self.logger.error(str(problem))
            report.structural_errors.append(problem)
        for unknown in conversion.unknown_kinds:
            self.logger.error(str(unknown))
            report.unknown_kinds.append(unknown)

        committed = 0
        for outcome in conversion.converted:
            if outcome.error is not None:
                self.logger.error(f"Conversion failed: {outcome.error}")
                report.conversion_errors.append(outcome.error)
                continue

            kind, name = outcome.kind, outcome.name
            previous_mod = table.origin(kind, name)
            try:
                previous = table.insert(kind, name, outcome.instance, phase, mod, outcome.resources)
            except OverrideNotAllowed as e:
                self.logger.warning(f"{e} (mod '{mod}', defined by '{previous_mod}')")
                report.rejected_overrides.append(OverrideRecord(kind, name, previous_mod, mod, phase))
                continue

            if previous is not None:
                record = OverrideRecord(kind, name, previous_mod, mod, phase)
                self.logger.debug(f"Override: {record}")
                report.overrides.append(record)
            committed += 1

        self.logger.info(
            f"{phase.value}: mod '{mod}' committed {committed} prototypes "
            f"({len(conversion.errors)} failed)"
        )
        return True


def load_from_settings(settings: "AppSettings", registry: Optional[TypeRegistry] = None) -> LoadReport:
    """Discover, order and load the configured mods from script output dumps.

    Raises:
        ConfigError: If paths are missing or the override policy is invalid
        ModDependencyError: If the mods cannot be ordered
    """
    from ..mods import discover_mods, load_locale, newest_versions, read_mod_list, sort_load_order

    logger = logging.getLogger(__name__)
    registry = registry or default_registry()

    search_dirs: List[Path] = [
        path for path in (settings.paths.data_path, settings.paths.mods_path) if path is not None
    ]
    if not search_dirs:
        raise ConfigError("Neither a Factorio path nor a mods path is configured")
    dumps_path = settings.paths.dumps_path
    if dumps_path is None:
        raise ConfigError("No script output (dumps) path is configured")

    discovered = []
    for directory in search_dirs:
        discovered.extend(discover_mods(directory))
    discovered = newest_versions(discovered)

    active = settings.active_mods
    mod_list = settings.paths.mod_list_file
    if not active and settings.mods.use_mod_list and mod_list is not None and mod_list.is_file():
        active = read_mod_list(mod_list)
        logger.debug(f"Active mods taken from {mod_list}")
    if active:
        found = {info.name for info in discovered}
        for missing in (name for name in active if name not in found):
            logger.warning(f"Active mod '{missing}' was not found")
        discovered = [info for info in discovered if info.name in active]

    ordered = sort_load_order(discovered)

    policy = None
    if settings.paths.override_policy_file:
        policy = OverridePolicy.load(settings.paths.override_policy_file, registry)

    validator = None
    if settings.loader.validate_resources:
        roots = {info.name: info.files_root() for info in ordered if info.path is not None}
        validator = FileSystemResourceValidator(roots)

    loader = PrototypeLoader(
        registry,
        DataDumpExecutor(dumps_path),
        policy=policy,
        settings=settings,
        resource_validator=validator,
        locale=load_locale(ordered, settings.locale.language),
    )
    return loader.load([info.name for info in ordered])
