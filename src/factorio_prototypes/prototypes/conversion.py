"""
Conversion engine: value tree nodes to typed prototype instances.

The engine walks a prototype's field table against the flattened descriptor
list the registry holds for its kind. Conversion of one prototype is
all-or-nothing; a failure anywhere below it surfaces as a ConversionError
carrying the full field path plus the mod, kind and prototype name.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .errors import (
    ConversionError,
    DuplicateKeyInTable,
    FieldPath,
    MissingRequiredField,
    StructuralError,
    UnknownPrototypeType,
)
from .fields import Field, run_checks
from .models import LuaTable, LuaValue, Prototype, ResourceRecord, lua_type_name
from .registry import TypeRegistry

if TYPE_CHECKING:
    from .datatable import DataTableView
    from .policy import LoadPhase

logger = logging.getLogger(__name__)


class ConversionContext:
    """Per-conversion state handed down to every field type.

    Attributes:
        engine: Engine used for nested structures
        mod: Name of the mod whose data is converted
        table: Read-only view of the data table so far (informational only)
        locale: Locale key -> text, used for diagnostics only
        phase: Load phase the data comes from
        resources: Files recorded while converting (one prototype's worth)
    """

    def __init__(
        self,
        engine: "ConversionEngine",
        mod: str = "",
        table: Optional["DataTableView"] = None,
        locale: Optional[Mapping[str, str]] = None,
        phase: Optional["LoadPhase"] = None,
    ):
        self.engine = engine
        self.mod = mod
        self.table = table
        self.locale: Mapping[str, str] = locale or {}
        self.phase = phase
        self.resources: List[ResourceRecord] = []

    def add_resource(self, record: ResourceRecord) -> None:
        self.resources.append(record)

    def fork(self) -> "ConversionContext":
        """Fresh context sharing everything except the recorded resources."""
        return ConversionContext(self.engine, self.mod, self.table, self.locale, self.phase)


@dataclass(frozen=True)
class Declaration:
    """One prototype as declared in a value tree: kind -> name -> fields."""
    kind: str
    name: str
    fields: LuaTable


@dataclass
class ConvertedPrototype:
    """Outcome of converting one declaration: an instance or an error."""
    kind: str
    name: str
    instance: Optional[Prototype] = None
    resources: Tuple[ResourceRecord, ...] = ()
    error: Optional[ConversionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class TreeConversion:
    """Outcomes of one value tree, in tree order."""
    converted: List[ConvertedPrototype] = field(default_factory=list)
    unknown_kinds: List[UnknownPrototypeType] = field(default_factory=list)
    structural_errors: List[StructuralError] = field(default_factory=list)

    @property
    def instances(self) -> List[ConvertedPrototype]:
        return [outcome for outcome in self.converted if outcome.ok]

    @property
    def errors(self) -> List[ConversionError]:
        return [outcome.error for outcome in self.converted if outcome.error is not None]


class ConversionEngine:
    """Maps value tree nodes to typed instances, guided by a type registry.

    The engine holds no per-call state, so one instance may convert several
    prototypes concurrently.
    """

    def __init__(self, registry: TypeRegistry):
        self.registry = registry
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def context(self, mod: str = "", **kwargs: Any) -> ConversionContext:
        return ConversionContext(self, mod, **kwargs)

    def extract(
        self,
        fields: Sequence[Field],
        table: LuaTable,
        path: FieldPath,
        ctx: ConversionContext,
    ) -> Dict[str, Any]:
        """Convert every declared field of a table.

        Absent optional fields get their declared default; keys the
        descriptors do not name are ignored.

        Returns:
            Converted values keyed by attribute name

        Raises:
            ConversionError: On the first field that fails
        """
        duplicates = table.duplicate_keys()
        if duplicates:
            raise DuplicateKeyInTable(path, duplicates[0])

        values: Dict[str, Any] = {}
        for descriptor in fields:
            raw = table.get(descriptor.name)
            if raw is None:
                if descriptor.required:
                    raise MissingRequiredField(path + (descriptor.name,))
                values[descriptor.attr] = descriptor.default_value()
                continue
            values[descriptor.attr] = descriptor.field_type.convert(
                raw, path + (descriptor.name,), ctx
            )
        return values

    def convert(self, kind: str, name: str, node: LuaValue, ctx: ConversionContext) -> Prototype:
        """Convert one prototype's field table into an instance of `kind`.

        Raises:
            UnknownPrototypeType: If the kind is unknown or abstract
            StructuralError: If node is not a table or names another prototype
            ConversionError: If any field fails (annotated with mod/kind/name)
        """
        instance_class = self.registry.instance_class(kind)
        if not isinstance(node, LuaTable):
            raise StructuralError(
                (kind, name), f"expected a field table, got {lua_type_name(node)}"
            )
        _check_identity(kind, name, node)

        try:
            values = self.extract(self.registry.descriptors(kind), node, (), ctx)
            run_checks(self.registry.checks(kind), {"name": name, **values}, (), kind)
        except ConversionError as e:
            raise e.attach(ctx.mod, kind, name)
        return instance_class(name=name, **values)

    def declarations(
        self,
        tree: LuaValue,
        problems: Optional[List[StructuralError]] = None,
    ) -> List[Declaration]:
        """Check the kind -> name -> field table shape and list declarations.

        Args:
            tree: Value tree produced by one script
            problems: When given, malformed kind blocks and prototype entries
                are recorded here and skipped instead of raised

        Raises:
            StructuralError: If the top level is not a table, or (without
                `problems`) naming the first offending path
        """
        if not isinstance(tree, LuaTable):
            raise StructuralError((), f"expected a table keyed by prototype kind, got {lua_type_name(tree)}")

        def reject(error: StructuralError) -> None:
            if problems is None:
                raise error
            problems.append(error)

        declarations: List[Declaration] = []
        for kind in tree.duplicate_keys():
            reject(StructuralError((kind,), "prototype kind appears more than once"))
        seen_kinds: set[Any] = set()
        for kind, block in tree:
            if kind in seen_kinds:
                continue
            seen_kinds.add(kind)
            if not isinstance(kind, str):
                reject(StructuralError((kind,), "prototype kinds must be strings"))
                continue
            if not isinstance(block, LuaTable):
                reject(StructuralError((kind,), f"expected a table keyed by prototype name, got {lua_type_name(block)}"))
                continue
            for name in block.duplicate_keys():
                reject(StructuralError((kind, name), "prototype name appears more than once"))
            seen_names: set[Any] = set()
            for name, fields in block:
                if name in seen_names:
                    continue
                seen_names.add(name)
                if not isinstance(name, str):
                    reject(StructuralError((kind, name), "prototype names must be strings"))
                    continue
                if not isinstance(fields, LuaTable):
                    reject(StructuralError((kind, name), f"expected a field table, got {lua_type_name(fields)}"))
                    continue
                try:
                    _check_identity(kind, name, fields)
                except StructuralError as e:
                    reject(e)
                    continue
                declarations.append(Declaration(kind, name, fields))
        return declarations

    def convert_tree(self, tree: LuaValue, ctx: ConversionContext, max_workers: int = 1) -> TreeConversion:
        """Convert every prototype of a value tree.

        Each prototype is converted on its own context fork; the outcomes are
        returned in tree order whether or not a thread pool was used. Kinds the
        registry does not know (or only knows as abstract) are reported once
        per kind and their blocks skipped, as are malformed entries.

        Raises:
            StructuralError: If the tree is not a table keyed by kind
        """
        result = TreeConversion()
        known: List[Declaration] = []
        reported: set[str] = set()
        declarations = self.declarations(tree, result.structural_errors)
        for problem in result.structural_errors:
            problem.mod = ctx.mod
        for declaration in declarations:
            kind = declaration.kind
            if kind in self.registry and not self.registry.is_abstract(kind):
                known.append(declaration)
            elif kind not in reported:
                reported.add(kind)
                unknown = UnknownPrototypeType(kind)
                unknown.mod = ctx.mod
                result.unknown_kinds.append(unknown)

        if max_workers > 1 and len(known) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                result.converted = list(
                    executor.map(lambda declaration: self._convert_declaration(declaration, ctx), known)
                )
        else:
            result.converted = [self._convert_declaration(declaration, ctx) for declaration in known]
        return result

    def _convert_declaration(self, declaration: Declaration, ctx: ConversionContext) -> ConvertedPrototype:
        local = ctx.fork()
        kind, name = declaration.kind, declaration.name
        try:
            instance = self.convert(kind, name, declaration.fields, local)
        except ConversionError as e:
            return ConvertedPrototype(kind, name, error=e)
        resources = tuple(record.bound_to(kind, name, ctx.mod) for record in local.resources)
        return ConvertedPrototype(kind, name, instance, resources)


def _check_identity(kind: str, name: str, fields: LuaTable) -> None:
    """The optional `type`/`name` entries must agree with the table keys."""
    declared_type = fields.get("type")
    if declared_type is not None and declared_type != kind:
        raise StructuralError((kind, name, "type"), f"declares type {declared_type!r} under kind '{kind}'")
    declared_name = fields.get("name")
    if declared_name is not None and declared_name != name:
        raise StructuralError((kind, name, "name"), f"declares name {declared_name!r} under key '{name}'")
