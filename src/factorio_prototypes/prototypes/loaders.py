"""
Script executor adapters.

The scripting environment that runs a mod's data-stage scripts is external;
the loader only needs the resulting value tree. An executor runs (or fetches
the result of) one mod's script for one load phase and returns the tree, or
None when the mod has no script for that phase.

DataDumpExecutor reads the evaluated tables the scripting environment dumps
to disk as JSON, one file per mod and phase:

    <dumps_root>/<mod>/data.json
    <dumps_root>/<mod>/data-updates.json
    <dumps_root>/<mod>/data-final-fixes.json
"""

import logging
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol, Tuple, Union

import orjson

from .errors import ScriptExecutionError
from .models import LuaTable, to_value_tree
from .policy import LoadPhase


class ScriptExecutor(Protocol):
    """Runs one mod's script for one phase. Used strictly one call at a time."""

    def execute(self, mod: str, phase: LoadPhase) -> Optional[LuaTable]:
        """Return the value tree, or None if the mod has no script for the phase.

        Raises:
            ScriptExecutionError: If the script fails
        """
        ...


def _as_tree(mod: str, data: Any, location: Optional[str]) -> LuaTable:
    try:
        tree = to_value_tree(data)
    except TypeError as e:
        raise ScriptExecutionError(mod, str(e), location) from e
    if not isinstance(tree, LuaTable):
        raise ScriptExecutionError(mod, f"script produced a {type(data).__name__}, not a table", location)
    return tree


class DataDumpExecutor:
    """Executor backed by JSON dumps of evaluated data-stage scripts.

    Args:
        dumps_root: Directory holding one sub-directory per mod
    """

    def __init__(self, dumps_root: Union[str, Path]):
        self.dumps_root = Path(dumps_root)
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.logger.debug(f"DataDumpExecutor initialized for {self.dumps_root}")

    def dump_path(self, mod: str, phase: LoadPhase) -> Path:
        return self.dumps_root / mod / f"{phase.value}.json"

    def execute(self, mod: str, phase: LoadPhase) -> Optional[LuaTable]:
        dump_file = self.dump_path(mod, phase)
        if not dump_file.is_file():
            self.logger.debug(f"No {phase.value} output for mod '{mod}'")
            return None

        try:
            with dump_file.open("rb") as f:  # orjson works with bytes
                data = orjson.loads(f.read())
        except OSError as e:
            raise ScriptExecutionError(mod, f"cannot read script output: {e}", str(dump_file)) from e
        except orjson.JSONDecodeError as e:
            location = f"{dump_file}:{e.lineno}:{e.colno}"
            raise ScriptExecutionError(mod, f"malformed script output: {e.msg}", location) from e

        return _as_tree(mod, data, str(dump_file))


class InMemoryExecutor:
    """Executor over pre-computed script results.

    Args:
        scripts: (mod, phase) -> decoded data or value tree; an exception
                 instance stands for a failing script and is raised as a
                 ScriptExecutionError
    """

    def __init__(self, scripts: Mapping[Tuple[str, LoadPhase], Any]):
        self.scripts = dict(scripts)
        self.calls: list[Tuple[str, LoadPhase]] = []

    def execute(self, mod: str, phase: LoadPhase) -> Optional[LuaTable]:
        self.calls.append((mod, phase))
        if (mod, phase) not in self.scripts:
            return None
        result = self.scripts[(mod, phase)]
        if isinstance(result, ScriptExecutionError):
            raise result
        if isinstance(result, Exception):
            raise ScriptExecutionError(mod, str(result), phase.script_name) from result
        return _as_tree(mod, result, phase.script_name)
