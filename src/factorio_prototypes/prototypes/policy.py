"""
Load phases and override policy.

Mods run their data stage in three phases. Which kinds may be replaced by a
later definition during each phase is game policy, so it is read from a JSON
file rather than hard-coded:

    {
        "phases": {
            "data": {"non_overridable": ["editor-controller"]},
            "data-final-fixes": {"non_overridable": ["entity"]}
        }
    }

Abstract kinds expand to all their concrete descendants. A concrete kind
names only itself, so listing `item` leaves `ammo` and `tool` overridable.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Union

import orjson

from .errors import ConfigError
from .registry import TypeRegistry

logger = logging.getLogger(__name__)


class LoadPhase(Enum):
    """Data stage phases, in the order they run."""
    DATA = "data"
    UPDATES = "data-updates"
    FINAL_FIXES = "data-final-fixes"

    @property
    def script_name(self) -> str:
        """File name of the phase's script (`data-updates.lua`)."""
        return f"{self.value}.lua"

    @classmethod
    def ordered(cls) -> list["LoadPhase"]:
        return [cls.DATA, cls.UPDATES, cls.FINAL_FIXES]


def _concrete_kinds(kinds: Iterable[str], registry: TypeRegistry) -> List[str]:
    # A concrete parent such as `item` names itself only, not its subkinds
    concrete: List[str] = []
    for kind in kinds:
        expanded = registry.expand([kind]) if registry.is_abstract(kind) else (kind,)
        for name in expanded:
            if name not in concrete:
                concrete.append(name)
    return concrete


class OverridePolicy:
    """Per-phase sets of concrete kinds whose entries may not be replaced.

    The default policy forbids nothing.
    """

    def __init__(self, non_overridable: Optional[Mapping[LoadPhase, Iterable[str]]] = None):
        self._non_overridable: Dict[LoadPhase, FrozenSet[str]] = {
            phase: frozenset() for phase in LoadPhase
        }
        for phase, kinds in (non_overridable or {}).items():
            self._non_overridable[phase] = frozenset(kinds)

    def allows_override(self, kind: str, phase: Optional[LoadPhase] = None) -> bool:
        """Whether an existing (kind, name) entry may be replaced.

        Without a phase the strictest rule across all phases applies.
        """
        if phase is None:
            return all(kind not in kinds for kinds in self._non_overridable.values())
        return kind not in self._non_overridable[phase]

    def non_overridable(self, phase: LoadPhase) -> FrozenSet[str]:
        return self._non_overridable[phase]

    @classmethod
    def from_dict(cls, data: Any, registry: TypeRegistry) -> "OverridePolicy":
        """Build a policy from decoded JSON data, validated against the registry.

        Raises:
            ConfigError: If the layout is wrong or a phase or kind is unknown
        """
        if not isinstance(data, dict):
            raise ConfigError("Override policy must be a JSON object")
        phases = data.get("phases", {})
        if not isinstance(phases, dict):
            raise ConfigError("Override policy 'phases' must be an object")

        rules: Dict[LoadPhase, Iterable[str]] = {}
        for phase_name, phase_rules in phases.items():
            try:
                phase = LoadPhase(phase_name)
            except ValueError as e:
                raise ConfigError(f"Unknown load phase '{phase_name}' in override policy") from e
            if not isinstance(phase_rules, dict):
                raise ConfigError(f"Rules for phase '{phase_name}' must be an object")
            kinds = phase_rules.get("non_overridable", [])
            if not isinstance(kinds, list) or not all(isinstance(k, str) for k in kinds):
                raise ConfigError(f"'non_overridable' of phase '{phase_name}' must be a list of kind names")
            unknown = [k for k in kinds if k not in registry]
            if unknown:
                raise ConfigError(
                    f"Override policy names unknown prototype kinds: {', '.join(unknown)}"
                )
            rules[phase] = _concrete_kinds(kinds, registry)

        return cls(rules)

    @classmethod
    def load(cls, path: Union[str, Path], registry: TypeRegistry) -> "OverridePolicy":
        """Read a policy file.

        Raises:
            ConfigError: If the file cannot be read, decoded or validated
        """
        policy_path = Path(path)
        try:
            data = orjson.loads(policy_path.read_bytes())
        except OSError as e:
            raise ConfigError(f"Cannot read override policy {policy_path}: {e}") from e
        except orjson.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in override policy {policy_path}: {e}") from e

        policy = cls.from_dict(data, registry)
        logger.info(f"Loaded override policy from {policy_path}")
        return policy
