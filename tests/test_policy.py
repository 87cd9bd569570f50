"""Tests for load phases and the override policy file."""

import pytest

from factorio_prototypes.prototypes.errors import ConfigError
from factorio_prototypes.prototypes.policy import LoadPhase, OverridePolicy


class TestLoadPhase:
    def test_order(self) -> None:
        assert [phase.value for phase in LoadPhase.ordered()] == [
            "data",
            "data-updates",
            "data-final-fixes",
        ]

    def test_script_name(self) -> None:
        assert LoadPhase.UPDATES.script_name == "data-updates.lua"


class TestOverridePolicy:
    """Test building and querying override policies."""

    def test_default_allows_everything(self) -> None:
        policy = OverridePolicy()
        for phase in LoadPhase:
            assert policy.allows_override("item", phase)
        assert policy.allows_override("item")

    def test_phase_specific(self) -> None:
        policy = OverridePolicy({LoadPhase.DATA: ["item"]})
        assert not policy.allows_override("item", LoadPhase.DATA)
        assert policy.allows_override("item", LoadPhase.UPDATES)
        assert not policy.allows_override("item")
        assert policy.allows_override("fluid")

    def test_from_dict_expands_abstract_kinds(self, registry) -> None:
        data = {"phases": {"data-final-fixes": {"non_overridable": ["crafting-machine", "fluid"]}}}
        policy = OverridePolicy.from_dict(data, registry)
        forbidden = policy.non_overridable(LoadPhase.FINAL_FIXES)
        assert {"assembling-machine", "furnace", "rocket-silo", "fluid"} <= forbidden
        assert "crafting-machine" not in forbidden
        assert policy.non_overridable(LoadPhase.DATA) == frozenset()

    def test_concrete_parent_names_only_itself(self, registry) -> None:
        data = {"phases": {"data": {"non_overridable": ["item"]}}}
        policy = OverridePolicy.from_dict(data, registry)
        assert policy.non_overridable(LoadPhase.DATA) == frozenset({"item"})
        assert policy.allows_override("ammo", LoadPhase.DATA)
        assert policy.allows_override("tool", LoadPhase.DATA)

    def test_unknown_phase_keeps_cause(self, registry) -> None:
        with pytest.raises(ConfigError) as exc_info:
            OverridePolicy.from_dict({"phases": {"data-stage": {}}}, registry)
        assert isinstance(exc_info.value.__cause__, ValueError)

    @pytest.mark.parametrize(
        "data",
        [
            [],
            {"phases": []},
            {"phases": {"data-stage": {}}},
            {"phases": {"data": []}},
            {"phases": {"data": {"non_overridable": "item"}}},
            {"phases": {"data": {"non_overridable": ["spaceship"]}}},
        ],
    )
    def test_from_dict_rejects_bad_layout(self, registry, data) -> None:
        with pytest.raises(ConfigError):
            OverridePolicy.from_dict(data, registry)

    def test_load_file(self, tmp_path, registry) -> None:
        path = tmp_path / "policy.json"
        path.write_text('{"phases": {"data-updates": {"non_overridable": ["editor-controller"]}}}')
        policy = OverridePolicy.load(path, registry)
        assert not policy.allows_override("editor-controller", LoadPhase.UPDATES)
        assert policy.allows_override("editor-controller", LoadPhase.DATA)

    def test_load_missing_file(self, tmp_path, registry) -> None:
        with pytest.raises(ConfigError, match="Cannot read"):
            OverridePolicy.load(tmp_path / "nope.json", registry)

    def test_load_invalid_json(self, tmp_path, registry) -> None:
        path = tmp_path / "policy.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError, match="Invalid JSON"):
            OverridePolicy.load(path, registry)
