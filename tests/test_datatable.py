"""Tests for the DataTable."""

import pytest

from factorio_prototypes.prototypes.datatable import DataTable
from factorio_prototypes.prototypes.errors import DataTableError, OverrideNotAllowed, TableFrozen
from factorio_prototypes.prototypes.models import ResourceRecord, ResourceType
from factorio_prototypes.prototypes.policy import LoadPhase, OverridePolicy


@pytest.fixture
def plate(convert, make_sample):
    return convert("item", make_sample("item"))


@pytest.fixture
def water(convert, make_sample):
    return convert("fluid", make_sample("fluid"))


class TestInsert:
    """Test inserting and replacing instances."""

    def test_insert_into_free_slot(self, table, plate) -> None:
        assert table.insert("item", "iron-plate", plate, LoadPhase.DATA, "base") is None
        assert table.get("item", "iron-plate") is plate
        assert table.origin("item", "iron-plate") == "base"
        assert len(table) == 1

    def test_overwrite_returns_previous(self, table, convert, make_sample, plate) -> None:
        """The last insert wins and the displaced instance comes back."""
        table.insert("item", "iron-plate", plate, LoadPhase.DATA, "base")
        bigger = convert("item", make_sample("item", stack_size=200))

        previous = table.insert("item", "iron-plate", bigger, LoadPhase.UPDATES, "big-stacks")
        assert previous is plate
        assert table.find("item", "iron-plate").stack_size == 200
        assert table.origin("item", "iron-plate") == "big-stacks"
        assert len(table) == 1

    def test_names_scoped_by_kind(self, table, convert, make_sample, plate) -> None:
        """An item and a fluid may share a name."""
        same_name = convert("fluid", make_sample("fluid", name="iron-plate"))
        table.insert("item", "iron-plate", plate)
        assert table.insert("fluid", "iron-plate", same_name) is None
        assert len(table) == 2
        assert table.kinds() == ["item", "fluid"]

    def test_instance_must_match_key(self, table, plate) -> None:
        with pytest.raises(DataTableError):
            table.insert("fluid", "iron-plate", plate)
        with pytest.raises(DataTableError):
            table.insert("item", "copper-plate", plate)
        assert len(table) == 0

    def test_resources_follow_current_instance(self, table, plate) -> None:
        first = ResourceRecord("a.png", ResourceType.IMAGE, kind="item", prototype_name="iron-plate", mod="base")
        second = ResourceRecord("b.png", ResourceType.IMAGE, kind="item", prototype_name="iron-plate", mod="hd")
        table.insert("item", "iron-plate", plate, mod="base", resources=[first])
        assert table.resources() == [first]
        table.insert("item", "iron-plate", plate, mod="hd", resources=[second])
        assert table.resources() == [second]

    def test_mods_in_first_insert_order(self, table, plate, water) -> None:
        table.insert("item", "iron-plate", plate, mod="base")
        table.insert("fluid", "water", water, mod="fluids")
        table.insert("item", "iron-plate", plate, mod="base")
        assert table.mods == ["base", "fluids"]


class TestFreeze:
    """Test the read-only state after loading."""

    def test_insert_after_freeze(self, table, plate, water) -> None:
        table.insert("item", "iron-plate", plate)
        table.freeze()
        with pytest.raises(TableFrozen) as exc_info:
            table.insert("fluid", "water", water)
        assert exc_info.value.kind == "fluid"
        assert len(table) == 1
        assert not table.contains("fluid", "water")

    def test_replace_after_freeze(self, table, convert, make_sample, plate) -> None:
        table.insert("item", "iron-plate", plate)
        table.freeze()
        with pytest.raises(TableFrozen):
            table.insert("item", "iron-plate", convert("item", make_sample("item", stack_size=5)))
        assert table.find("item", "iron-plate") is plate

    def test_freeze_twice(self, table) -> None:
        table.freeze()
        table.freeze()
        assert table.frozen


class TestOverridePolicy:
    """Test the override policy as applied by the table."""

    def test_forbidden_override(self, plate, convert, make_sample) -> None:
        table = DataTable(OverridePolicy({LoadPhase.FINAL_FIXES: ["item"]}))
        table.insert("item", "iron-plate", plate, LoadPhase.DATA, "base")
        other = convert("item", make_sample("item", stack_size=7))

        with pytest.raises(OverrideNotAllowed) as exc_info:
            table.insert("item", "iron-plate", other, LoadPhase.FINAL_FIXES, "late-mod")
        assert exc_info.value.phase == "data-final-fixes"
        assert table.find("item", "iron-plate") is plate
        assert table.origin("item", "iron-plate") == "base"

        # Other phases are not affected
        assert table.insert("item", "iron-plate", other, LoadPhase.UPDATES, "mid-mod") is plate

    def test_first_definition_always_allowed(self, plate) -> None:
        table = DataTable(OverridePolicy({LoadPhase.DATA: ["item"]}))
        assert table.insert("item", "iron-plate", plate, LoadPhase.DATA, "base") is None


class TestQueries:
    """Test lookups and views."""

    def test_find_missing(self, table) -> None:
        assert table.get("item", "nothing") is None
        with pytest.raises(KeyError):
            table.find("item", "nothing")

    def test_find_any(self, table, plate, water) -> None:
        table.insert("item", "iron-plate", plate)
        table.insert("fluid", "water", water)
        assert table.find_any(("item", "fluid"), "water") is water
        assert table.find_any(("item",), "water") is None

    def test_membership_and_iteration(self, table, plate, water) -> None:
        table.insert("item", "iron-plate", plate)
        table.insert("fluid", "water", water)
        assert ("item", "iron-plate") in table
        assert ("fluid", "iron-plate") not in table
        assert "iron-plate" not in table
        assert list(table) == [plate, water]

    def test_prototypes_mapping_is_read_only(self, table, plate) -> None:
        table.insert("item", "iron-plate", plate)
        items = table.prototypes("item")
        assert dict(items) == {"iron-plate": plate}
        with pytest.raises(TypeError):
            items["copper-plate"] = plate  # type: ignore[index]
        assert dict(table.prototypes("fluid")) == {}

    def test_view_tracks_table(self, table, plate) -> None:
        view = table.view()
        assert len(view) == 0
        table.insert("item", "iron-plate", plate, mod="base")
        assert view.get("item", "iron-plate") is plate
        assert view.origin("item", "iron-plate") == "base"
        assert not hasattr(view, "insert")
        table.freeze()
        assert view.frozen
