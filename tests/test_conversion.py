"""Tests for the conversion engine and the field types it drives."""

import pytest

from factorio_prototypes.prototypes.conversion import ConversionEngine
from factorio_prototypes.prototypes.errors import (
    DuplicateKeyInTable,
    InvalidFieldValue,
    MissingRequiredField,
    NestedConversionFailure,
    StructuralError,
    UnexpectedFieldType,
    UnknownEnumVariant,
    UnknownPrototypeType,
    format_path,
)
from factorio_prototypes.prototypes.models import (
    LocalisedString,
    LuaTable,
    PrototypeRef,
    ResourceType,
    to_value_tree,
)
from factorio_prototypes.prototypes.fields import MapOf, OneOf
from factorio_prototypes.prototypes.types import VECTOR, Color


def layers(drill):
    return drill["graphics_set"]["animation"]["layers"]


class TestFieldPaths:
    def test_format_path(self) -> None:
        assert format_path(("graphics_set", "animation", "layers", 2, "filename")) == (
            "graphics_set.animation.layers[2].filename"
        )
        assert format_path(("ingredients", 1, 2)) == "ingredients[1][2]"
        assert format_path(()) == "<root>"


class TestPrototypeConversion:
    """Test conversion of single prototypes."""

    def test_item(self, convert) -> None:
        """Declared fields are converted, absent optional ones take defaults."""
        item = convert("item", {"name": "iron-plate", "icon": "__base__/i.png", "stack_size": 100})
        assert item.kind == "item"
        assert item.name == "iron-plate"
        assert item.stack_size == 100
        assert item.icon_size == 64
        assert item.order == ""
        assert item.place_result is None
        assert item.fuel_value == 0.0

    def test_recipe_defaults(self, convert, make_sample) -> None:
        """Recipes default to the crafting category and half a second."""
        recipe = convert("recipe", make_sample("recipe"))
        assert recipe.energy_required == 0.5
        assert recipe.category == PrototypeRef(("recipe-category",), "crafting")
        assert recipe.result == PrototypeRef(("item",), "iron-gear-wheel")
        assert recipe.enabled is True

    def test_overridden_default(self, convert, make_sample) -> None:
        recipe = convert("recipe", make_sample("recipe", energy_required=1, category="smelting"))
        assert recipe.energy_required == 1.0
        assert recipe.category.name == "smelting"

    def test_positional_ingredient(self, convert, make_sample) -> None:
        """`{"iron-plate", 2}` expands to name and amount."""
        recipe = convert("recipe", make_sample("recipe"))
        ingredient = recipe.ingredients[0]
        assert ingredient.type == "item"
        assert ingredient.name == PrototypeRef(("item",), "iron-plate")
        assert ingredient.amount == 2

    def test_tagged_union_selects_variant(self, convert, make_sample) -> None:
        """The `type` entry picks the fluid ingredient layout."""
        data = make_sample(
            "recipe",
            ingredients=[{"type": "fluid", "name": "water", "amount": 10}, ["iron-plate", 1]],
        )
        recipe = convert("recipe", data)
        fluid, item = recipe.ingredients
        assert fluid.structure == "fluid_ingredient"
        assert fluid.name == PrototypeRef(("fluid",), "water")
        assert fluid.amount == 10.0
        assert fluid.fluidbox_index == 0
        assert item.structure == "item_ingredient"

    def test_lists_become_tuples(self, convert, make_sample) -> None:
        drill = convert("mining-drill", make_sample("mining-drill"))
        assert isinstance(drill.resource_categories, tuple)
        assert drill.resource_categories == (PrototypeRef(("resource-category",), "basic-solid"),)

    def test_unknown_keys_ignored(self, convert, make_sample) -> None:
        item = convert("item", make_sample("item", some_future_field={"x": 1}))
        assert item.stack_size == 100

    def test_keyword_field(self, convert) -> None:
        """A field named like a Python keyword is stored with a trailing underscore."""
        font = convert("font", {"name": "default-bold", "size": 14, "from": "default-bold"})
        assert font.from_ == "default-bold"
        assert font.field_values()["from_"] == "default-bold"

    def test_instances_are_immutable(self, convert, make_sample) -> None:
        item = convert("item", make_sample("item"))
        with pytest.raises(AttributeError):
            item.stack_size = 1


class TestNumbers:
    """Test integer and float handling."""

    def test_integral_float_accepted_as_integer(self, convert, make_sample) -> None:
        item = convert("item", make_sample("item", stack_size=50.0))
        assert item.stack_size == 50
        assert isinstance(item.stack_size, int)

    def test_fractional_float_rejected_as_integer(self, convert, make_sample) -> None:
        with pytest.raises(UnexpectedFieldType) as exc_info:
            convert("item", make_sample("item", stack_size=1.5))
        assert exc_info.value.path == ("stack_size",)
        assert exc_info.value.expected == "integer"

    def test_boolean_is_not_a_number(self, convert, make_sample) -> None:
        with pytest.raises(UnexpectedFieldType):
            convert("item", make_sample("item", stack_size=True))
        with pytest.raises(UnexpectedFieldType) as exc_info:
            convert("mining-drill", make_sample("mining-drill", mining_speed=False))
        assert exc_info.value.actual == "boolean"

    def test_range(self, convert, make_sample) -> None:
        with pytest.raises(InvalidFieldValue) as exc_info:
            convert("item", make_sample("item", stack_size=0))
        assert exc_info.value.value == 0

    def test_integer_accepted_as_float(self, convert, make_sample) -> None:
        drill = convert("mining-drill", make_sample("mining-drill", mining_speed=1))
        assert drill.mining_speed == 1.0
        assert isinstance(drill.mining_speed, float)


class TestConversionErrors:
    """Test error reporting: one error per prototype, with its full path."""

    def test_missing_required_field(self, convert, make_sample) -> None:
        with pytest.raises(MissingRequiredField) as exc_info:
            convert("item", make_sample("item", stack_size=None))
        error = exc_info.value
        assert error.path == ("stack_size",)
        assert error.mod == "test-mod"
        assert error.kind == "item"
        assert error.prototype_name == "iron-plate"
        assert str(error) == "item 'iron-plate' from mod 'test-mod': stack_size: required field is missing"

    def test_deep_path(self, convert, make_sample) -> None:
        """Errors deep inside nested structures name the whole path."""
        data = make_sample("mining-drill")
        layers(data)[1]["filename"] = 5
        with pytest.raises(UnexpectedFieldType) as exc_info:
            convert("mining-drill", data)
        error = exc_info.value
        assert error.path == ("graphics_set", "animation", "layers", 2, "filename")
        assert error.field == "graphics_set.animation.layers[2].filename"
        assert error.actual == "integer"
        assert error.prototype_name == "electric-mining-drill"

    def test_list_stops_at_first_bad_element(self, convert, make_sample) -> None:
        data = make_sample("mining-drill")
        layers(data).append({"filename": "x.png"})
        layers(data)[1]["frame_count"] = "eight"
        with pytest.raises(UnexpectedFieldType) as exc_info:
            convert("mining-drill", data)
        assert exc_info.value.path[3] == 2

    def test_duplicate_key(self, engine, ctx) -> None:
        node = LuaTable([("icon", "a.png"), ("stack_size", 1), ("stack_size", 2)])
        with pytest.raises(DuplicateKeyInTable) as exc_info:
            engine.convert("item", "iron-plate", node, ctx)
        assert exc_info.value.key == "stack_size"

    def test_duplicate_key_in_nested_table(self, engine, ctx, make_sample) -> None:
        pump = to_value_tree(make_sample("offshore-pump", fluid_box=None))
        pump = LuaTable(list(pump) + [("fluid_box", LuaTable([("height", 1), ("height", 2)]))])
        with pytest.raises(DuplicateKeyInTable) as exc_info:
            engine.convert("offshore-pump", "offshore-pump", pump, ctx)
        assert exc_info.value.path == ("fluid_box",)

    def test_unknown_enum_variant(self, convert, make_sample) -> None:
        data = make_sample("mining-drill")
        data["energy_source"]["usage_priority"] = "whenever"
        with pytest.raises(UnknownEnumVariant) as exc_info:
            convert("mining-drill", data)
        error = exc_info.value
        assert error.path == ("energy_source", "usage_priority")
        assert error.value == "whenever"
        assert "secondary-input" in error.allowed

    def test_unknown_union_tag(self, convert, make_sample) -> None:
        data = make_sample("mining-drill", energy_source={"type": "nuclear"})
        with pytest.raises(UnknownEnumVariant) as exc_info:
            convert("mining-drill", data)
        assert exc_info.value.path == ("energy_source", "type")

    def test_missing_union_tag(self, convert, make_sample) -> None:
        """Energy sources have no default layout."""
        data = make_sample("mining-drill", energy_source={"usage_priority": "secondary-input"})
        with pytest.raises(MissingRequiredField) as exc_info:
            convert("mining-drill", data)
        assert exc_info.value.path == ("energy_source", "type")

    def test_wrong_shape_for_every_alternative(self, convert, make_sample) -> None:
        """A size that is neither a number nor a table is a plain type mismatch."""
        data = make_sample("mining-drill")
        layers(data)[0]["size"] = "large"
        with pytest.raises(UnexpectedFieldType) as exc_info:
            convert("mining-drill", data)
        error = exc_info.value
        assert error.path == ("graphics_set", "animation", "layers", 1, "size")
        assert error.expected == "integer or table"
        assert error.actual == "string"

    def test_bad_field_inside_table_sound(self, convert) -> None:
        """Only the table layout accepts a keyed sound, so its error surfaces unchanged."""
        data = {
            "name": "track",
            "track_type": "main-track",
            "sound": {"filename": "__base__/sound/a.ogg", "volume": "loud"},
        }
        with pytest.raises(UnexpectedFieldType) as exc_info:
            convert("ambient-sound", data)
        assert exc_info.value.path == ("sound", "volume")

    def test_ambiguous_alternatives(self, ctx) -> None:
        field_type = OneOf(VECTOR, MapOf(VECTOR))
        with pytest.raises(NestedConversionFailure) as exc_info:
            field_type.convert(to_value_tree({"x": "left"}), ("offset",), ctx)
        error = exc_info.value
        assert error.path == ("offset",)
        assert [cause.path for cause in error.causes] == [("offset", "x"), ("offset", "x")]
        assert "no alternative matched" in str(error)

    def test_keyed_table_is_not_an_array(self, convert, make_sample) -> None:
        data = make_sample("mining-drill", resource_categories={"1": "basic-solid"})
        with pytest.raises(UnexpectedFieldType) as exc_info:
            convert("mining-drill", data)
        assert exc_info.value.path == ("resource_categories",)


class TestSpecialTypes:
    """Test colors, energy strings and localised strings."""

    def test_color_in_unit_range(self, convert, make_sample) -> None:
        fluid = convert("fluid", make_sample("fluid"))
        assert fluid.base_color == Color(r=0.0, g=0.34, b=0.6, a=1.0)

    def test_color_in_byte_range(self, convert, make_sample) -> None:
        fluid = convert("fluid", make_sample("fluid", base_color={"r": 255, "g": 51, "b": 0}))
        assert fluid.base_color == Color(r=1.0, g=0.2, b=0.0, a=1.0)

    def test_color_positional(self, convert, make_sample) -> None:
        fluid = convert("fluid", make_sample("fluid", flow_color=[0.5, 0.25, 0, 0.5]))
        assert fluid.flow_color == Color(r=0.5, g=0.25, b=0.0, a=0.5)

    @pytest.mark.parametrize("components", [[0.5], [0.5, 0.5], [0.1, 0.2, 0.3, 1, 1]])
    def test_color_array_length(self, convert, make_sample, components) -> None:
        with pytest.raises(InvalidFieldValue) as exc_info:
            convert("fluid", make_sample("fluid", base_color=components))
        assert exc_info.value.path == ("base_color",)
        assert exc_info.value.value == len(components)

    def test_power(self, convert, make_sample) -> None:
        drill = convert("mining-drill", make_sample("mining-drill"))
        assert drill.energy_usage == 90000.0

    def test_energy(self, convert, make_sample) -> None:
        item = convert("item", make_sample("item", fuel_value="4MJ", fuel_category="chemical"))
        assert item.fuel_value == 4_000_000.0

    def test_wrong_energy_unit(self, convert, make_sample) -> None:
        with pytest.raises(InvalidFieldValue) as exc_info:
            convert("mining-drill", make_sample("mining-drill", energy_usage="90kJ"))
        assert "unit must be 'W'" in str(exc_info.value)

    def test_localised_name_literal(self, convert, make_sample) -> None:
        item = convert("item", make_sample("item", localised_name="Iron plate"))
        assert item.localised_name == LocalisedString(None, ("Iron plate",))

    def test_localised_name_with_parameters(self, convert, make_sample) -> None:
        data = make_sample("item", localised_name=["item-name.plate", ["item-name.iron"], 2])
        item = convert("item", data)
        assert item.localised_name == LocalisedString(
            "item-name.plate", (LocalisedString("item-name.iron"), "2")
        )
        locale = {"item-name.plate": "__1__ plate (__2__)", "item-name.iron": "Iron"}
        assert item.localised_name.render(locale) == "Iron plate (2)"

    def test_localised_string_needs_key(self, convert, make_sample) -> None:
        with pytest.raises(UnexpectedFieldType) as exc_info:
            convert("item", make_sample("item", localised_name=[3]))
        assert exc_info.value.path == ("localised_name", 1)


class TestChecks:
    """Test cross-field checks declared on kinds and structures."""

    def test_icon_required(self, convert, make_sample) -> None:
        with pytest.raises(NestedConversionFailure) as exc_info:
            convert("item", make_sample("item", icon=None))
        assert "either icon or icons is required" in str(exc_info.value)

    def test_icons_list_satisfies_icon_check(self, convert, make_sample) -> None:
        item = convert("item", make_sample("item", icon=None, icons=[{"icon": "a.png", "icon_size": 32}]))
        assert item.icons[0].icon_size == 32

    def test_recipe_needs_result(self, convert, make_sample) -> None:
        with pytest.raises(NestedConversionFailure):
            convert("recipe", make_sample("recipe", result=None))

    def test_spectator_controller_name(self, convert) -> None:
        controller = convert("spectator-controller", {"name": "default", "movement_speed": 0.5})
        assert controller.movement_speed == 0.5
        with pytest.raises(NestedConversionFailure) as exc_info:
            convert("spectator-controller", {"name": "other", "movement_speed": 0.5})
        assert 'name must be "default"' in str(exc_info.value)

    def test_spectator_controller_speed(self, convert) -> None:
        with pytest.raises(InvalidFieldValue) as exc_info:
            convert("spectator-controller", {"name": "default", "movement_speed": 0.1})
        assert exc_info.value.path == ("movement_speed",)

    def test_hidden_setting_needs_forced_value(self, convert) -> None:
        data = {"name": "my-setting", "setting_type": "startup", "default_value": True, "hidden": True}
        with pytest.raises(NestedConversionFailure):
            convert("bool-setting", data)
        setting = convert("bool-setting", {**data, "forced_value": False})
        assert setting.forced_value is False

    def test_structure_check(self, convert, make_sample) -> None:
        data = make_sample("mining-drill", collision_box=[[1, 1], [-1, -1]])
        with pytest.raises(NestedConversionFailure) as exc_info:
            convert("mining-drill", data)
        assert exc_info.value.path == ("collision_box",)
        assert exc_info.value.structure == "bounding_box"


class TestIdentity:
    """Test the kind/name identity of prototype tables."""

    def test_name_mismatch(self, convert, make_sample) -> None:
        with pytest.raises(StructuralError) as exc_info:
            convert("item", make_sample("item"), name="copper-plate")
        assert exc_info.value.path == ("item", "copper-plate", "name")

    def test_type_mismatch(self, convert, make_sample) -> None:
        with pytest.raises(StructuralError):
            convert("item", make_sample("item", type="fluid"))

    def test_matching_type_accepted(self, convert, make_sample) -> None:
        assert convert("item", make_sample("item", type="item")).kind == "item"

    def test_not_a_table(self, engine, ctx) -> None:
        with pytest.raises(StructuralError):
            engine.convert("item", "iron-plate", "iron", ctx)

    def test_unknown_and_abstract_kinds(self, engine, ctx) -> None:
        with pytest.raises(UnknownPrototypeType):
            engine.convert("spaceship", "x", LuaTable(), ctx)
        with pytest.raises(UnknownPrototypeType):
            engine.convert("entity", "x", LuaTable(), ctx)


class TestResources:
    """Test recording of referenced files."""

    def test_sprite_sheet_sizes_recorded(self, convert, ctx, make_sample) -> None:
        convert("mining-drill", make_sample("mining-drill"))
        records = {record.path: record for record in ctx.resources}

        drill = records["__base__/graphics/entity/drill/drill.png"]
        assert drill.resource_type is ResourceType.IMAGE
        assert (drill.min_width, drill.min_height) == (384, 192)

        shadow = records["__base__/graphics/entity/drill/drill-shadow.png"]
        assert (shadow.min_width, shadow.min_height) == (112, 96)

        icon = records["__base__/graphics/icons/electric-mining-drill.png"]
        assert (icon.min_width, icon.min_height) == (0, 0)

    def test_sound_list_recorded(self, convert, ctx) -> None:
        """A sound given as a list of files records every file."""
        convert(
            "ambient-sound",
            {
                "name": "track",
                "track_type": "main-track",
                "sound": [{"filename": "__base__/sound/a.ogg"}, {"filename": "__base__/sound/b.ogg"}],
            },
        )
        assert [record.path for record in ctx.resources] == [
            "__base__/sound/a.ogg",
            "__base__/sound/b.ogg",
        ]
        assert all(record.resource_type is ResourceType.SOUND for record in ctx.resources)


class TestTreeConversion:
    """Test conversion of whole value trees."""

    def test_outcomes_in_tree_order(self, engine, ctx, make_sample) -> None:
        tree = to_value_tree({
            "fluid": {"water": make_sample("fluid")},
            "item": {
                "iron-plate": make_sample("item"),
                "copper-plate": make_sample("item", name="copper-plate"),
            },
        })
        result = engine.convert_tree(tree, ctx)
        assert [(o.kind, o.name) for o in result.converted] == [
            ("fluid", "water"),
            ("item", "iron-plate"),
            ("item", "copper-plate"),
        ]
        assert all(o.ok for o in result.converted)
        assert not result.errors

    def test_failure_is_isolated(self, engine, ctx, make_sample) -> None:
        tree = to_value_tree({
            "item": {
                "iron-plate": make_sample("item"),
                "broken": make_sample("item", name="broken", stack_size=None),
                "copper-plate": make_sample("item", name="copper-plate"),
            },
        })
        result = engine.convert_tree(tree, ctx)
        assert [o.name for o in result.instances] == ["iron-plate", "copper-plate"]
        (error,) = result.errors
        assert isinstance(error, MissingRequiredField)
        assert error.prototype_name == "broken"
        assert error.mod == "test-mod"

    def test_unknown_kinds_reported_once(self, engine, ctx, make_sample) -> None:
        tree = to_value_tree({
            "spaceship": {"a": {}, "b": {}},
            "item": {"iron-plate": make_sample("item")},
            "entity": {"x": {}},
        })
        result = engine.convert_tree(tree, ctx)
        assert [u.kind for u in result.unknown_kinds] == ["spaceship", "entity"]
        assert all(u.mod == "test-mod" for u in result.unknown_kinds)
        assert [o.name for o in result.converted] == ["iron-plate"]

    def test_structural_errors_per_entry(self, engine, ctx, make_sample) -> None:
        tree = to_value_tree({
            "item": {"iron-plate": make_sample("item"), "bad": 5},
            "recipe": "nope",
        })
        result = engine.convert_tree(tree, ctx)
        assert [e.path for e in result.structural_errors] == [("item", "bad"), ("recipe",)]
        assert all(e.mod == "test-mod" for e in result.structural_errors)
        assert [o.name for o in result.converted] == ["iron-plate"]

    def test_duplicate_names_in_block(self, engine, ctx, make_sample) -> None:
        plate = to_value_tree(make_sample("item"))
        tree = LuaTable([("item", LuaTable([("iron-plate", plate), ("iron-plate", plate)]))])
        result = engine.convert_tree(tree, ctx)
        assert len(result.structural_errors) == 1
        assert len(result.converted) == 1

    def test_top_level_must_be_table(self, engine, ctx) -> None:
        with pytest.raises(StructuralError):
            engine.convert_tree("data", ctx)

    def test_declarations_strict_mode(self, engine) -> None:
        """Without a problem list the first malformed entry raises."""
        with pytest.raises(StructuralError) as exc_info:
            engine.declarations(to_value_tree({"item": {"bad": 5}}))
        assert exc_info.value.path == ("item", "bad")

    def test_parallel_conversion_keeps_order(self, registry, make_sample) -> None:
        engine = ConversionEngine(registry)
        ctx = engine.context("parallel-mod")
        names = [f"plate-{index}" for index in range(40)]
        tree = to_value_tree({"item": {name: make_sample("item", name=name) for name in names}})

        result = engine.convert_tree(tree, ctx, max_workers=4)
        assert [o.name for o in result.converted] == names
        for outcome in result.converted:
            (record,) = outcome.resources
            assert record.prototype_name == outcome.name
            assert record.kind == "item"
            assert record.mod == "parallel-mod"
        assert ctx.resources == []
