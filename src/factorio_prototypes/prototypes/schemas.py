"""
Prototype kind catalogue.

Declares every kind the default registry knows, grouped the way the game's
prototype hierarchy groups them: mod settings, categories, the item family,
recipes and technologies, achievements, controllers and the entity family.
Field lists follow the game's prototype documentation; defaults are the
documented ones.
"""

from typing import Any, List, Mapping, Optional

from .fields import (
    Boolean,
    Check,
    Choice,
    Field,
    FileName,
    Float,
    Integer,
    ListOf,
    MapOf,
    OneOf,
    Reference,
    String,
    Struct,
    optional,
)
from .models import PrototypeRef, ResourceType
from .registry import ROOT_KIND, KindSpec
from .types import (
    ANIMATION,
    ANIMATION_4WAY,
    BOUNDING_BOX,
    ColorType,
    ENERGY_SOURCE,
    Energy,
    FLUID_BOX,
    ICON_CHECK,
    ICON_FIELDS,
    INGREDIENT,
    LOCALISED_STRING,
    MINABLE_PROPERTIES,
    Power,
    PRODUCT,
    RESISTANCE,
    SOUND,
    SOUND_TABLE,
    SPRITE,
    TRIGGER,
    VECTOR,
    WORKING_SOUND,
    WORKING_VISUALISATION,
)

KIND_SPECS: List[KindSpec] = []


def kind(
    name: str,
    parent: Optional[str],
    *fields: Field,
    abstract: bool = False,
    checks: tuple = (),
    doc: str = "",
) -> str:
    KIND_SPECS.append(KindSpec(name, parent, tuple(fields), abstract, tuple(checks), doc))
    return name


def ref_default(target: str, name: str) -> PrototypeRef:
    return PrototypeRef((target,), name)


def _named_default(kind_label: str) -> Check:
    def check(values: Mapping[str, Any]) -> Optional[str]:
        if values.get("name") != "default":
            return f"{kind_label} name must be \"default\""
        return None

    return check


def _forced_value_when_hidden(values: Mapping[str, Any]) -> Optional[str]:
    if values.get("hidden") and values.get("forced_value") is None:
        return "forced_value is required for hidden settings"
    return None


def _value_in_bounds(values: Mapping[str, Any]) -> Optional[str]:
    minimum, maximum = values.get("minimum_value"), values.get("maximum_value")
    default = values.get("default_value")
    if minimum is not None and maximum is not None and minimum > maximum:
        return "minimum_value must not exceed maximum_value"
    if minimum is not None and default < minimum:
        return "default_value is below minimum_value"
    if maximum is not None and default > maximum:
        return "default_value is above maximum_value"
    allowed = values.get("allowed_values")
    if allowed is not None and default not in allowed:
        return "default_value is not one of allowed_values"
    return None


def _recipe_has_results(values: Mapping[str, Any]) -> Optional[str]:
    if values.get("result") is None and values.get("results") is None:
        return "either result or results is required"
    return None


def _technology_has_unit(values: Mapping[str, Any]) -> Optional[str]:
    if values.get("unit") is None and values.get("research_trigger") is None:
        return "either unit or research_trigger is required"
    return None


# =============================================================================
# Root
# =============================================================================

kind(
    ROOT_KIND,
    None,
    Field("order", String(), default=""),
    optional("localised_name", LOCALISED_STRING),
    optional("localised_description", LOCALISED_STRING),
    abstract=True,
    doc="Common base of every prototype",
)


# =============================================================================
# Mod settings
# =============================================================================

_SETTING_COMMON = (
    Field("setting_type", Choice("startup", "runtime-global", "runtime-per-user")),
    Field("hidden", Boolean(), default=False),
)

kind("mod-setting", ROOT_KIND, *_SETTING_COMMON, abstract=True)
kind(
    "bool-setting",
    "mod-setting",
    Field("default_value", Boolean()),
    optional("forced_value", Boolean()),
    checks=[_forced_value_when_hidden],
)
kind(
    "int-setting",
    "mod-setting",
    Field("default_value", Integer()),
    optional("minimum_value", Integer()),
    optional("maximum_value", Integer()),
    optional("allowed_values", ListOf(Integer(), min_length=1)),
    checks=[_value_in_bounds],
)
kind(
    "double-setting",
    "mod-setting",
    Field("default_value", Float()),
    optional("minimum_value", Float()),
    optional("maximum_value", Float()),
    optional("allowed_values", ListOf(Float(), min_length=1)),
    checks=[_value_in_bounds],
)
kind(
    "string-setting",
    "mod-setting",
    Field("default_value", String()),
    Field("allow_blank", Boolean(), default=False),
    Field("auto_trim", Boolean(), default=False),
    optional("allowed_values", ListOf(String(), min_length=1)),
)


# =============================================================================
# Categories and groups
# =============================================================================

kind("ammo-category", ROOT_KIND, optional("bonus_gui_order", String()))
kind("equipment-category", ROOT_KIND)
kind("fuel-category", ROOT_KIND)
kind("module-category", ROOT_KIND)
kind("recipe-category", ROOT_KIND)
kind("resource-category", ROOT_KIND)
kind("damage-type", ROOT_KIND, Field("hidden", Boolean(), default=False))
kind("trigger-target-type", ROOT_KIND)
kind("tips-and-tricks-item-category", ROOT_KIND)
kind(
    "autoplace-control",
    ROOT_KIND,
    Field("category", Choice("resource", "terrain", "enemy")),
    Field("can_be_disabled", Boolean(), default=True),
    Field("richness", Boolean(), default=False),
)
kind(
    "item-group",
    ROOT_KIND,
    *ICON_FIELDS,
    optional("order_in_recipe", String()),
    checks=[ICON_CHECK],
)
kind("item-subgroup", ROOT_KIND, Field("group", Reference("item-group")))
kind(
    "custom-input",
    ROOT_KIND,
    Field("key_sequence", String()),
    optional("alternative_key_sequence", String()),
    Field("consuming", Choice("none", "game-only"), default="none"),
    Field("enabled", Boolean(), default=True),
    Field("enabled_while_spectating", Boolean(), default=False),
    Field("enabled_while_in_cutscene", Boolean(), default=False),
    Field("action", Choice("lua", "spawn-item", "toggle-personal-roboport", "toggle-personal-logistic-requests", "toggle-equipment-movement-bonus"), default="lua"),
    optional("item_to_spawn", Reference("item")),
)


# =============================================================================
# Standalone graphics and sound prototypes
# =============================================================================

# These kinds carry the graphics or sound definition inline in the prototype table
kind("sprite", ROOT_KIND, *SPRITE.fields, checks=SPRITE.checks)
kind("animation", ROOT_KIND, *ANIMATION.fields, checks=ANIMATION.checks)
kind("sound", ROOT_KIND, *SOUND_TABLE.fields, checks=SOUND_TABLE.checks)
kind(
    "ambient-sound",
    ROOT_KIND,
    Field("sound", SOUND),
    Field("track_type", Choice("menu-track", "main-track", "early-game", "late-game", "interlude")),
    Field("weight", Float(minimum=0), default=1.0),
)
kind(
    "font",
    ROOT_KIND,
    Field("size", Integer(minimum=1)),
    Field("from", String()),
    Field("spacing", Float(), default=0.0),
    Field("border", Boolean(), default=False),
    Field("filtered", Boolean(), default=False),
    optional("border_color", ColorType()),
)
kind(
    "mouse-cursor",
    ROOT_KIND,
    optional("system_cursor", Choice("arrow", "i-beam", "crosshair", "wait-arrow", "size-all", "no", "hand")),
    optional("filename", FileName(ResourceType.IMAGE)),
    optional("hot_pixel_x", Integer()),
    optional("hot_pixel_y", Integer()),
)


# =============================================================================
# Items, fluids, recipes and technologies
# =============================================================================

kind(
    "item",
    ROOT_KIND,
    *ICON_FIELDS,
    Field("stack_size", Integer(minimum=1)),
    optional("place_result", Reference("entity")),
    optional("placed_as_equipment_result", String()),
    optional("subgroup", Reference("item-subgroup")),
    optional("fuel_category", Reference("fuel-category")),
    optional("burnt_result", Reference("item")),
    optional("flags", ListOf(String())),
    optional("default_request_amount", Integer(minimum=1)),
    Field("wire_count", Integer(minimum=0), default=0),
    Field("fuel_value", Energy(), default=0.0),
    Field("fuel_acceleration_multiplier", Float(minimum=0), default=1.0),
    Field("fuel_top_speed_multiplier", Float(minimum=0), default=1.0),
    Field("fuel_emissions_multiplier", Float(minimum=0), default=1.0),
    optional("fuel_glow_color", ColorType()),
    optional("rocket_launch_products", ListOf(PRODUCT)),
    checks=[ICON_CHECK],
    doc="Plain item; also the abstract parent of every item-like kind",
)

AMMO_TYPE = Struct(
    "ammo_type",
    [
        Field("category", Reference("ammo-category")),
        optional("action", TRIGGER),
        Field("clamp_position", Boolean(), default=False),
        Field("target_type", Choice("entity", "position", "direction"), default="entity"),
        Field("consumption_modifier", Float(minimum=0), default=1.0),
    ],
)

kind(
    "ammo",
    "item",
    Field("ammo_type", OneOf(AMMO_TYPE, ListOf(AMMO_TYPE, min_length=1))),
    Field("magazine_size", Float(minimum=1), default=1.0),
    Field("reload_time", Float(minimum=0), default=0.0),
)
kind(
    "capsule",
    "item",
    Field(
        "capsule_action",
        Struct(
            "capsule_action",
            [
                Field("type", Choice("throw", "equipment-remote", "use-on-self", "artillery-remote", "destroy-cliffs")),
                optional("attack_parameters", MapOf(OneOf(Float(), String(), Boolean()))),
            ],
        ),
    ),
)
kind(
    "gun",
    "item",
    Field(
        "attack_parameters",
        Struct(
            "attack_parameters",
            [
                Field("type", Choice("projectile", "beam", "stream")),
                Field("range", Float(minimum=0)),
                Field("cooldown", Float(minimum=0)),
                optional("ammo_category", Reference("ammo-category")),
                optional("ammo_categories", ListOf(Reference("ammo-category"))),
                Field("min_range", Float(minimum=0), default=0.0),
                Field("damage_modifier", Float(), default=1.0),
                optional("sound", SOUND),
            ],
        ),
    ),
)
kind(
    "module",
    "item",
    Field("category", Reference("module-category")),
    Field("tier", Integer(minimum=0)),
    Field(
        "effect",
        MapOf(
            Struct("effect_value", [Field("bonus", Float())]),
            key=Choice("consumption", "speed", "productivity", "pollution"),
        ),
    ),
    optional("limitation", ListOf(Reference("recipe"))),
    optional("limitation_message_key", String()),
)
kind(
    "tool",
    "item",
    optional("durability", Float(minimum=0)),
    optional("durability_description_key", String()),
    Field("infinite", Boolean(), default=True),
)
kind(
    "armor",
    "tool",
    optional("equipment_grid", Reference("equipment-grid")),
    Field("resistances", ListOf(RESISTANCE), factory=tuple),
    Field("inventory_size_bonus", Integer(minimum=0), default=0),
)
kind("repair-tool", "tool", Field("speed", Float(minimum=0)))
kind(
    "item-with-entity-data",
    "item",
)
kind(
    "rail-planner",
    "item",
    Field("straight_rail", Reference("entity")),
    Field("curved_rail", Reference("entity")),
)
kind(
    "equipment-grid",
    ROOT_KIND,
    Field("width", Integer(minimum=1)),
    Field("height", Integer(minimum=1)),
    Field("equipment_categories", ListOf(Reference("equipment-category"), min_length=1)),
    Field("locked", Boolean(), default=False),
)

kind(
    "fluid",
    ROOT_KIND,
    *ICON_FIELDS,
    Field("default_temperature", Float()),
    Field("base_color", ColorType()),
    Field("flow_color", ColorType()),
    optional("max_temperature", Float()),
    Field("heat_capacity", Energy(), default=1000.0),
    Field("fuel_value", Energy(), default=0.0),
    Field("emissions_multiplier", Float(minimum=0), default=1.0),
    optional("subgroup", Reference("item-subgroup")),
    optional("gas_temperature", Float()),
    Field("hidden", Boolean(), default=False),
    checks=[ICON_CHECK],
)

kind(
    "recipe",
    ROOT_KIND,
    Field("category", Reference("recipe-category"), default=ref_default("recipe-category", "crafting")),
    optional("subgroup", Reference("item-subgroup")),
    optional("icon", FileName(ResourceType.IMAGE)),
    Field("icon_size", Integer(minimum=1), default=64),
    Field("ingredients", ListOf(INGREDIENT), factory=tuple),
    optional("results", ListOf(PRODUCT)),
    optional("result", Reference("item")),
    Field("result_count", Integer(minimum=1), default=1),
    optional("main_product", String()),
    Field("energy_required", Float(minimum=0), default=0.5),
    Field("enabled", Boolean(), default=True),
    Field("hidden", Boolean(), default=False),
    Field("allow_decomposition", Boolean(), default=True),
    Field("allow_as_intermediate", Boolean(), default=True),
    Field("always_show_products", Boolean(), default=False),
    optional("crafting_machine_tint", MapOf(ColorType(), key=Choice("primary", "secondary", "tertiary", "quaternary"))),
    checks=[_recipe_has_results],
)

def _unit_has_count(values: Mapping[str, Any]) -> Optional[str]:
    if values.get("count") is None and values.get("count_formula") is None:
        return "either count or count_formula is required"
    return None


TECHNOLOGY_UNIT = Struct(
    "technology_unit",
    [
        optional("count", Integer(minimum=1)),
        optional("count_formula", String()),
        Field("time", Float(minimum=0)),
        Field("ingredients", ListOf(INGREDIENT)),
    ],
    checks=[_unit_has_count],
)

MODIFIER = Struct(
    "modifier",
    [
        Field("type", String(allow_empty=False)),
        optional("recipe", Reference("recipe")),
        optional("modifier", OneOf(Float(), Boolean())),
        optional("ammo_category", Reference("ammo-category")),
    ],
)

kind(
    "technology",
    ROOT_KIND,
    *ICON_FIELDS,
    optional("unit", TECHNOLOGY_UNIT),
    optional("research_trigger", MapOf(OneOf(String(), Float()))),
    Field("prerequisites", ListOf(Reference("technology")), factory=tuple),
    Field("effects", ListOf(MODIFIER), factory=tuple),
    Field("enabled", Boolean(), default=True),
    Field("hidden", Boolean(), default=False),
    Field("upgrade", Boolean(), default=False),
    Field("visible_when_disabled", Boolean(), default=False),
    optional("max_level", OneOf(Integer(minimum=1), Choice("infinite"))),
    checks=[ICON_CHECK, _technology_has_unit],
)

kind(
    "tile",
    ROOT_KIND,
    Field("collision_mask", ListOf(String())),
    Field("layer", Integer(minimum=0, maximum=255)),
    Field("map_color", ColorType()),
    Field("pollution_absorption_per_second", Float(minimum=0)),
    Field("walking_speed_modifier", Float(), default=1.0),
    Field("vehicle_friction_modifier", Float(), default=1.0),
    Field("draw_in_water_layer", Boolean(), default=False),
    optional("transition_merges_with_tile", Reference("tile")),
    optional("next_direction", Reference("tile")),
    optional("minable", MINABLE_PROPERTIES),
    optional("walking_sound", SOUND),
    Field("needs_correction", Boolean(), default=False),
    *ICON_FIELDS,
)
kind(
    "virtual-signal",
    ROOT_KIND,
    *ICON_FIELDS,
    optional("subgroup", Reference("item-subgroup")),
    checks=[ICON_CHECK],
)
kind(
    "shortcut",
    ROOT_KIND,
    Field("action", Choice("lua", "spawn-item", "toggle-alt-mode", "undo", "copy", "cut", "paste", "import-string", "toggle-personal-roboport", "toggle-equipment-movement-bonus")),
    Field("icon", SPRITE),
    optional("item_to_spawn", Reference("item")),
    optional("technology_to_unlock", Reference("technology")),
    Field("toggleable", Boolean(), default=False),
)
kind(
    "tips-and-tricks-item",
    ROOT_KIND,
    optional("category", Reference("tips-and-tricks-item-category")),
    Field("indent", Integer(minimum=0), default=0),
    Field("is_title", Boolean(), default=False),
    optional("dependencies", ListOf(Reference("tips-and-tricks-item"))),
)


# =============================================================================
# Achievements
# =============================================================================

kind(
    "achievement",
    ROOT_KIND,
    *ICON_FIELDS,
    Field("steam_stats_name", String(), default=""),
    Field("allowed_without_fight", Boolean(), default=True),
    Field("hidden", Boolean(), default=False),
    checks=[ICON_CHECK],
)
kind(
    "build-entity-achievement",
    "achievement",
    Field("to_build", Reference("entity")),
    Field("amount", Integer(minimum=0), default=1),
    Field("limited_to_one_game", Boolean(), default=False),
    Field("until_second", Integer(minimum=0), default=0),
)
kind(
    "combat-robot-count",
    "achievement",
    Field("count", Integer(minimum=0), default=1),
)
kind(
    "dont-build-entity-achievement",
    "achievement",
    Field("dont_build", ListOf(Reference("entity"), allow_single=True)),
    Field("amount", Integer(minimum=0), default=0),
)
kind(
    "dont-craft-manually-achievement",
    "achievement",
    Field("amount", Float(minimum=0)),
)
kind(
    "finish-the-game-achievement",
    "achievement",
    Field("until_second", Integer(minimum=0), default=0),
)
kind(
    "kill-achievement",
    "achievement",
    optional("to_kill", Reference("entity")),
    optional("type_to_kill", String()),
    optional("damage_type", Reference("damage-type")),
    Field("amount", Integer(minimum=0), default=1),
    Field("in_vehicle", Boolean(), default=False),
    Field("personally", Boolean(), default=False),
)
kind(
    "produce-achievement",
    "achievement",
    Field("amount", Float(minimum=0)),
    Field("limited_to_one_game", Boolean()),
    optional("item_product", Reference("item")),
    optional("fluid_product", Reference("fluid")),
)
kind(
    "research-achievement",
    "achievement",
    optional("technology", Reference("technology")),
    Field("research_all", Boolean(), default=False),
)


# =============================================================================
# Controllers
# =============================================================================

_MOVEMENT_SPEED = Field("movement_speed", Float(minimum=0.34375))

kind(
    "editor-controller",
    ROOT_KIND,
    Field("inventory_size", Integer(minimum=0)),
    Field("gun_inventory_size", Integer(minimum=0)),
    _MOVEMENT_SPEED,
    Field("item_pickup_distance", Float(minimum=0)),
    Field("loot_pickup_distance", Float(minimum=0)),
    Field("mining_speed", Float(minimum=0)),
    Field("enable_flash_light", Boolean()),
    Field("adjust_speed_based_off_zoom", Boolean()),
    Field("render_as_day", Boolean()),
    Field("instant_blueprint_building", Boolean()),
    Field("instant_deconstruction", Boolean()),
    Field("instant_upgrading", Boolean()),
    Field("instant_rail_planner", Boolean()),
    Field("show_status_icons", Boolean()),
    Field("show_hidden_entities", Boolean()),
    Field("show_entity_tags", Boolean()),
    Field("show_entity_health_bars", Boolean()),
    Field("show_additional_entity_info_gui", Boolean()),
    Field("generate_neighbour_chunks", Boolean()),
    Field("fill_built_entity_energy_buffers", Boolean()),
    Field("show_character_tab_in_controller_gui", Boolean()),
    Field("show_infinity_filter_in_controller_gui", Boolean()),
    Field("placed_corpses_never_expire", Boolean()),
    checks=[_named_default("EditorController")],
)
kind(
    "god-controller",
    ROOT_KIND,
    Field("inventory_size", Integer(minimum=0)),
    _MOVEMENT_SPEED,
    Field("item_pickup_distance", Float(minimum=0)),
    Field("loot_pickup_distance", Float(minimum=0)),
    Field("mining_speed", Float(minimum=0)),
    optional("crafting_categories", ListOf(Reference("recipe-category"))),
    optional("mining_categories", ListOf(Reference("resource-category"))),
    checks=[_named_default("GodController")],
)
kind(
    "spectator-controller",
    ROOT_KIND,
    _MOVEMENT_SPEED,
    checks=[_named_default("SpectatorController")],
)


# =============================================================================
# Entities
# =============================================================================

kind(
    "entity",
    ROOT_KIND,
    *ICON_FIELDS,
    optional("collision_box", BOUNDING_BOX),
    optional("collision_mask", ListOf(String())),
    optional("selection_box", BOUNDING_BOX),
    optional("drawing_box", BOUNDING_BOX),
    optional("flags", ListOf(String())),
    optional("minable", MINABLE_PROPERTIES),
    optional("subgroup", Reference("item-subgroup")),
    Field("allow_copy_paste", Boolean(), default=True),
    Field("selectable_in_game", Boolean(), default=True),
    Field("selection_priority", Integer(minimum=0, maximum=255), default=50),
    Field("remove_decoratives", Choice("automatic", "true", "false"), default="automatic"),
    Field("emissions_per_second", Float(), default=0.0),
    optional("working_sound", WORKING_SOUND),
    optional("created_effect", TRIGGER),
    optional("build_sound", SOUND),
    optional("mined_sound", SOUND),
    optional("open_sound", SOUND),
    optional("close_sound", SOUND),
    Field("fast_replaceable_group", String(), default=""),
    optional("next_upgrade", Reference("entity")),
    optional("placeable_by", ListOf(
        Struct("item_to_place", [Field("item", Reference("item")), Field("count", Integer(minimum=1))]),
        allow_single=True,
    )),
    optional("remains_when_mined", ListOf(Reference("entity"), allow_single=True)),
    optional("map_color", ColorType()),
    optional("friendly_map_color", ColorType()),
    optional("enemy_map_color", ColorType()),
    Field("protected_from_tile_building", Boolean(), default=True),
    abstract=True,
)

kind(
    "entity-with-health",
    "entity",
    Field("max_health", Float(minimum=0), default=10.0),
    Field("healing_per_tick", Float(), default=0.0),
    Field("repair_speed_multiplier", Float(minimum=0), default=1.0),
    optional("dying_explosion", ListOf(Reference("explosion"), allow_single=True)),
    optional("damaged_trigger_effect", TRIGGER),
    Field("resistances", ListOf(RESISTANCE), factory=tuple),
    Field("corpse", ListOf(Reference("corpse"), allow_single=True), factory=tuple),
    Field("alert_when_damaged", Boolean(), default=True),
    Field("hide_resistances", Boolean(), default=True),
    Field("create_ghost_on_death", Boolean(), default=True),
    abstract=True,
)

kind(
    "entity-with-owner",
    "entity-with-health",
    Field("is_military_target", Boolean(), default=False),
    Field("allow_run_time_change_of_is_military_target", Boolean(), default=False),
    abstract=True,
)

kind(
    "explosion",
    "entity",
    Field("animations", ListOf(ANIMATION, allow_single=True, min_length=1)),
    optional("sound", SOUND),
    Field("height", Float(), default=1.0),
    Field("fade_in_duration", Integer(minimum=0), default=0),
    Field("fade_out_duration", Integer(minimum=0), default=0),
)
kind(
    "corpse",
    "entity",
    Field("dying_speed", Float(minimum=0), default=1.0),
    Field("time_before_removed", Integer(minimum=0), default=108000),
    optional("animation", ListOf(ANIMATION, allow_single=True)),
)
kind(
    "projectile",
    "entity",
    Field("acceleration", Float()),
    optional("animation", ANIMATION),
    optional("action", TRIGGER),
    optional("final_action", TRIGGER),
    Field("piercing_damage", Float(minimum=0), default=0.0),
    Field("max_speed", Float(minimum=0), default=1.7976931348623157e308),
)
kind(
    "particle-source",
    "entity",
    Field("time_to_live", Float(minimum=0)),
    Field("time_before_start", Float(minimum=0)),
    Field("height", Float()),
    Field("vertical_speed", Float()),
    Field("horizontal_speed", Float()),
)
kind(
    "resource",
    "entity",
    Field("stages", ANIMATION),
    optional("stage_counts", ListOf(Integer(minimum=0))),
    Field("infinite", Boolean(), default=False),
    Field("highlight", Boolean(), default=False),
    Field("minimum", Integer(minimum=0), default=0),
    Field("normal", Integer(minimum=0), default=1),
    Field("infinite_depletion_amount", Integer(minimum=0), default=1),
    Field("resource_patch_search_radius", Integer(minimum=0), default=3),
    Field("category", Reference("resource-category"), default=ref_default("resource-category", "basic-solid")),
    optional("map_grid", Boolean()),
)
kind(
    "simple-entity",
    "entity-with-health",
    optional("picture", SPRITE),
    optional("pictures", ListOf(SPRITE, min_length=1)),
    optional("animations", ListOf(ANIMATION, min_length=1)),
    Field("count_as_rock_for_filtered_deconstruction", Boolean(), default=False),
    Field("render_layer", String(), default="object"),
)
kind(
    "tree",
    "entity-with-health",
    optional("pictures", ListOf(SPRITE, min_length=1)),
    optional("variations", ListOf(
        Struct(
            "tree_variation",
            [
                Field("trunk", ANIMATION),
                Field("leaves", ANIMATION),
                optional("shadow", ANIMATION),
                Field("leaf_generation", MapOf(OneOf(String(), Float(), Boolean()))),
                Field("branch_generation", MapOf(OneOf(String(), Float(), Boolean()))),
            ],
        ),
        min_length=1,
    )),
    optional("colors", ListOf(ColorType())),
    Field("darkness_of_burnt_tree", Float(), default=0.5),
)
kind(
    "unit",
    "entity-with-owner",
    Field("run_animation", ANIMATION),
    Field("movement_speed", Float(minimum=0)),
    Field("distance_per_frame", Float(minimum=0)),
    Field("pollution_to_join_attack", Float(minimum=0)),
    Field("distraction_cooldown", Integer(minimum=0)),
    Field("vision_distance", Float(minimum=0, maximum=100)),
    Field("attack_parameters", MapOf(OneOf(Float(), String(), Boolean(), MapOf(OneOf(Float(), String(), Boolean()))))),
)
kind(
    "character",
    "entity-with-owner",
    Field("mining_speed", Float(minimum=0)),
    Field("running_speed", Float(minimum=0)),
    Field("distance_per_frame", Float(minimum=0)),
    Field("maximum_corner_sliding_distance", Float(minimum=0)),
    Field("inventory_size", Integer(minimum=0)),
    Field("build_distance", Integer(minimum=0)),
    Field("reach_distance", Integer(minimum=0)),
    Field("item_pickup_distance", Float(minimum=0)),
    Field("loot_pickup_distance", Float(minimum=0)),
    optional("crafting_categories", ListOf(Reference("recipe-category"))),
    optional("mining_categories", ListOf(Reference("resource-category"))),
)
kind(
    "container",
    "entity-with-owner",
    Field("inventory_size", Integer(minimum=0)),
    Field("picture", SPRITE),
    Field("scale_info_icons", Boolean(), default=False),
    Field("inventory_type", Choice("with_bar", "with_filters_and_bar"), default="with_bar"),
    Field("circuit_wire_max_distance", Float(minimum=0), default=0.0),
)
kind(
    "logistic-container",
    "container",
    Field("logistic_mode", Choice("active-provider", "passive-provider", "requester", "storage", "buffer")),
    Field("max_logistic_slots", Integer(minimum=0), default=0),
)

kind(
    "crafting-machine",
    "entity-with-owner",
    Field("energy_usage", Power()),
    Field("crafting_speed", Float(minimum=0)),
    Field("crafting_categories", ListOf(Reference("recipe-category"), min_length=1)),
    Field("energy_source", ENERGY_SOURCE),
    optional("fluid_boxes", ListOf(FLUID_BOX)),
    optional("allowed_effects", ListOf(Choice("speed", "productivity", "consumption", "pollution"), allow_single=True)),
    optional("animation", ANIMATION_4WAY),
    optional("idle_animation", ANIMATION_4WAY),
    optional("working_visualisations", ListOf(WORKING_VISUALISATION)),
    Field("scale_entity_info_icon", Boolean(), default=False),
    Field("show_recipe_icon", Boolean(), default=True),
    Field("return_ingredients_on_change", Boolean(), default=True),
    Field("base_productivity", Float(), default=0.0),
    optional("module_specification", Struct(
        "module_specification",
        [Field("module_slots", Integer(minimum=0), default=0)],
    )),
    abstract=True,
)
kind(
    "assembling-machine",
    "crafting-machine",
    optional("fixed_recipe", Reference("recipe")),
    Field("gui_title_key", String(), default=""),
    Field("ingredient_count", Integer(minimum=0, maximum=255), default=255),
)
kind("rocket-silo", "assembling-machine", Field("rocket_parts_required", Integer(minimum=1)))
kind(
    "furnace",
    "crafting-machine",
    Field("result_inventory_size", Integer(minimum=0)),
    Field("source_inventory_size", Integer(minimum=0, maximum=1)),
)

kind(
    "boiler",
    "entity-with-owner",
    Field("energy_source", ENERGY_SOURCE),
    Field("fluid_box", FLUID_BOX),
    Field("output_fluid_box", FLUID_BOX),
    Field("energy_consumption", Power()),
    Field("target_temperature", Float()),
    Field("mode", Choice("heat-water-inside", "output-to-separate-pipe"), default="heat-water-inside"),
    optional("structure", MapOf(ANIMATION, key=Choice("north", "east", "south", "west"))),
)
kind(
    "generator",
    "entity-with-owner",
    Field("energy_source", ENERGY_SOURCE),
    Field("fluid_box", FLUID_BOX),
    Field("effectivity", Float(minimum=0), default=1.0),
    Field("fluid_usage_per_tick", Float(minimum=0)),
    Field("maximum_temperature", Float()),
    Field("burns_fluid", Boolean(), default=False),
    Field("scale_fluid_usage", Boolean(), default=False),
    optional("max_power_output", Power()),
    optional("horizontal_animation", ANIMATION),
    optional("vertical_animation", ANIMATION),
)
kind(
    "pipe",
    "entity-with-owner",
    Field("fluid_box", FLUID_BOX),
    Field("horizontal_window_bounding_box", BOUNDING_BOX),
    Field("vertical_window_bounding_box", BOUNDING_BOX),
    optional("pictures", MapOf(SPRITE)),
)
kind(
    "pipe-to-ground",
    "entity-with-owner",
    Field("fluid_box", FLUID_BOX),
    optional("pictures", MapOf(SPRITE)),
)
kind(
    "storage-tank",
    "entity-with-owner",
    Field("fluid_box", FLUID_BOX),
    Field("window_bounding_box", BOUNDING_BOX),
    Field("flow_length_in_ticks", Integer(minimum=1)),
    optional("pictures", MapOf(OneOf(SPRITE, ANIMATION))),
    Field("two_direction_only", Boolean(), default=False),
)
kind(
    "pump",
    "entity-with-owner",
    Field("fluid_box", FLUID_BOX),
    Field("energy_source", ENERGY_SOURCE),
    Field("energy_usage", Power()),
    Field("pumping_speed", Float(minimum=0)),
    optional("animations", MapOf(ANIMATION, key=Choice("north", "east", "south", "west"))),
)
kind(
    "offshore-pump",
    "entity-with-owner",
    Field("fluid_box", FLUID_BOX),
    Field("pumping_speed", Float(minimum=0)),
    Field("fluid", Reference("fluid")),
    optional("graphics_set", Struct(
        "offshore_pump_graphics_set",
        [optional("animation", ANIMATION_4WAY), optional("base_pictures", MapOf(SPRITE))],
    )),
    Field("min_perceived_performance", Float(minimum=0), default=0.25),
)

_MINING_DRILL_GRAPHICS = Struct(
    "mining_drill_graphics_set",
    [
        optional("animation", ANIMATION),
        optional("idle_animation", ANIMATION),
        optional("shadow_animation", ANIMATION),
        optional("working_visualisations", ListOf(WORKING_VISUALISATION)),
        Field("animation_progress", Float(minimum=0), default=1.0),
        Field("max_animation_progress", Float(minimum=0), default=1000.0),
        Field("min_animation_progress", Float(minimum=0), default=0.0),
    ],
)

kind(
    "mining-drill",
    "entity-with-owner",
    Field("vector_to_place_result", VECTOR),
    Field("resource_searching_radius", Float(minimum=0)),
    Field("energy_usage", Power()),
    Field("mining_speed", Float(minimum=0)),
    Field("energy_source", ENERGY_SOURCE),
    Field("resource_categories", ListOf(Reference("resource-category"), min_length=1)),
    optional("output_fluid_box", FLUID_BOX),
    optional("input_fluid_box", FLUID_BOX),
    optional("graphics_set", _MINING_DRILL_GRAPHICS),
    optional("wet_mining_graphics_set", _MINING_DRILL_GRAPHICS),
    optional("animations", ANIMATION_4WAY),
    Field("base_productivity", Float(), default=0.0),
    optional("allowed_effects", ListOf(Choice("speed", "productivity", "consumption", "pollution"), allow_single=True)),
)
kind(
    "inserter",
    "entity-with-owner",
    Field("extension_speed", Float(minimum=0)),
    Field("rotation_speed", Float(minimum=0)),
    Field("insert_position", VECTOR),
    Field("pickup_position", VECTOR),
    Field("energy_source", ENERGY_SOURCE),
    optional("energy_per_movement", Energy()),
    optional("energy_per_rotation", Energy()),
    Field("hand_base_picture", SPRITE),
    Field("hand_open_picture", SPRITE),
    Field("hand_closed_picture", SPRITE),
    optional("platform_picture", MapOf(SPRITE)),
    Field("stack", Boolean(), default=False),
    Field("allow_custom_vectors", Boolean(), default=False),
    Field("filter_count", Integer(minimum=0, maximum=5), default=0),
)

kind(
    "transport-belt-connectable",
    "entity-with-owner",
    Field("speed", Float(minimum=0)),
    optional("animation_speed_coefficient", Float()),
    optional("belt_animation_set", MapOf(OneOf(ANIMATION, Integer()))),
    abstract=True,
)
kind(
    "transport-belt",
    "transport-belt-connectable",
    optional("related_underground_belt", Reference("underground-belt")),
)
kind(
    "underground-belt",
    "transport-belt-connectable",
    Field("max_distance", Integer(minimum=0, maximum=255)),
    Field("underground_sprite", SPRITE),
    optional("underground_remove_belts_sprite", SPRITE),
)
kind(
    "splitter",
    "transport-belt-connectable",
    Field("structure", ANIMATION_4WAY),
    optional("structure_patch", ANIMATION_4WAY),
)
kind(
    "lab",
    "entity-with-owner",
    Field("energy_usage", Power()),
    Field("energy_source", ENERGY_SOURCE),
    Field("on_animation", ANIMATION),
    Field("off_animation", ANIMATION),
    Field("inputs", ListOf(Reference("tool"))),
    Field("researching_speed", Float(minimum=0), default=1.0),
)
kind(
    "electric-pole",
    "entity-with-owner",
    Field("pictures", OneOf(ANIMATION, ListOf(ANIMATION, min_length=1))),
    Field("supply_area_distance", Float(minimum=0, maximum=64)),
    Field("connection_points", ListOf(MapOf(OneOf(VECTOR, MapOf(VECTOR))))),
    Field("maximum_wire_distance", Float(minimum=0, maximum=64), default=0.0),
    Field("draw_copper_wires", Boolean(), default=True),
    Field("draw_circuit_wires", Boolean(), default=True),
)
kind(
    "lamp",
    "entity-with-owner",
    Field("picture_on", SPRITE),
    Field("picture_off", SPRITE),
    Field("energy_usage_per_tick", Power()),
    Field("energy_source", ENERGY_SOURCE),
    Field("darkness_for_all_lamps_on", Float(minimum=0, maximum=1), default=0.5),
    Field("darkness_for_all_lamps_off", Float(minimum=0, maximum=1), default=0.3),
    Field("always_on", Boolean(), default=False),
    optional("glow_size", Float(minimum=0)),
    optional("glow_color_intensity", Float(minimum=0)),
    optional("signal_to_color_mapping", ListOf(
        Struct(
            "signal_color_mapping",
            [
                Field("type", Choice("virtual", "item", "fluid")),
                Field("name", String(allow_empty=False)),
                Field("color", ColorType()),
            ],
        )
    )),
)
kind(
    "solar-panel",
    "entity-with-owner",
    Field("energy_source", ENERGY_SOURCE),
    Field("picture", SPRITE),
    Field("production", Power()),
    optional("overlay", SPRITE),
)
kind(
    "accumulator",
    "entity-with-owner",
    Field("energy_source", ENERGY_SOURCE),
    Field("picture", SPRITE),
    Field("charge_cooldown", Integer(minimum=0)),
    Field("discharge_cooldown", Integer(minimum=0)),
    optional("charge_animation", ANIMATION),
    optional("discharge_animation", ANIMATION),
    Field("circuit_wire_max_distance", Float(minimum=0), default=0.0),
    Field("draw_copper_wires", Boolean(), default=True),
    Field("draw_circuit_wires", Boolean(), default=True),
)
kind(
    "radar",
    "entity-with-owner",
    Field("energy_usage", Power()),
    Field("energy_per_sector", Energy()),
    Field("energy_per_nearby_scan", Energy()),
    Field("energy_source", ENERGY_SOURCE),
    Field("pictures", ANIMATION),
    Field("max_distance_of_sector_revealed", Integer(minimum=0)),
    Field("max_distance_of_nearby_sector_revealed", Integer(minimum=0)),
    Field("rotation_speed", Float(minimum=0), default=0.01),
)
kind(
    "turret",
    "entity-with-owner",
    Field("attack_parameters", MapOf(OneOf(Float(), String(), Boolean(), MapOf(OneOf(Float(), String(), Boolean()))))),
    Field("folded_animation", ANIMATION_4WAY),
    optional("call_for_help_radius", Float(minimum=0)),
    Field("rotation_speed", Float(minimum=0), default=1.0),
    Field("preparing_speed", Float(minimum=0), default=1.0),
    Field("folding_speed", Float(minimum=0), default=1.0),
)
kind("ammo-turret", "turret", Field("inventory_size", Integer(minimum=1)), Field("automated_ammo_count", Integer(minimum=0)))
kind(
    "fluid-turret",
    "turret",
    Field("fluid_buffer_size", Float(minimum=0)),
    Field("fluid_buffer_input_flow", Float(minimum=0)),
    Field("activation_buffer_ratio", Float(minimum=0, maximum=1)),
    Field("fluid_box", FLUID_BOX),
)
kind(
    "electric-turret",
    "turret",
    Field("energy_source", ENERGY_SOURCE),
)
kind(
    "wall",
    "entity-with-owner",
    Field("pictures", MapOf(OneOf(SPRITE, ListOf(SPRITE)))),
    Field("visual_merge_group", Integer(minimum=0), default=0),
    optional("default_output_signal", String()),
)
kind(
    "beacon",
    "entity-with-owner",
    Field("energy_usage", Power()),
    Field("energy_source", ENERGY_SOURCE),
    Field("supply_area_distance", Float(minimum=0, maximum=64)),
    Field("distribution_effectivity", Float(minimum=0)),
    Field("module_specification", Struct(
        "beacon_module_specification",
        [Field("module_slots", Integer(minimum=0), default=0)],
    )),
    optional("allowed_effects", ListOf(Choice("speed", "productivity", "consumption", "pollution"), allow_single=True)),
)
kind(
    "reactor",
    "entity-with-owner",
    Field("energy_source", ENERGY_SOURCE),
    Field("consumption", Power()),
    Field("heat_buffer", Struct(
        "heat_buffer",
        [
            Field("max_temperature", Float(minimum=0)),
            Field("specific_heat", Energy()),
            Field("max_transfer", Power()),
            Field("default_temperature", Float(), default=15.0),
            Field("min_working_temperature", Float(minimum=0), default=15.0),
        ],
    )),
    Field("neighbour_bonus", Float(), default=1.0),
    optional("working_light_picture", SPRITE),
    optional("picture", SPRITE),
)
kind(
    "vehicle",
    "entity-with-owner",
    Field("weight", Float(minimum=0)),
    Field("braking_power", OneOf(Power(), Float(minimum=0))),
    Field("friction", Float(minimum=0)),
    Field("energy_per_hit_point", Float(minimum=0)),
    optional("equipment_grid", Reference("equipment-grid")),
    Field("allow_passengers", Boolean(), default=True),
    abstract=True,
)
kind(
    "car",
    "vehicle",
    Field("animation", ANIMATION),
    Field("effectivity", Float(minimum=0)),
    Field("consumption", Power()),
    Field("rotation_speed", Float(minimum=0)),
    Field("energy_source", ENERGY_SOURCE),
    Field("inventory_size", Integer(minimum=0)),
    optional("guns", ListOf(Reference("gun"))),
)
kind(
    "locomotive",
    "vehicle",
    Field("max_power", Power()),
    Field("reversing_power_modifier", Float(minimum=0)),
    Field("energy_source", ENERGY_SOURCE),
    Field("max_speed", Float(minimum=0)),
    Field("air_resistance", Float(minimum=0)),
)
kind(
    "cargo-wagon",
    "vehicle",
    Field("inventory_size", Integer(minimum=0)),
    Field("max_speed", Float(minimum=0)),
    Field("air_resistance", Float(minimum=0)),
)
kind(
    "fluid-wagon",
    "vehicle",
    Field("capacity", Float(minimum=0)),
    Field("max_speed", Float(minimum=0)),
    Field("air_resistance", Float(minimum=0)),
)
kind(
    "straight-rail",
    "entity-with-owner",
    Field("pictures", MapOf(OneOf(SPRITE, MapOf(SPRITE)))),
)
kind(
    "curved-rail",
    "entity-with-owner",
    Field("pictures", MapOf(OneOf(SPRITE, MapOf(SPRITE)))),
)
kind(
    "unit-spawner",
    "entity-with-owner",
    Field("animations", ListOf(ANIMATION, allow_single=True, min_length=1)),
    Field("max_count_of_owned_units", Integer(minimum=0)),
    Field("max_friends_around_to_spawn", Integer(minimum=0)),
    Field("spawning_cooldown", ListOf(Float(minimum=0), min_length=2, max_length=2)),
    Field("spawning_radius", Float(minimum=0)),
    Field("spawning_spacing", Float(minimum=0)),
    Field("max_richness_for_spawn_shift", Float()),
    Field("max_spawn_shift", Float()),
    Field("pollution_absorption_absolute", Float(minimum=0)),
    Field("pollution_absorption_proportional", Float(minimum=0)),
    Field("result_units", ListOf(
        Struct(
            "unit_spawn_definition",
            [
                Field("unit", Reference("unit")),
                Field("spawn_points", ListOf(ListOf(Float(), min_length=2, max_length=2))),
            ],
            positional=("unit", "spawn_points"),
        )
    )),
    Field("call_for_help_radius", Float(minimum=0)),
)
