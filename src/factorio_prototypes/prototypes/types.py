"""
Shared nested structures used by prototype schemas.

Colors, vectors, energy strings, sprites and animations, icons, sounds,
recipe ingredients and products, energy sources, fluid boxes and triggers.
These are the building blocks `schemas.py` assembles kinds from.
"""

import math
import re
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Mapping, Optional, Tuple

from .errors import FieldPath, InvalidFieldValue, UnexpectedFieldType
from .fields import (
    Boolean,
    Choice,
    Field,
    FieldType,
    FileName,
    Float,
    Integer,
    ListOf,
    LocalisedStringType,
    OneOf,
    Reference,
    String,
    Struct,
    TaggedUnion,
    optional,
)
from .models import LuaTable, LuaValue, ResourceType, StructValue, lua_type_name

if TYPE_CHECKING:
    from .conversion import ConversionContext


# =============================================================================
# Scalars with a special textual or table form
# =============================================================================

_ENERGY_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?(?:[eE][+-]?\d+)?)\s*([kMGTPEZY]?)([WJ])\s*$")
_SI_PREFIXES = {
    "": 1.0,
    "k": 1e3,
    "M": 1e6,
    "G": 1e9,
    "T": 1e12,
    "P": 1e15,
    "E": 1e18,
    "Z": 1e21,
    "Y": 1e24,
}


class Energy(FieldType):
    """Energy ("1MJ") or power ("150kW") string, converted to joules or watts."""

    def __init__(self, unit: str = "J"):
        self.unit = unit
        self.expected = "power string" if unit == "W" else "energy string"

    def convert(self, value: LuaValue, path: FieldPath, ctx: "ConversionContext") -> float:
        if not isinstance(value, str):
            raise self.mismatch(value, path)
        match = _ENERGY_PATTERN.match(value)
        if match is None:
            raise InvalidFieldValue(path, value, f"not a valid {self.expected}")
        number, prefix, unit = match.groups()
        if unit != self.unit:
            raise InvalidFieldValue(path, value, f"unit must be '{self.unit}'")
        return float(number) * _SI_PREFIXES[prefix]


def Power() -> Energy:
    return Energy("W")


@dataclass(frozen=True)
class Color(StructValue):
    r: float = 0.0
    g: float = 0.0
    b: float = 0.0
    a: float = 1.0

    structure = "color"


class ColorType(FieldType):
    """`{r=, g=, b=, a=}` or `{r, g, b, a}`.

    Components above 1 mean the whole color is given in the 0-255 range.
    """

    expected = "color"

    def convert(self, value: LuaValue, path: FieldPath, ctx: "ConversionContext") -> Color:
        if not isinstance(value, LuaTable):
            raise self.mismatch(value, path)
        names = ("r", "g", "b", "a")
        if value.is_array() and len(value) > 0:
            elements = value.array_values()
            if not 3 <= len(elements) <= 4:
                raise InvalidFieldValue(path, len(elements), "a color array takes 3 or 4 components")
            raw = dict(zip(names, elements))
            keys = {name: index for index, name in enumerate(names, start=1)}
        else:
            raw = {name: value.get(name) for name in names}
            keys = {name: name for name in names}

        components = {}
        for name in names:
            component = raw.get(name)
            if component is None:
                continue
            if isinstance(component, bool) or not isinstance(component, (int, float)):
                raise UnexpectedFieldType(path + (keys[name],), "number", lua_type_name(component))
            components[name] = float(component)

        if any(components.get(name, 0.0) > 1 for name in ("r", "g", "b")):
            components = {name: number / 255 for name, number in components.items()}
        return Color(**components)


VECTOR = Struct(
    "vector",
    [Field("x", Float()), Field("y", Float())],
    positional=("x", "y"),
)


def _box_is_ordered(values: Mapping[str, Any]) -> Optional[str]:
    left_top, right_bottom = values["left_top"], values["right_bottom"]
    if left_top.x > right_bottom.x or left_top.y > right_bottom.y:
        return "left_top must not lie right of or below right_bottom"
    return None


BOUNDING_BOX = Struct(
    "bounding_box",
    [Field("left_top", VECTOR), Field("right_bottom", VECTOR)],
    checks=[_box_is_ordered],
    positional=("left_top", "right_bottom"),
)


# =============================================================================
# Graphics
# =============================================================================

class SpriteStruct(Struct):
    """Struct that records the minimum image size its sprite sheet needs."""

    def convert(self, value: LuaValue, path: FieldPath, ctx: "ConversionContext") -> StructValue:
        marker = len(ctx.resources)
        sprite = super().convert(value, path, ctx)
        filename = getattr(sprite, "filename", None)
        width, height = required_image_size(sprite)
        if filename and (width or height):
            for index in range(marker, len(ctx.resources)):
                record = ctx.resources[index]
                if record.path == filename and record.resource_type is ResourceType.IMAGE:
                    ctx.resources[index] = replace(record, min_width=width, min_height=height)
        return sprite


def _frame_size(sprite: StructValue) -> Tuple[int, int]:
    width = getattr(sprite, "width", None)
    height = getattr(sprite, "height", None)
    size = getattr(sprite, "size", None)
    if isinstance(size, int):
        width = width or size
        height = height or size
    elif size is not None:
        width = width or size.width
        height = height or size.height
    return width or 0, height or 0


def required_image_size(sprite: StructValue) -> Tuple[int, int]:
    """Smallest image size that holds every frame of a sprite or animation."""
    width, height = _frame_size(sprite)
    if not width or not height:
        return 0, 0
    x = getattr(sprite, "x", 0) or 0
    y = getattr(sprite, "y", 0) or 0
    frame_count = getattr(sprite, "frame_count", 1) or 1
    line_length = getattr(sprite, "line_length", 0) or frame_count
    columns = min(line_length, frame_count)
    rows = math.ceil(frame_count / columns)
    return x + width * columns, y + height * rows


def _has_size(values: Mapping[str, Any]) -> Optional[str]:
    if values.get("layers"):
        return None
    if values.get("size") is None and (values.get("width") is None or values.get("height") is None):
        return "either size or both width and height are required"
    return None


def _has_filename_or_layers(values: Mapping[str, Any]) -> Optional[str]:
    if values.get("filename") is None and not values.get("layers"):
        return "either filename or layers is required"
    return None


SIZE = OneOf(
    Integer(minimum=1),
    Struct(
        "size",
        [Field("width", Integer(minimum=1)), Field("height", Integer(minimum=1))],
        positional=("width", "height"),
    ),
)

BLEND_MODES = ("normal", "additive", "additive-soft", "multiplicative", "multiplicative-with-alpha", "overwrite")
PRIORITIES = ("extra-high-no-scale", "extra-high", "high", "medium", "low", "very-low", "no-atlas")

_SPRITE_COMMON = (
    optional("width", Integer(minimum=1)),
    optional("height", Integer(minimum=1)),
    optional("size", SIZE),
    Field("x", Integer(minimum=0), default=0),
    Field("y", Integer(minimum=0), default=0),
    optional("shift", VECTOR),
    Field("scale", Float(minimum=0), default=1.0),
    Field("priority", Choice(*PRIORITIES), default="medium"),
    Field("draw_as_shadow", Boolean(), default=False),
    optional("tint", ColorType()),
    Field("blend_mode", Choice(*BLEND_MODES), default="normal"),
)

_ANIMATION_COMMON = (
    Field("frame_count", Integer(minimum=1), default=1),
    Field("line_length", Integer(minimum=0), default=0),
    Field("animation_speed", Float(minimum=0), default=1.0),
    Field("repeat_count", Integer(minimum=1), default=1),
)

SPRITE_LAYER = SpriteStruct(
    "sprite_layer",
    [Field("filename", FileName(ResourceType.IMAGE)), *_SPRITE_COMMON],
    checks=[_has_size],
)

SPRITE = SpriteStruct(
    "sprite",
    [
        optional("filename", FileName(ResourceType.IMAGE)),
        *_SPRITE_COMMON,
        optional("layers", ListOf(SPRITE_LAYER, min_length=1)),
    ],
    checks=[_has_filename_or_layers, _has_size],
)

ANIMATION_LAYER = SpriteStruct(
    "animation_layer",
    [Field("filename", FileName(ResourceType.IMAGE)), *_SPRITE_COMMON, *_ANIMATION_COMMON],
    checks=[_has_size],
)

ANIMATION = SpriteStruct(
    "animation",
    [
        optional("filename", FileName(ResourceType.IMAGE)),
        *_SPRITE_COMMON,
        *_ANIMATION_COMMON,
        optional("layers", ListOf(ANIMATION_LAYER, min_length=1)),
    ],
    checks=[_has_filename_or_layers, _has_size],
)

ANIMATION_4WAY = Struct(
    "animation_4way",
    [
        Field("north", ANIMATION),
        optional("east", ANIMATION),
        optional("south", ANIMATION),
        optional("west", ANIMATION),
    ],
)

WORKING_VISUALISATION = Struct(
    "working_visualisation",
    [
        optional("animation", ANIMATION),
        Field("always_draw", Boolean(), default=False),
        Field("apply_recipe_tint", Choice("primary", "secondary", "tertiary", "quaternary", "none"), default="none"),
        Field("fadeout", Boolean(), default=False),
    ],
)

ICON_DATA = Struct(
    "icon_data",
    [
        Field("icon", FileName(ResourceType.IMAGE)),
        Field("icon_size", Integer(minimum=1), default=64),
        optional("tint", ColorType()),
        optional("shift", VECTOR),
        Field("scale", Float(minimum=0), default=1.0),
    ],
)


def _has_icon(values: Mapping[str, Any]) -> Optional[str]:
    if values.get("icon") is None and not values.get("icons"):
        return "either icon or icons is required"
    return None


# Icon fields are spread into kinds that need an icon; ICON_CHECK goes with them.
ICON_FIELDS = (
    optional("icon", FileName(ResourceType.IMAGE)),
    Field("icon_size", Integer(minimum=1), default=64),
    optional("icons", ListOf(ICON_DATA, min_length=1)),
)
ICON_CHECK = _has_icon


SOUND_FILE = Struct(
    "sound_definition",
    [
        Field("filename", FileName(ResourceType.SOUND)),
        Field("volume", Float(minimum=0), default=1.0),
    ],
)


def _has_sound(values: Mapping[str, Any]) -> Optional[str]:
    if values.get("filename") is None and not values.get("variations"):
        return "either filename or variations is required"
    return None


SOUND_TABLE = Struct(
    "sound",
    [
        optional("filename", FileName(ResourceType.SOUND)),
        optional("variations", ListOf(SOUND_FILE, allow_single=True, min_length=1)),
        Field("volume", Float(minimum=0), default=1.0),
        Field("aggregation", Boolean(), default=False),
    ],
    checks=[_has_sound],
)

SOUND = OneOf(SOUND_TABLE, ListOf(SOUND_FILE, min_length=1))

WORKING_SOUND = Struct(
    "working_sound",
    [
        Field("sound", SOUND),
        optional("idle_sound", SOUND),
        Field("max_sounds_per_type", Integer(minimum=1), default=1),
    ],
)


# =============================================================================
# Recipes and mining
# =============================================================================

ITEM_INGREDIENT = Struct(
    "item_ingredient",
    [
        Field("type", Choice("item"), default="item"),
        Field("name", Reference("item")),
        Field("amount", Integer(minimum=1, maximum=65535)),
    ],
    positional=("name", "amount"),
)

FLUID_INGREDIENT = Struct(
    "fluid_ingredient",
    [
        Field("type", Choice("fluid")),
        Field("name", Reference("fluid")),
        Field("amount", Float(minimum=0)),
        optional("temperature", Float()),
        optional("minimum_temperature", Float()),
        optional("maximum_temperature", Float()),
        Field("fluidbox_index", Integer(minimum=0), default=0),
    ],
)

INGREDIENT = TaggedUnion({"item": ITEM_INGREDIENT, "fluid": FLUID_INGREDIENT}, default="item")


def _has_amount(values: Mapping[str, Any]) -> Optional[str]:
    if values.get("amount") is not None:
        return None
    amount_min, amount_max = values.get("amount_min"), values.get("amount_max")
    if amount_min is None or amount_max is None:
        return "either amount or both amount_min and amount_max are required"
    if amount_min > amount_max:
        return "amount_min must not exceed amount_max"
    return None


_PRODUCT_COMMON = (
    optional("amount_min", Float(minimum=0)),
    optional("amount_max", Float(minimum=0)),
    Field("probability", Float(minimum=0, maximum=1), default=1.0),
)

ITEM_PRODUCT = Struct(
    "item_product",
    [
        Field("type", Choice("item"), default="item"),
        Field("name", Reference("item")),
        optional("amount", Integer(minimum=0, maximum=65535)),
        *_PRODUCT_COMMON,
        Field("catalyst_amount", Integer(minimum=0), default=0),
    ],
    checks=[_has_amount],
    positional=("name", "amount"),
)

FLUID_PRODUCT = Struct(
    "fluid_product",
    [
        Field("type", Choice("fluid")),
        Field("name", Reference("fluid")),
        optional("amount", Float(minimum=0)),
        *_PRODUCT_COMMON,
        optional("temperature", Float()),
        Field("fluidbox_index", Integer(minimum=0), default=0),
    ],
    checks=[_has_amount],
)

PRODUCT = TaggedUnion({"item": ITEM_PRODUCT, "fluid": FLUID_PRODUCT}, default="item")


def _has_mining_result(values: Mapping[str, Any]) -> Optional[str]:
    if values.get("result") is None and values.get("results") is None:
        return "either result or results is required"
    return None


MINABLE_PROPERTIES = Struct(
    "minable_properties",
    [
        Field("mining_time", Float(minimum=0)),
        optional("result", Reference("item")),
        Field("count", Integer(minimum=1), default=1),
        optional("results", ListOf(PRODUCT)),
        optional("required_fluid", Reference("fluid")),
        Field("fluid_amount", Float(minimum=0), default=0.0),
        optional("mining_particle", String()),
    ],
    checks=[_has_mining_result],
)


# =============================================================================
# Fluids and energy
# =============================================================================

PIPE_CONNECTION = Struct(
    "pipe_connection",
    [
        optional("position", VECTOR),
        optional("positions", ListOf(VECTOR, min_length=4, max_length=4)),
        Field("type", Choice("input", "output", "input-output"), default="input-output"),
        Field("max_underground_distance", Integer(minimum=0), default=0),
    ],
)

FLUID_BOX = Struct(
    "fluid_box",
    [
        Field("pipe_connections", ListOf(PIPE_CONNECTION), factory=tuple),
        Field("base_area", Float(minimum=0), default=1.0),
        Field("height", Float(minimum=0), default=1.0),
        Field("base_level", Float(), default=0.0),
        Field("production_type", Choice("None", "input", "input-output", "output"), default="None"),
        optional("filter", Reference("fluid")),
        optional("minimum_temperature", Float()),
        optional("maximum_temperature", Float()),
    ],
)

_EMISSIONS = Field("emissions_per_minute", Float(), default=0.0)

ENERGY_SOURCE = TaggedUnion(
    {
        "electric": Struct(
            "electric_energy_source",
            [
                Field("type", Choice("electric")),
                Field(
                    "usage_priority",
                    Choice(
                        "primary-input",
                        "primary-output",
                        "secondary-input",
                        "secondary-output",
                        "tertiary",
                        "solar",
                        "lamp",
                    ),
                ),
                optional("buffer_capacity", Energy()),
                optional("input_flow_limit", Power()),
                optional("output_flow_limit", Power()),
                optional("drain", Power()),
                _EMISSIONS,
            ],
        ),
        "burner": Struct(
            "burner_energy_source",
            [
                Field("type", Choice("burner")),
                Field("fuel_inventory_size", Integer(minimum=0)),
                Field("burnt_inventory_size", Integer(minimum=0), default=0),
                optional("fuel_category", Reference("fuel-category")),
                optional("fuel_categories", ListOf(Reference("fuel-category"))),
                Field("effectivity", Float(minimum=0), default=1.0),
                _EMISSIONS,
            ],
        ),
        "heat": Struct(
            "heat_energy_source",
            [
                Field("type", Choice("heat")),
                Field("max_temperature", Float(minimum=0)),
                Field("specific_heat", Energy()),
                Field("max_transfer", Power()),
                Field("min_working_temperature", Float(minimum=0), default=15.0),
                _EMISSIONS,
            ],
        ),
        "fluid": Struct(
            "fluid_energy_source",
            [
                Field("type", Choice("fluid")),
                Field("fluid_box", FLUID_BOX),
                Field("burns_fluid", Boolean(), default=False),
                Field("scale_fluid_usage", Boolean(), default=False),
                Field("effectivity", Float(minimum=0), default=1.0),
                _EMISSIONS,
            ],
        ),
        "void": Struct("void_energy_source", [Field("type", Choice("void")), _EMISSIONS]),
    }
)


# =============================================================================
# Combat
# =============================================================================

DAMAGE = Struct(
    "damage",
    [Field("amount", Float()), Field("type", Reference("damage-type"))],
)

RESISTANCE = Struct(
    "resistance",
    [
        Field("type", Reference("damage-type")),
        Field("decrease", Float(), default=0.0),
        Field("percent", Float(maximum=100), default=0.0),
    ],
)

TRIGGER_EFFECT = TaggedUnion(
    {
        "damage": Struct(
            "damage_effect",
            [Field("type", Choice("damage")), Field("damage", DAMAGE), Field("apply_damage_to_trees", Boolean(), default=True)],
        ),
        "create-entity": Struct(
            "create_entity_effect",
            [
                Field("type", Choice("create-entity")),
                Field("entity_name", Reference("entity")),
                Field("check_buildability", Boolean(), default=False),
            ],
        ),
        "create-explosion": Struct(
            "create_explosion_effect",
            [Field("type", Choice("create-explosion")), Field("entity_name", Reference("explosion"))],
        ),
        "play-sound": Struct(
            "play_sound_effect",
            [Field("type", Choice("play-sound")), Field("sound", SOUND)],
        ),
    }
)

TRIGGER_DELIVERY = TaggedUnion(
    {
        "instant": Struct(
            "instant_delivery",
            [
                Field("type", Choice("instant")),
                optional("target_effects", ListOf(TRIGGER_EFFECT, allow_single=True)),
            ],
        ),
        "projectile": Struct(
            "projectile_delivery",
            [
                Field("type", Choice("projectile")),
                Field("projectile", Reference("projectile")),
                Field("starting_speed", Float()),
                Field("max_range", Float(minimum=0), default=1000.0),
                optional("target_effects", ListOf(TRIGGER_EFFECT, allow_single=True)),
            ],
        ),
    }
)

TRIGGER_ITEM = Struct(
    "trigger",
    [
        Field("type", Choice("direct", "area", "line", "cluster")),
        Field("repeat_count", Integer(minimum=1), default=1),
        Field("probability", Float(minimum=0, maximum=1), default=1.0),
        optional("radius", Float(minimum=0)),
        optional("action_delivery", ListOf(TRIGGER_DELIVERY, allow_single=True)),
    ],
)

TRIGGER = ListOf(TRIGGER_ITEM, allow_single=True)

LOCALISED_STRING = LocalisedStringType()
