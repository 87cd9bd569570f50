"""Shared fixtures and sample prototype data."""

import copy
from typing import Any, Callable, Dict

import pytest

from factorio_prototypes.prototypes.conversion import ConversionContext, ConversionEngine
from factorio_prototypes.prototypes.datatable import DataTable
from factorio_prototypes.prototypes.models import Prototype, to_value_tree
from factorio_prototypes.prototypes.registry import TypeRegistry, default_registry


ICON = "__base__/graphics/icons/iron-plate.png"

SAMPLE_DATA: Dict[str, Dict[str, Any]] = {
    "item": {
        "name": "iron-plate",
        "icon": ICON,
        "stack_size": 100,
    },
    "fluid": {
        "name": "water",
        "icon": "__base__/graphics/icons/fluid/water.png",
        "default_temperature": 15,
        "base_color": {"r": 0, "g": 0.34, "b": 0.6},
        "flow_color": {"r": 0.7, "g": 0.7, "b": 0.7},
    },
    "recipe": {
        "name": "iron-gear-wheel",
        "ingredients": [["iron-plate", 2]],
        "result": "iron-gear-wheel",
    },
    "offshore-pump": {
        "name": "offshore-pump",
        "icon": "__base__/graphics/icons/offshore-pump.png",
        "fluid_box": {},
        "pumping_speed": 20,
        "fluid": "water",
    },
    "mining-drill": {
        "name": "electric-mining-drill",
        "icon": "__base__/graphics/icons/electric-mining-drill.png",
        "vector_to_place_result": [0, -1.85],
        "resource_searching_radius": 2.49,
        "energy_usage": "90kW",
        "mining_speed": 0.5,
        "energy_source": {"type": "electric", "usage_priority": "secondary-input"},
        "resource_categories": ["basic-solid"],
        "graphics_set": {
            "animation": {
                "layers": [
                    {"filename": "__base__/graphics/entity/drill/drill.png", "size": 96, "frame_count": 8, "line_length": 4},
                    {"filename": "__base__/graphics/entity/drill/drill-shadow.png", "width": 112, "height": 96},
                ]
            }
        },
    },
}


def sample(kind: str, **overrides: Any) -> Dict[str, Any]:
    """Deep copy of a sample field table with some fields replaced (None removes)."""
    data = copy.deepcopy(SAMPLE_DATA[kind])
    for key, value in overrides.items():
        if value is None:
            data.pop(key, None)
        else:
            data[key] = value
    return data


@pytest.fixture(scope="session")
def registry() -> TypeRegistry:
    """The shipped kind catalogue."""
    return default_registry()


@pytest.fixture
def engine(registry: TypeRegistry) -> ConversionEngine:
    return ConversionEngine(registry)


@pytest.fixture
def ctx(engine: ConversionEngine) -> ConversionContext:
    return engine.context("test-mod")


@pytest.fixture
def table() -> DataTable:
    return DataTable()


@pytest.fixture
def convert(engine: ConversionEngine, ctx: ConversionContext) -> Callable[..., Prototype]:
    """Convert plain Python data as one prototype of a kind."""

    def _convert(kind: str, data: Dict[str, Any], name: str = "") -> Prototype:
        return engine.convert(kind, name or data["name"], to_value_tree(data), ctx)

    return _convert


@pytest.fixture
def base_prototypes() -> Dict[str, Dict[str, Any]]:
    """A tiny consistent base mod: every reference the samples make resolves."""
    return {
        "recipe-category": {"crafting": {}},
        "resource-category": {"basic-solid": {}},
        "item": {
            "iron-plate": sample("item"),
            "iron-gear-wheel": sample("item", name="iron-gear-wheel"),
        },
        "fluid": {"water": sample("fluid")},
        "recipe": {"iron-gear-wheel": sample("recipe")},
        "offshore-pump": {"offshore-pump": sample("offshore-pump")},
    }


@pytest.fixture
def make_sample() -> Callable[..., Dict[str, Any]]:
    """Factory for sample field tables: make_sample("item", stack_size=50)."""
    return sample
