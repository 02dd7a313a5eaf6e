"""Shared scene fixtures."""

import pytest

from texel_scene import (
    Canvas,
    CellV1,
    CellV2,
    Color,
    LayerV1,
    LayerV3,
    Position2D,
    SceneV1,
    SceneV3,
    StyleV1,
    SymbolStyle,
)
from texel_scene.palette import default_palette

SILVER = Color(r=192, g=192, b=192)
BLACK = Color(r=0, g=0, b=0)
SALMON = Color(r=250, g=128, b=114)


@pytest.fixture
def v1_layer_factory():
    """Build a V1 layer whose glyphs spell out their coordinates."""

    def build(layer_id=0, width=4, height=2, fg=SILVER, bg=BLACK, **kwargs):
        cells = [
            [CellV1(glyph=chr(ord("a") + (x + y) % 26), fg=fg, bg=bg) for x in range(width)]
            for y in range(height)
        ]
        return LayerV1(id=layer_id, width=width, height=height, cells=cells, **kwargs)

    return build


@pytest.fixture
def scene_v1(v1_layer_factory):
    """A 20x10 V1 scene with one layer using a color outside the default palette."""
    layer = v1_layer_factory(layer_id=0, name="L0", offset=Position2D(x=2, y=3))
    layer.cells[0][1] = CellV1(
        glyph="#",
        fg=SALMON,
        bg=BLACK,
        styles=frozenset({StyleV1.BOLD, StyleV1.UNDERLINE}),
    )
    return SceneV1(canvas=Canvas(width=20, height=10), layers=[layer])


@pytest.fixture
def layer_factory():
    """Build a V3 layer of identical cells."""

    def build(layer_id=0, width=10, height=10, glyph="x", fg=1, bg=0, **kwargs):
        cells = [
            [CellV2(glyph=glyph, fg=fg, bg=bg) for _ in range(width)]
            for _ in range(height)
        ]
        return LayerV3(id=layer_id, width=width, height=height, cells=cells, **kwargs)

    return build


@pytest.fixture
def scene_v3(layer_factory):
    """A 10x10 current-version scene with two layers and a bookmark."""
    back = layer_factory(layer_id=0, name="back")
    front = layer_factory(layer_id=1, name="front", glyph="o", fg=9, labels=["ui"])
    for y in range(10):
        for x in range(10):
            front.cells[y][x] = CellV2(
                glyph=chr(ord("A") + (x + y) % 26),
                fg=(x + y) % 16,
                bg=0,
                styles=frozenset({SymbolStyle.ITALIC}) if x == y else frozenset(),
            )
    return SceneV3(
        canvas=Canvas(width=10, height=10),
        layers=[back, front],
        palette=default_palette(),
        bookmarks={1: Position2D(x=4, y=5)},
        frames=[],
    )
