"""
Pydantic models for every released scene schema version.

A released version is frozen forever: fields are never edited in place,
new fields only arrive in a new SceneVn. Each scene carries a Literal
`version` tag used as the discriminator of the VersionedScene union.

Field-level shape (single-character glyphs, non-negative sizes, color
ranges, unknown keys) is enforced here. Cross-field invariants such as
grid dimensions and palette references are checked by `validation`.
"""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_serializer, field_validator

from .palette import Color, default_palette


EMPTY_GLYPH = " "


class StyleV1(str, Enum):
    """Symbol styles supported by version 1."""
    BOLD = "bold"
    UNDERLINE = "underline"


class SymbolStyle(str, Enum):
    """Symbol styles supported from version 2 on."""
    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"


class SchemaModel(BaseModel):
    """Base for all persisted models: unknown keys are rejected, never dropped."""

    model_config = ConfigDict(extra="forbid")


class Position2D(SchemaModel):
    """2D position relative to the canvas origin."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    x: int = Field(default=0, strict=True, description="Column offset")
    y: int = Field(default=0, strict=True, description="Row offset")

    def __str__(self) -> str:
        return f"{self.x},{self.y}"


class Canvas(SchemaModel):
    """Canvas dimensions in cells."""

    width: int = Field(..., ge=1, strict=True, description="Number of columns")
    height: int = Field(..., ge=1, strict=True, description="Number of rows")


def _check_glyph(v: str) -> str:
    if len(v) != 1:
        raise ValueError("glyph must be exactly one character")
    return v


def _check_styles(v: Any) -> Any:
    if not isinstance(v, (list, tuple, set, frozenset)):
        raise ValueError("styles must be a list of style names")
    items = list(v)
    if all(isinstance(s, str) for s in items) and len(set(items)) != len(items):
        raise ValueError("styles must not repeat")
    return v


# --- Cells ---

class CellV1(SchemaModel):
    """Version 1 cell: colors are embedded directly."""

    glyph: str = Field(default=EMPTY_GLYPH, description="Displayed character")
    fg: Color = Field(..., description="Foreground color")
    bg: Color = Field(..., description="Background color")
    styles: frozenset[StyleV1] = Field(default_factory=frozenset)

    @field_validator("glyph")
    @classmethod
    def glyph_is_single_character(cls, v: str) -> str:
        return _check_glyph(v)

    @field_validator("styles", mode="before")
    @classmethod
    def styles_are_distinct(cls, v: Any) -> Any:
        return _check_styles(v)

    @field_serializer("styles", when_used="json")
    def serialize_styles(self, styles: frozenset[StyleV1]) -> list[str]:
        return sorted(s.value for s in styles)


class CellV2(SchemaModel):
    """Cell with palette-indexed colors, used by versions 2 and 3."""

    glyph: str = Field(default=EMPTY_GLYPH, description="Displayed character")
    fg: int = Field(default=0, ge=0, strict=True, description="Foreground palette index")
    bg: int = Field(default=0, ge=0, strict=True, description="Background palette index")
    styles: frozenset[SymbolStyle] = Field(default_factory=frozenset)

    @field_validator("glyph")
    @classmethod
    def glyph_is_single_character(cls, v: str) -> str:
        return _check_glyph(v)

    @field_validator("styles", mode="before")
    @classmethod
    def styles_are_distinct(cls, v: Any) -> Any:
        return _check_styles(v)

    @field_serializer("styles", when_used="json")
    def serialize_styles(self, styles: frozenset[SymbolStyle]) -> list[str]:
        return sorted(s.value for s in styles)


Cell = CellV2


# --- Layers ---

class LayerBase(SchemaModel):
    """Identity, placement and grid size shared by every layer version."""

    id: int = Field(..., ge=0, strict=True, description="Stable layer id, unique within a scene")
    name: str = Field(default="", description="Human-readable layer name")
    offset: Position2D = Field(default_factory=Position2D, description="Offset from canvas origin")
    width: int = Field(..., ge=0, strict=True, description="Grid width in cells")
    height: int = Field(..., ge=0, strict=True, description="Grid height in cells")


class LayerV1(LayerBase):
    cells: list[list[CellV1]] = Field(default_factory=list, description="Rows of cells")
    selected: bool = Field(
        default=False,
        strict=True,
        description="Editor selection indicator (deprecated, removed in version 2)"
    )


class LayerV2(LayerBase):
    cells: list[list[CellV2]] = Field(default_factory=list, description="Rows of cells")
    visible: bool = Field(default=True, strict=True, description="Whether the layer is drawn")


class LayerV3(LayerBase):
    cells: list[list[CellV2]] = Field(default_factory=list, description="Rows of cells")
    visible: bool = Field(default=True, strict=True, description="Whether the layer is drawn")
    labels: list[str] = Field(default_factory=list, description="Grouping labels")


Layer = LayerV3


class Frame(SchemaModel):
    """One animation step: the layers shown together, front to back."""

    layer_ids: list[StrictInt] = Field(default_factory=list, description="Ids of layers shown in this frame")
    duration_ms: int = Field(default=100, ge=1, strict=True, description="Display time in milliseconds")


# --- Scenes ---

class SceneV1(SchemaModel):
    """First released scene schema."""

    version: Literal[1] = 1
    canvas: Canvas
    layers: list[LayerV1] = Field(default_factory=list, description="Layers in z-order, back to front")


class SceneV2(SchemaModel):
    """Adds the palette, layer visibility and the italic style."""

    version: Literal[2] = 2
    canvas: Canvas
    layers: list[LayerV2] = Field(default_factory=list, description="Layers in z-order, back to front")
    palette: list[Color] = Field(default_factory=default_palette, description="Index 0 is the default color")


class SceneV3(SchemaModel):
    """
    Current scene schema.

    Adds layer labels, canvas bookmarks and animation frames.
    """

    version: Literal[3] = 3
    canvas: Canvas
    layers: list[LayerV3] = Field(default_factory=list, description="Layers in z-order, back to front")
    palette: list[Color] = Field(default_factory=default_palette, description="Index 0 is the default color")
    bookmarks: dict[int, Position2D] = Field(default_factory=dict, description="Bookmark slot to position")
    frames: list[Frame] = Field(default_factory=list, description="Animation frames in playback order")

    @field_validator("bookmarks")
    @classmethod
    def bookmark_slots_non_negative(cls, v: dict[int, Position2D]) -> dict[int, Position2D]:
        for slot in v:
            if slot < 0:
                raise ValueError("bookmark slots must be non-negative")
        return v
