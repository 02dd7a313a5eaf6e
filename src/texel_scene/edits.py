"""
Pydantic models for atomic scene edit sets.

An edit names a canonical scene operation and its parameters. A set of
edits is applied in order and atomically: either every edit applies or the
caller's scene is left as it was.
"""

from enum import Enum
from typing import Any, Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .models import SceneV3


# --- Editing primitives ---

class ColorMode(str, Enum):
    """Which color of a cell an edit targets."""
    FG = "fg"
    BG = "bg"


class Direction(str, Enum):
    """Canvas edge a layer can be moved to."""
    LEFT = "left"
    TOP = "top"
    RIGHT = "right"
    BOTTOM = "bottom"


class TranslationKind(str, Enum):
    """How a translation moves a layer."""
    RELATIVE = "relative"
    ABSOLUTE = "absolute"
    TO_EDGE = "to_edge"


class Area(BaseModel):
    """A rectangle of cells in layer-local coordinates."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    x: int = Field(default=0, ge=0, description="Left column")
    y: int = Field(default=0, ge=0, description="Top row")
    width: int = Field(..., ge=1, description="Number of columns")
    height: int = Field(..., ge=1, description="Number of rows")

    @property
    def right(self) -> int:
        return self.x + self.width - 1

    @property
    def bottom(self) -> int:
        return self.y + self.height - 1

    def positions(self) -> Iterator[tuple[int, int]]:
        """(x, y) of every cell in the area, row by row."""
        for y in range(self.y, self.y + self.height):
            for x in range(self.x, self.x + self.width):
                yield x, y

    def __str__(self) -> str:
        return f"{self.width}x{self.height}@{self.x},{self.y}"


class Translation(BaseModel):
    """
    A layer move.

    Examples:
        Relative:
            {"kind": "relative", "x": -1, "y": 2}

        To the right canvas edge:
            {"kind": "to_edge", "direction": "right"}
    """

    model_config = ConfigDict(extra="forbid")

    kind: TranslationKind = Field(..., description="How to move the layer")
    x: int = Field(default=0, description="Column delta or target column")
    y: int = Field(default=0, description="Row delta or target row")
    direction: Optional[Direction] = Field(
        default=None,
        description="Target edge (to_edge only)"
    )

    @model_validator(mode="after")
    def direction_only_for_edges(self) -> "Translation":
        if self.kind == TranslationKind.TO_EDGE and self.direction is None:
            raise ValueError("to_edge translation requires a direction")
        if self.kind != TranslationKind.TO_EDGE and self.direction is not None:
            raise ValueError(f"{self.kind.value} translation takes no direction")
        return self


# --- Edit sets ---

class EditOperation(str, Enum):
    """Supported scene edit operations."""

    RESIZE_CANVAS = "resize_canvas"
    INSERT_LAYER = "insert_layer"
    REMOVE_LAYER = "remove_layer"
    MOVE_LAYER = "move_layer"
    SET_LAYER_VISIBILITY = "set_layer_visibility"
    SET_CELL = "set_cell"
    FILL_AREA = "fill_area"
    SET_AREA_COLOR = "set_area_color"
    TOGGLE_AREA_STYLE = "toggle_area_style"
    CLEAR_AREA = "clear_area"
    FILL_LAYER_COLOR = "fill_layer_color"
    FILL_LAYER_STYLE = "fill_layer_style"
    TRANSLATE_LAYER = "translate_layer"
    INSERT_TEXT_LAYER = "insert_text_layer"
    ADD_PALETTE_ENTRY = "add_palette_entry"
    REMOVE_PALETTE_ENTRY = "remove_palette_entry"
    SET_BOOKMARK = "set_bookmark"
    REMOVE_BOOKMARK = "remove_bookmark"
    ADD_FRAME = "add_frame"
    REMOVE_FRAME = "remove_frame"


class SceneEdit(BaseModel):
    """
    A single edit.

    Examples:
        Resize:
            {"op": "resize_canvas", "params": {"width": 40, "height": 20}}

        Remove palette entry:
            {"op": "remove_palette_entry", "params": {"index": 3}}

        Paint an area red:
            {"op": "set_area_color", "params": {
                "layer_id": 0, "mode": "fg", "index": 9,
                "area": {"x": 2, "y": 1, "width": 4, "height": 3}}}
    """

    op: EditOperation = Field(
        ...,
        description="The operation to perform"
    )
    params: dict[str, Any] = Field(
        default_factory=dict,
        description="Operation parameters"
    )


class SceneEditSet(BaseModel):
    """An ordered collection of edits to apply atomically."""

    description: Optional[str] = Field(
        default=None,
        description="What this edit set does"
    )
    edits: list[SceneEdit] = Field(
        default_factory=list,
        description="Ordered list of edits to apply"
    )

    def add_edit(self, op: EditOperation, **params: Any) -> "SceneEditSet":
        """Add an edit to the set (fluent interface)."""
        self.edits.append(SceneEdit(op=op, params=params))
        return self


class EditError(BaseModel):
    """Rejected edit details."""

    edit_index: int = Field(description="Index of the failing edit")
    op: EditOperation = Field(description="Operation of the failing edit")
    message: str = Field(description="Error message")


class EditResult(BaseModel):
    """Result of applying an edit set."""

    success: bool = Field(description="Whether all edits were applied")
    edits_applied: int = Field(description="Number of edits applied")
    errors: list[EditError] = Field(
        default_factory=list,
        description="Rejection details (if any)"
    )
    scene: Optional[SceneV3] = Field(
        default=None,
        description="The edited scene (if successful)"
    )
