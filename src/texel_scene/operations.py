"""
Canonical scene operations.

Each operation is a pure function over the current scene version: it takes
the scene and returns a new one. The input is never modified, and a
rejected request raises InconsistentMutationError before any change is
made, so there is no partial mutation.
"""

from typing import Any, Callable, Iterable, Optional

from .edits import Area, ColorMode, Direction, Translation, TranslationKind
from .errors import InconsistentMutationError
from .models import Canvas, CellV2, Frame, LayerV3, Position2D, SceneV3, SymbolStyle
from .palette import DEFAULT_COLOR_INDEX, Color, default_palette
from .validation import validate_color_refs, validate_layer_grid


def empty_cell() -> CellV2:
    """A blank cell using the default palette color."""
    return CellV2()


def empty_layer(layer_id: int, width: int, height: int, name: str = "") -> LayerV3:
    """Create a layer of blank cells."""
    return LayerV3(
        id=layer_id,
        name=name,
        width=width,
        height=height,
        cells=[[empty_cell() for _ in range(width)] for _ in range(height)],
    )


def new_scene(width: int, height: int, layer_count: int = 1) -> SceneV3:
    """
    Create a canonical scene with the default palette.

    Args:
        width: Canvas width in cells
        height: Canvas height in cells
        layer_count: Number of blank canvas-sized layers to create

    Returns:
        New SceneV3
    """
    return SceneV3(
        canvas=Canvas(width=width, height=height),
        layers=[empty_layer(i, width, height) for i in range(layer_count)],
        palette=default_palette(),
    )


def _require_canonical(scene: Any) -> SceneV3:
    if not isinstance(scene, SceneV3):
        raise InconsistentMutationError(
            f"Scene operations require the current version, got {type(scene).__name__}; migrate first"
        )
    return scene


def _layer_index(scene: SceneV3, layer_id: int) -> int:
    for i, layer in enumerate(scene.layers):
        if layer.id == layer_id:
            return i
    raise InconsistentMutationError(f"Unknown layer id {layer_id}")


def find_layer(scene: SceneV3, layer_id: int) -> LayerV3:
    """Return the layer with `layer_id` (raises InconsistentMutationError if absent)."""
    return scene.layers[_layer_index(scene, layer_id)]


def _resize_grid(cells: list[list[CellV2]], width: int, height: int) -> list[list[CellV2]]:
    # crop or pad from the top-left corner
    rows = []
    for row in cells[:height]:
        kept = row[:width]
        rows.append(kept + [empty_cell() for _ in range(width - len(kept))])
    while len(rows) < height:
        rows.append([empty_cell() for _ in range(width)])
    return rows


# --- Canvas ---

def resize_canvas(scene: SceneV3, width: int, height: int) -> SceneV3:
    """
    Resize the canvas and every layer grid to `width` x `height`.

    Each layer is cropped or padded with empty cells independently, anchored
    at the top-left corner. Retained cells are kept exactly.
    """
    _require_canonical(scene)
    if width < 1 or height < 1:
        raise InconsistentMutationError("Canvas dimensions must be positive")

    result = scene.model_copy(deep=True)
    result.canvas = Canvas(width=width, height=height)
    for layer in result.layers:
        layer.cells = _resize_grid(layer.cells, width, height)
        layer.width = width
        layer.height = height

    return result


# --- Layers ---

def insert_layer(scene: SceneV3, layer: LayerV3, index: Optional[int] = None) -> SceneV3:
    """
    Insert a layer at z-order position `index` (append when None).

    Rejects a layer of an older schema version, a duplicate id, a malformed
    grid or a dangling palette index.
    """
    _require_canonical(scene)
    if not isinstance(layer, LayerV3):
        raise InconsistentMutationError(
            f"Expected a current-version layer, got {type(layer).__name__}"
        )

    if any(existing.id == layer.id for existing in scene.layers):
        raise InconsistentMutationError(f"Layer id {layer.id} already exists")

    if index is None:
        index = len(scene.layers)
    if index < 0 or index > len(scene.layers):
        raise InconsistentMutationError(f"Layer index {index} out of range")

    violations = validate_layer_grid(layer, "/layer")
    violations.extend(validate_color_refs(layer, len(scene.palette), "/layer"))
    if violations:
        raise InconsistentMutationError(
            "Invalid layer: " + "; ".join(f"{v.path}: {v.message}" for v in violations)
        )

    result = scene.model_copy(deep=True)
    result.layers.insert(index, layer.model_copy(deep=True))
    return result


def remove_layer(scene: SceneV3, layer_id: int) -> SceneV3:
    """
    Remove a layer, keeping the order of the remaining layers.

    A layer still referenced by an animation frame cannot be removed.
    """
    _require_canonical(scene)
    index = _layer_index(scene, layer_id)

    referencing = [i for i, frame in enumerate(scene.frames) if layer_id in frame.layer_ids]
    if referencing:
        frames = ", ".join(str(i) for i in referencing)
        raise InconsistentMutationError(
            f"Layer {layer_id} is referenced by frame(s) {frames}"
        )

    result = scene.model_copy(deep=True)
    del result.layers[index]
    return result


def move_layer(scene: SceneV3, layer_id: int, index: int) -> SceneV3:
    """Move a layer to z-order position `index`."""
    _require_canonical(scene)
    current = _layer_index(scene, layer_id)
    if index < 0 or index >= len(scene.layers):
        raise InconsistentMutationError(f"Layer index {index} out of range")

    result = scene.model_copy(deep=True)
    layer = result.layers.pop(current)
    result.layers.insert(index, layer)
    return result


def set_layer_visibility(scene: SceneV3, layer_id: int, visible: bool) -> SceneV3:
    """Show or hide a layer."""
    _require_canonical(scene)
    index = _layer_index(scene, layer_id)

    result = scene.model_copy(deep=True)
    result.layers[index].visible = visible
    return result


def set_cell(scene: SceneV3, layer_id: int, x: int, y: int, cell: CellV2) -> SceneV3:
    """Replace the cell at (x, y) of a layer's grid."""
    _require_canonical(scene)
    index = _layer_index(scene, layer_id)
    layer = scene.layers[index]

    if not (0 <= x < layer.width and 0 <= y < layer.height):
        raise InconsistentMutationError(
            f"Cell ({x}, {y}) outside layer {layer_id} ({layer.width}x{layer.height})"
        )
    palette_size = len(scene.palette)
    if cell.fg >= palette_size or cell.bg >= palette_size:
        raise InconsistentMutationError(
            f"Cell colors ({cell.fg}, {cell.bg}) out of palette range ({palette_size} entries)"
        )

    result = scene.model_copy(deep=True)
    result.layers[index].cells[y][x] = cell.model_copy()
    return result


# --- Areas ---

def _require_palette_index(scene: SceneV3, index: int) -> None:
    if index < 0 or index >= len(scene.palette):
        raise InconsistentMutationError(
            f"Palette index {index} out of range ({len(scene.palette)} entries)"
        )


def _edit_cells(
    scene: SceneV3,
    layer_id: int,
    area: Optional[Area],
    update: Callable[[CellV2], CellV2],
) -> SceneV3:
    # area None means the whole layer
    index = _layer_index(scene, layer_id)
    layer = scene.layers[index]
    if area is not None and (area.right >= layer.width or area.bottom >= layer.height):
        raise InconsistentMutationError(
            f"Area {area} outside layer {layer_id} ({layer.width}x{layer.height})"
        )

    result = scene.model_copy(deep=True)
    cells = result.layers[index].cells
    if area is None:
        positions = ((x, y) for y in range(layer.height) for x in range(layer.width))
    else:
        positions = area.positions()
    for x, y in positions:
        cells[y][x] = update(cells[y][x])
    return result


def fill_area(scene: SceneV3, layer_id: int, area: Area, cell: CellV2) -> SceneV3:
    """Replace every cell of `area` with `cell`."""
    _require_canonical(scene)
    _require_palette_index(scene, cell.fg)
    _require_palette_index(scene, cell.bg)
    return _edit_cells(scene, layer_id, area, lambda _: cell.model_copy())


def _set_color(mode: ColorMode, index: int) -> Callable[[CellV2], CellV2]:
    field = "fg" if mode == ColorMode.FG else "bg"
    return lambda cell: cell.model_copy(update={field: index})


def set_area_color(
    scene: SceneV3, layer_id: int, area: Area, mode: ColorMode, index: int
) -> SceneV3:
    """Set the foreground or background palette index of every cell in `area`."""
    _require_canonical(scene)
    _require_palette_index(scene, index)
    return _edit_cells(scene, layer_id, area, _set_color(ColorMode(mode), index))


def fill_layer_color(scene: SceneV3, layer_id: int, mode: ColorMode, index: int) -> SceneV3:
    """Set the foreground or background palette index of a whole layer."""
    _require_canonical(scene)
    _require_palette_index(scene, index)
    return _edit_cells(scene, layer_id, None, _set_color(ColorMode(mode), index))


def _toggle(style: SymbolStyle) -> Callable[[CellV2], CellV2]:
    return lambda cell: cell.model_copy(update={"styles": cell.styles ^ {style}})


def toggle_area_style(
    scene: SceneV3, layer_id: int, area: Area, style: SymbolStyle
) -> SceneV3:
    """
    Toggle `style` on every cell of `area`.

    Each cell flips independently: cells that had the style lose it, the
    others gain it.
    """
    _require_canonical(scene)
    return _edit_cells(scene, layer_id, area, _toggle(SymbolStyle(style)))


def fill_layer_style(scene: SceneV3, layer_id: int, style: SymbolStyle) -> SceneV3:
    """Toggle `style` on every cell of a layer."""
    _require_canonical(scene)
    return _edit_cells(scene, layer_id, None, _toggle(SymbolStyle(style)))


def clear_area(scene: SceneV3, layer_id: int, area: Area) -> SceneV3:
    """Reset every cell of `area` to an empty cell."""
    _require_canonical(scene)
    return _edit_cells(scene, layer_id, area, lambda _: empty_cell())


# --- Layer placement ---

def _clamp(value: int, upper: int) -> int:
    return min(max(value, 0), max(upper, 0))


def translate_layer(
    scene: SceneV3, layer_id: int, translation: Translation, bounded: bool = True
) -> SceneV3:
    """
    Move a layer by changing its offset.

    A `to_edge` move aligns the layer's edge with the canvas edge. When
    `bounded`, the result is clamped so the layer stays inside the canvas;
    a layer larger than the canvas is pinned to the origin on that axis.
    """
    _require_canonical(scene)
    index = _layer_index(scene, layer_id)
    layer = scene.layers[index]
    canvas = scene.canvas
    x, y = layer.offset.x, layer.offset.y

    if translation.kind == TranslationKind.RELATIVE:
        x, y = x + translation.x, y + translation.y
    elif translation.kind == TranslationKind.ABSOLUTE:
        x, y = translation.x, translation.y
    elif translation.direction == Direction.LEFT:
        x = 0
    elif translation.direction == Direction.TOP:
        y = 0
    elif translation.direction == Direction.RIGHT:
        x = canvas.width - layer.width
    else:
        y = canvas.height - layer.height

    if bounded:
        x = _clamp(x, canvas.width - layer.width)
        y = _clamp(y, canvas.height - layer.height)

    result = scene.model_copy(deep=True)
    result.layers[index].offset = Position2D(x=x, y=y)
    return result


# --- Text import ---

def layer_from_text(
    layer_id: int, text: str, name: str = "", fg: int = 0, bg: int = 0
) -> LayerV3:
    """
    Build a layer from plain text.

    Each line becomes a row and the layer is as wide as the longest line.
    Spaces and the padding after short lines are empty cells; every other
    character becomes a glyph drawn with `fg` on `bg`.

    Example:
        >>> layer = layer_from_text(3, "ab\\ncd")
        >>> layer.width, layer.height
        (2, 2)
    """
    lines = text.splitlines()
    width = max((len(line) for line in lines), default=0)

    cells = []
    for line in lines:
        row = [empty_cell() if c == " " else CellV2(glyph=c, fg=fg, bg=bg) for c in line]
        row.extend(empty_cell() for _ in range(width - len(line)))
        cells.append(row)

    return LayerV3(id=layer_id, name=name, width=width, height=len(lines), cells=cells)


# --- Palette ---

def add_palette_entry(scene: SceneV3, color: Color) -> tuple[SceneV3, int]:
    """
    Append a color to the palette.

    Returns:
        Tuple of (new scene, index of the new entry)
    """
    _require_canonical(scene)
    result = scene.model_copy(deep=True)
    result.palette.append(color)
    return result, len(result.palette) - 1


def _remap_index(value: int, removed: int) -> int:
    if value == removed:
        return DEFAULT_COLOR_INDEX
    if value > removed:
        return value - 1
    return value


def remove_palette_entry(scene: SceneV3, index: int) -> SceneV3:
    """
    Remove a palette entry.

    Cells referencing the removed entry are remapped to the default color at
    index 0. Cells referencing later entries follow their color down one
    slot, so no reference dangles or changes color.
    """
    _require_canonical(scene)
    if index == DEFAULT_COLOR_INDEX:
        raise InconsistentMutationError("The default palette entry cannot be removed")
    if index < 0 or index >= len(scene.palette):
        raise InconsistentMutationError(f"Palette index {index} out of range")

    result = scene.model_copy(deep=True)
    del result.palette[index]
    for layer in result.layers:
        layer.cells = [
            [
                cell.model_copy(update={
                    "fg": _remap_index(cell.fg, index),
                    "bg": _remap_index(cell.bg, index),
                })
                for cell in row
            ]
            for row in layer.cells
        ]

    return result


# --- Bookmarks ---

def set_bookmark(scene: SceneV3, slot: int, position: Position2D) -> SceneV3:
    """Store `position` in bookmark `slot`, replacing any previous one."""
    _require_canonical(scene)
    if slot < 0:
        raise InconsistentMutationError("Bookmark slots must be non-negative")

    result = scene.model_copy(deep=True)
    result.bookmarks[slot] = position
    return result


def remove_bookmark(scene: SceneV3, slot: int) -> SceneV3:
    """Remove bookmark `slot`."""
    _require_canonical(scene)
    if slot not in scene.bookmarks:
        raise InconsistentMutationError(f"No bookmark in slot {slot}")

    result = scene.model_copy(deep=True)
    del result.bookmarks[slot]
    return result


# --- Frames ---

def add_frame(scene: SceneV3, layer_ids: Iterable[int], duration_ms: int = 100) -> SceneV3:
    """Append an animation frame showing `layer_ids`."""
    _require_canonical(scene)
    layer_ids = list(layer_ids)
    known = {layer.id for layer in scene.layers}
    unknown = [layer_id for layer_id in layer_ids if layer_id not in known]
    if unknown:
        raise InconsistentMutationError(f"Frame references unknown layer id(s) {unknown}")
    if duration_ms < 1:
        raise InconsistentMutationError("Frame duration must be positive")

    result = scene.model_copy(deep=True)
    result.frames.append(Frame(layer_ids=layer_ids, duration_ms=duration_ms))
    return result


def remove_frame(scene: SceneV3, index: int) -> SceneV3:
    """Remove the animation frame at `index`."""
    _require_canonical(scene)
    if index < 0 or index >= len(scene.frames):
        raise InconsistentMutationError(f"Frame index {index} out of range")

    result = scene.model_copy(deep=True)
    del result.frames[index]
    return result
