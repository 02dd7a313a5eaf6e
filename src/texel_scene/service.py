"""
Scene edit service.

Main entry point for applying edit sets to a canonical scene. Edit sets are
atomic: if any edit is rejected, no edit is applied and the caller's scene
is unchanged.
"""

import logging
from typing import Any, Callable

from pydantic import TypeAdapter, ValidationError

from . import operations
from .edits import (
    Area,
    ColorMode,
    EditError,
    EditOperation,
    EditResult,
    SceneEdit,
    SceneEditSet,
    Translation,
)
from .errors import InconsistentMutationError
from .models import CellV2, LayerV3, Position2D, SceneV3, SymbolStyle
from .palette import Color

logger = logging.getLogger(__name__)

_INT = TypeAdapter(int)
_BOOL = TypeAdapter(bool)
_INT_LIST = TypeAdapter(list[int])
_STR = TypeAdapter(str)
_COLOR_MODE = TypeAdapter(ColorMode)
_STYLE = TypeAdapter(SymbolStyle)


def _param(params: dict[str, Any], name: str) -> Any:
    try:
        return params[name]
    except KeyError:
        raise InconsistentMutationError(f"Missing parameter '{name}'") from None


def _int(params: dict[str, Any], name: str) -> int:
    return _INT.validate_python(_param(params, name))


# --- Edit Handlers ---

def _resize_canvas(scene: SceneV3, params: dict[str, Any]) -> SceneV3:
    return operations.resize_canvas(scene, _int(params, "width"), _int(params, "height"))


def _insert_layer(scene: SceneV3, params: dict[str, Any]) -> SceneV3:
    layer = LayerV3.model_validate(_param(params, "layer"))
    index = params.get("index")
    if index is not None:
        index = _INT.validate_python(index)
    return operations.insert_layer(scene, layer, index)


def _remove_layer(scene: SceneV3, params: dict[str, Any]) -> SceneV3:
    return operations.remove_layer(scene, _int(params, "layer_id"))


def _move_layer(scene: SceneV3, params: dict[str, Any]) -> SceneV3:
    return operations.move_layer(scene, _int(params, "layer_id"), _int(params, "index"))


def _set_layer_visibility(scene: SceneV3, params: dict[str, Any]) -> SceneV3:
    visible = _BOOL.validate_python(_param(params, "visible"))
    return operations.set_layer_visibility(scene, _int(params, "layer_id"), visible)


def _set_cell(scene: SceneV3, params: dict[str, Any]) -> SceneV3:
    cell = CellV2.model_validate(_param(params, "cell"))
    return operations.set_cell(
        scene, _int(params, "layer_id"), _int(params, "x"), _int(params, "y"), cell
    )


def _area(params: dict[str, Any]) -> Area:
    return Area.model_validate(_param(params, "area"))


def _fill_area(scene: SceneV3, params: dict[str, Any]) -> SceneV3:
    cell = CellV2.model_validate(_param(params, "cell"))
    return operations.fill_area(scene, _int(params, "layer_id"), _area(params), cell)


def _set_area_color(scene: SceneV3, params: dict[str, Any]) -> SceneV3:
    mode = _COLOR_MODE.validate_python(_param(params, "mode"))
    return operations.set_area_color(
        scene, _int(params, "layer_id"), _area(params), mode, _int(params, "index")
    )


def _toggle_area_style(scene: SceneV3, params: dict[str, Any]) -> SceneV3:
    style = _STYLE.validate_python(_param(params, "style"))
    return operations.toggle_area_style(scene, _int(params, "layer_id"), _area(params), style)


def _clear_area(scene: SceneV3, params: dict[str, Any]) -> SceneV3:
    return operations.clear_area(scene, _int(params, "layer_id"), _area(params))


def _fill_layer_color(scene: SceneV3, params: dict[str, Any]) -> SceneV3:
    mode = _COLOR_MODE.validate_python(_param(params, "mode"))
    return operations.fill_layer_color(scene, _int(params, "layer_id"), mode, _int(params, "index"))


def _fill_layer_style(scene: SceneV3, params: dict[str, Any]) -> SceneV3:
    style = _STYLE.validate_python(_param(params, "style"))
    return operations.fill_layer_style(scene, _int(params, "layer_id"), style)


def _translate_layer(scene: SceneV3, params: dict[str, Any]) -> SceneV3:
    translation = Translation.model_validate(_param(params, "translation"))
    bounded = _BOOL.validate_python(params.get("bounded", True))
    return operations.translate_layer(scene, _int(params, "layer_id"), translation, bounded)


def _insert_text_layer(scene: SceneV3, params: dict[str, Any]) -> SceneV3:
    layer = operations.layer_from_text(
        _int(params, "layer_id"),
        _STR.validate_python(_param(params, "text")),
        name=_STR.validate_python(params.get("name", "")),
        fg=_INT.validate_python(params.get("fg", 0)),
        bg=_INT.validate_python(params.get("bg", 0)),
    )
    index = params.get("index")
    if index is not None:
        index = _INT.validate_python(index)
    return operations.insert_layer(scene, layer, index)


def _add_palette_entry(scene: SceneV3, params: dict[str, Any]) -> SceneV3:
    result, _ = operations.add_palette_entry(scene, Color.model_validate(_param(params, "color")))
    return result


def _remove_palette_entry(scene: SceneV3, params: dict[str, Any]) -> SceneV3:
    return operations.remove_palette_entry(scene, _int(params, "index"))


def _set_bookmark(scene: SceneV3, params: dict[str, Any]) -> SceneV3:
    position = Position2D.model_validate(_param(params, "position"))
    return operations.set_bookmark(scene, _int(params, "slot"), position)


def _remove_bookmark(scene: SceneV3, params: dict[str, Any]) -> SceneV3:
    return operations.remove_bookmark(scene, _int(params, "slot"))


def _add_frame(scene: SceneV3, params: dict[str, Any]) -> SceneV3:
    layer_ids = _INT_LIST.validate_python(_param(params, "layer_ids"))
    duration_ms = _INT.validate_python(params.get("duration_ms", 100))
    return operations.add_frame(scene, layer_ids, duration_ms)


def _remove_frame(scene: SceneV3, params: dict[str, Any]) -> SceneV3:
    return operations.remove_frame(scene, _int(params, "index"))


EDIT_HANDLERS: dict[EditOperation, Callable[[SceneV3, dict[str, Any]], SceneV3]] = {
    EditOperation.RESIZE_CANVAS: _resize_canvas,
    EditOperation.INSERT_LAYER: _insert_layer,
    EditOperation.REMOVE_LAYER: _remove_layer,
    EditOperation.MOVE_LAYER: _move_layer,
    EditOperation.SET_LAYER_VISIBILITY: _set_layer_visibility,
    EditOperation.SET_CELL: _set_cell,
    EditOperation.FILL_AREA: _fill_area,
    EditOperation.SET_AREA_COLOR: _set_area_color,
    EditOperation.TOGGLE_AREA_STYLE: _toggle_area_style,
    EditOperation.CLEAR_AREA: _clear_area,
    EditOperation.FILL_LAYER_COLOR: _fill_layer_color,
    EditOperation.FILL_LAYER_STYLE: _fill_layer_style,
    EditOperation.TRANSLATE_LAYER: _translate_layer,
    EditOperation.INSERT_TEXT_LAYER: _insert_text_layer,
    EditOperation.ADD_PALETTE_ENTRY: _add_palette_entry,
    EditOperation.REMOVE_PALETTE_ENTRY: _remove_palette_entry,
    EditOperation.SET_BOOKMARK: _set_bookmark,
    EditOperation.REMOVE_BOOKMARK: _remove_bookmark,
    EditOperation.ADD_FRAME: _add_frame,
    EditOperation.REMOVE_FRAME: _remove_frame,
}


def apply_edit(scene: SceneV3, edit: SceneEdit) -> SceneV3:
    """
    Apply a single edit.

    Args:
        scene: Current canonical scene
        edit: Edit to apply

    Returns:
        New scene state

    Raises:
        InconsistentMutationError: If the edit is rejected
        ValidationError: If the edit parameters are malformed
    """
    handler = EDIT_HANDLERS.get(edit.op)
    if handler is None:
        raise InconsistentMutationError(f"Unsupported operation: {edit.op}")

    return handler(scene, edit.params)


def _edit_error(index: int, edit: SceneEdit, exc: Exception) -> EditError:
    if isinstance(exc, ValidationError):
        message = f"Invalid parameters: {exc.error_count()} error(s): " + "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
    else:
        message = str(exc)
    return EditError(edit_index=index, op=edit.op, message=message)


def validate_edits(scene: SceneV3, edit_set: SceneEditSet) -> list[EditError]:
    """
    Validate all edits in a set without returning a modified scene.

    Each valid edit is simulated so later edits are checked against the
    state they would actually see; a rejected edit is skipped.

    Example:
        >>> errors = validate_edits(scene, edit_set)
        >>> for err in errors:
        ...     print(f"Edit {err.edit_index}: {err.message}")
    """
    all_errors: list[EditError] = []
    current = scene

    for i, edit in enumerate(edit_set.edits):
        try:
            current = apply_edit(current, edit)
        except (InconsistentMutationError, ValidationError) as e:
            all_errors.append(_edit_error(i, edit, e))

    return all_errors


def apply_edits(scene: SceneV3, edit_set: SceneEditSet) -> EditResult:
    """
    Apply an edit set atomically.

    Args:
        scene: The canonical scene to edit (left unmodified)
        edit_set: The edits to apply in order

    Returns:
        EditResult with the edited scene, or the first rejection

    Example:
        >>> edit_set = SceneEditSet().add_edit(
        ...     EditOperation.RESIZE_CANVAS, width=40, height=20
        ... )
        >>> result = apply_edits(scene, edit_set)
        >>> if result.success:
        ...     scene = result.scene
    """
    current = scene

    for i, edit in enumerate(edit_set.edits):
        try:
            current = apply_edit(current, edit)
        except (InconsistentMutationError, ValidationError) as e:
            logger.info("Edit rejected | index=%s op=%s error=%s", i, edit.op.value, e)
            return EditResult(
                success=False,
                edits_applied=0,
                errors=[_edit_error(i, edit, e)],
                scene=None,
            )

    return EditResult(
        success=True,
        edits_applied=len(edit_set.edits),
        errors=[],
        scene=current,
    )
