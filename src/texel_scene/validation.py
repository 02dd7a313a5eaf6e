"""
Structural validation for versioned scenes.

Checks the cross-field invariants every schema-valid scene must hold,
independent of any conversion. Invalid scenes are reported, never repaired.
"""

from typing import Any, Callable, Sequence

from .errors import SchemaViolation, SchemaViolationError
from .versioning import version_of


def validate_layer_ids(layers: Sequence[Any]) -> list[SchemaViolation]:
    """
    Validate that layer ids are unique within a scene.

    Args:
        layers: Layers of any version

    Returns:
        One violation per repeated id
    """
    violations: list[SchemaViolation] = []
    seen: dict[int, int] = {}

    for i, layer in enumerate(layers):
        if layer.id in seen:
            violations.append(SchemaViolation(
                path=f"/layers/{i}/id",
                message=f"Duplicate layer id {layer.id} (first used by layer {seen[layer.id]})"
            ))
        else:
            seen[layer.id] = i

    return violations


def validate_layer_grid(layer: Any, path: str) -> list[SchemaViolation]:
    """
    Validate that a layer grid is exactly height rows of width cells.

    Args:
        layer: Layer of any version
        path: Path prefix for error reporting (e.g. "/layers/0")

    Returns:
        List of violations (empty if the grid is rectangular and sized)
    """
    violations: list[SchemaViolation] = []

    if len(layer.cells) != layer.height:
        violations.append(SchemaViolation(
            path=f"{path}/cells",
            message=f"Grid has {len(layer.cells)} rows, expected height {layer.height}"
        ))

    for y, row in enumerate(layer.cells):
        if len(row) != layer.width:
            violations.append(SchemaViolation(
                path=f"{path}/cells/{y}",
                message=f"Row has {len(row)} cells, expected width {layer.width}"
            ))

    return violations


def validate_color_refs(layer: Any, palette_size: int, path: str) -> list[SchemaViolation]:
    """
    Validate that every cell color index points into the palette.

    Args:
        layer: Layer with palette-indexed cells (version 2 and later)
        palette_size: Number of palette entries
        path: Path prefix for error reporting

    Returns:
        One violation per dangling reference
    """
    violations: list[SchemaViolation] = []

    for y, row in enumerate(layer.cells):
        for x, cell in enumerate(row):
            for attr in ("fg", "bg"):
                index = getattr(cell, attr)
                if index >= palette_size:
                    violations.append(SchemaViolation(
                        path=f"{path}/cells/{y}/{x}/{attr}",
                        message=f"Palette index {index} out of range (palette has {palette_size} entries)"
                    ))

    return violations


def validate_palette(scene: Any) -> list[SchemaViolation]:
    """The palette must hold at least the default color at index 0."""
    if not scene.palette:
        return [SchemaViolation(path="/palette", message="Palette must contain a default color at index 0")]
    return []


def validate_frames(scene: Any) -> list[SchemaViolation]:
    """Every frame may only reference layers present in the scene."""
    violations: list[SchemaViolation] = []
    layer_ids = {layer.id for layer in scene.layers}

    for i, frame in enumerate(scene.frames):
        for j, layer_id in enumerate(frame.layer_ids):
            if layer_id not in layer_ids:
                violations.append(SchemaViolation(
                    path=f"/frames/{i}/layer_ids/{j}",
                    message=f"Frame references unknown layer id {layer_id}"
                ))

    return violations


def _check_layers(scene: Any) -> list[SchemaViolation]:
    violations = validate_layer_ids(scene.layers)
    for i, layer in enumerate(scene.layers):
        violations.extend(validate_layer_grid(layer, f"/layers/{i}"))
    return violations


def _check_indexed_colors(scene: Any) -> list[SchemaViolation]:
    violations = validate_palette(scene)
    palette_size = len(scene.palette)
    for i, layer in enumerate(scene.layers):
        violations.extend(validate_color_refs(layer, palette_size, f"/layers/{i}"))
    return violations


SCENE_CHECKS: dict[int, tuple[Callable[[Any], list[SchemaViolation]], ...]] = {
    1: (_check_layers,),
    2: (_check_layers, _check_indexed_colors),
    3: (_check_layers, _check_indexed_colors, validate_frames),
}


def validate_scene(scene: Any) -> list[SchemaViolation]:
    """
    Check every structural invariant of a versioned scene.

    Args:
        scene: A versioned scene of any released version

    Returns:
        List of violations (empty if the scene is valid)

    Raises:
        UnknownVersionError: If the scene's tag is not a released version
    """
    version = version_of(scene)
    violations: list[SchemaViolation] = []

    for check in SCENE_CHECKS[version]:
        violations.extend(check(scene))

    return violations


def ensure_valid(scene: Any) -> Any:
    """
    Return `scene` unchanged if valid.

    Raises:
        SchemaViolationError: With every violation found
    """
    violations = validate_scene(scene)
    if violations:
        raise SchemaViolationError(violations, version=scene.version)
    return scene
