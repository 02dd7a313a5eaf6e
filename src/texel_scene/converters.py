"""
Pairwise converters between adjacent scene versions.

Upgrades are total for every schema-valid input. Downgrades always produce
a value together with the set of fields they discarded. Every converter
reads only its input and the version-pinned constant tables; none of them
modify their input.
"""

from types import MappingProxyType
from typing import Any, Callable, Optional

from pydantic import BaseModel, Field

from .models import (
    CellV1,
    CellV2,
    LayerV1,
    LayerV2,
    LayerV3,
    SceneV1,
    SceneV2,
    SceneV3,
    StyleV1,
    SymbolStyle,
)
from .palette import DEFAULT_PALETTE, PaletteBuilder
from .versioning import VersionedScene


# Fields an upgrade hop may be unable to carry forward, keyed by source
# version. The deprecated selection flag of version 1 has no place in
# version 2.
LOSSY_UPGRADES = MappingProxyType({
    1: frozenset({"selected"}),
})


def _v1_upgrade_losses(scene: SceneV1) -> frozenset[str]:
    if any(layer.selected for layer in scene.layers):
        return frozenset({"selected"})
    return frozenset()


UPGRADE_LOSS_CHECKS: MappingProxyType = MappingProxyType({
    1: _v1_upgrade_losses,
})


def upgrade_losses(source: int, scene: Any) -> frozenset[str]:
    """
    Fields the upgrade from `source` would actually drop from `scene`.

    Empty when the scene holds nothing the next version cannot express.
    """
    check = UPGRADE_LOSS_CHECKS.get(source)
    if check is None:
        return frozenset()
    return check(scene)


class DowngradeResult(BaseModel):
    """Result of a single downgrade hop."""

    scene: VersionedScene = Field(description="The downgraded scene")
    discarded: frozenset[str] = Field(
        default_factory=frozenset,
        description="Fields dropped by the downgrade (empty if lossless)"
    )

    @property
    def lossy(self) -> bool:
        return bool(self.discarded)


Upgrade = Callable[[Any], Any]
Downgrade = Callable[[Any], DowngradeResult]


# --- 1 <-> 2 ---

def upgrade_v1_to_v2(scene: SceneV1) -> SceneV2:
    """
    Upgrade a version 1 scene to version 2.

    Embedded colors become palette indices. The palette starts as the
    default 16 colors; unseen colors are appended in traversal order
    (layers in z-order, rows top to bottom, cells left to right, foreground
    before background). Every layer becomes visible.
    """
    builder = PaletteBuilder(DEFAULT_PALETTE)
    layers: list[LayerV2] = []

    for layer in scene.layers:
        rows: list[list[CellV2]] = []
        for row in layer.cells:
            new_row: list[CellV2] = []
            for cell in row:
                fg = builder.index_of(cell.fg)
                bg = builder.index_of(cell.bg)
                new_row.append(CellV2(
                    glyph=cell.glyph,
                    fg=fg,
                    bg=bg,
                    styles=frozenset(SymbolStyle(s.value) for s in cell.styles),
                ))
            rows.append(new_row)

        layers.append(LayerV2(
            id=layer.id,
            name=layer.name,
            offset=layer.offset,
            width=layer.width,
            height=layer.height,
            cells=rows,
            visible=True,
        ))

    return SceneV2(
        canvas=scene.canvas.model_copy(),
        layers=layers,
        palette=builder.colors,
    )


def downgrade_v2_to_v1(scene: SceneV2) -> DowngradeResult:
    """
    Downgrade a version 2 scene to version 1.

    Palette indices are resolved to concrete colors before the palette is
    dropped. The italic style has no version 1 equivalent and is dropped
    from the cells that carry it; all other styles are kept.
    """
    discarded = {"visible", "palette"}
    palette = scene.palette
    layers: list[LayerV1] = []

    for layer in scene.layers:
        rows: list[list[CellV1]] = []
        for row in layer.cells:
            new_row: list[CellV1] = []
            for cell in row:
                styles = set()
                for style in cell.styles:
                    if style == SymbolStyle.ITALIC:
                        discarded.add("italic")
                    else:
                        styles.add(StyleV1(style.value))
                new_row.append(CellV1(
                    glyph=cell.glyph,
                    fg=palette[cell.fg],
                    bg=palette[cell.bg],
                    styles=frozenset(styles),
                ))
            rows.append(new_row)

        layers.append(LayerV1(
            id=layer.id,
            name=layer.name,
            offset=layer.offset,
            width=layer.width,
            height=layer.height,
            cells=rows,
        ))

    return DowngradeResult(
        scene=SceneV1(canvas=scene.canvas.model_copy(), layers=layers),
        discarded=frozenset(discarded),
    )


# --- 2 <-> 3 ---

def _copy_cells(cells: list[list[CellV2]]) -> list[list[CellV2]]:
    return [[cell.model_copy() for cell in row] for row in cells]


def upgrade_v2_to_v3(scene: SceneV2) -> SceneV3:
    """Upgrade to version 3: no labels, no bookmarks, no frames."""
    layers = [
        LayerV3(
            id=layer.id,
            name=layer.name,
            offset=layer.offset,
            width=layer.width,
            height=layer.height,
            cells=_copy_cells(layer.cells),
            visible=layer.visible,
            labels=[],
        )
        for layer in scene.layers
    ]

    return SceneV3(
        canvas=scene.canvas.model_copy(),
        layers=layers,
        palette=list(scene.palette),
        bookmarks={},
        frames=[],
    )


def downgrade_v3_to_v2(scene: SceneV3) -> DowngradeResult:
    """Downgrade to version 2, dropping labels, bookmarks and frames."""
    layers = [
        LayerV2(
            id=layer.id,
            name=layer.name,
            offset=layer.offset,
            width=layer.width,
            height=layer.height,
            cells=_copy_cells(layer.cells),
            visible=layer.visible,
        )
        for layer in scene.layers
    ]

    return DowngradeResult(
        scene=SceneV2(
            canvas=scene.canvas.model_copy(),
            layers=layers,
            palette=list(scene.palette),
        ),
        discarded=frozenset({"labels", "bookmarks", "frames"}),
    )


# --- Registry ---

class ConversionRegistry:
    """
    Adjacent-version converters.

    Upgrades are keyed by their source version K (K -> K+1), downgrades by
    their source version K+1 (K+1 -> K). Once frozen, no converter can be
    added.
    """

    def __init__(self) -> None:
        self._upgrades: dict[int, Upgrade] = {}
        self._downgrades: dict[int, Downgrade] = {}
        self._frozen = False

    def _check_open(self) -> None:
        if self._frozen:
            raise RuntimeError("Conversion registry is frozen")

    def register_upgrade(self, source: int, fn: Upgrade) -> None:
        """
        Register the converter from `source` to `source + 1`.

        Raises:
            ValueError: If an upgrade from `source` is already registered
            RuntimeError: If the registry is frozen
        """
        self._check_open()
        if source in self._upgrades:
            raise ValueError(f"Upgrade from version {source} already registered")
        self._upgrades[source] = fn

    def register_downgrade(self, source: int, fn: Downgrade) -> None:
        """
        Register the converter from `source` to `source - 1`.

        Raises:
            ValueError: If a downgrade from `source` is already registered
            RuntimeError: If the registry is frozen
        """
        self._check_open()
        if source in self._downgrades:
            raise ValueError(f"Downgrade from version {source} already registered")
        self._downgrades[source] = fn

    def upgrade_for(self, source: int) -> Optional[Upgrade]:
        return self._upgrades.get(source)

    def downgrade_for(self, source: int) -> Optional[Downgrade]:
        return self._downgrades.get(source)

    def freeze(self) -> "ConversionRegistry":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def upgrade_sources(self) -> frozenset[int]:
        return frozenset(self._upgrades)

    @property
    def downgrade_sources(self) -> frozenset[int]:
        return frozenset(self._downgrades)


def build_default_registry() -> ConversionRegistry:
    """Registry holding every converter shipped with this build, frozen."""
    registry = ConversionRegistry()
    registry.register_upgrade(1, upgrade_v1_to_v2)
    registry.register_downgrade(2, downgrade_v2_to_v1)
    registry.register_upgrade(2, upgrade_v2_to_v3)
    registry.register_downgrade(3, downgrade_v3_to_v2)
    return registry.freeze()


DEFAULT_REGISTRY = build_default_registry()
