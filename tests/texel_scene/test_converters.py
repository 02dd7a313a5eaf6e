"""Tests for adjacent-version converters."""

import pytest

from texel_scene import (
    DEFAULT_PALETTE,
    Canvas,
    CellV2,
    Color,
    ConversionRegistry,
    LayerV2,
    SceneV1,
    SceneV2,
    StyleV1,
    SymbolStyle,
    validate_scene,
)
from texel_scene.converters import (
    DEFAULT_REGISTRY,
    downgrade_v2_to_v1,
    downgrade_v3_to_v2,
    upgrade_losses,
    upgrade_v1_to_v2,
    upgrade_v2_to_v3,
)

SALMON = Color(r=250, g=128, b=114)


class TestUpgradeV1ToV2:
    """Embedded colors become palette references."""

    def test_canvas_and_layers_carried(self, scene_v1):
        result = upgrade_v1_to_v2(scene_v1)
        assert result.version == 2
        assert result.canvas == scene_v1.canvas
        assert [layer.id for layer in result.layers] == [0]
        assert result.layers[0].name == "L0"
        assert result.layers[0].offset == scene_v1.layers[0].offset

    def test_new_fields_get_defaults(self, scene_v1):
        """Every layer becomes visible; the palette starts with the 16 defaults."""
        result = upgrade_v1_to_v2(scene_v1)
        assert all(layer.visible for layer in result.layers)
        assert result.palette[:16] == list(DEFAULT_PALETTE)

    def test_known_colors_reuse_default_entries(self, scene_v1):
        result = upgrade_v1_to_v2(scene_v1)
        cell = result.layers[0].cells[0][0]
        assert result.palette[cell.fg] == Color(r=192, g=192, b=192)
        assert cell.fg == 7
        assert cell.bg == 0

    def test_unknown_color_appended(self, scene_v1):
        result = upgrade_v1_to_v2(scene_v1)
        assert result.palette == list(DEFAULT_PALETTE) + [SALMON]
        assert result.layers[0].cells[0][1].fg == 16

    def test_styles_carried(self, scene_v1):
        result = upgrade_v1_to_v2(scene_v1)
        assert result.layers[0].cells[0][1].styles == frozenset(
            {SymbolStyle.BOLD, SymbolStyle.UNDERLINE}
        )

    def test_result_is_valid(self, scene_v1):
        assert validate_scene(upgrade_v1_to_v2(scene_v1)) == []

    def test_input_not_modified(self, scene_v1):
        before = scene_v1.model_copy(deep=True)
        upgrade_v1_to_v2(scene_v1)
        assert scene_v1 == before

    def test_palette_order_deterministic(self, v1_layer_factory):
        """New colors are appended in z-order, row-major, fg before bg."""
        c1, c2, c3 = Color(r=1, g=1, b=1), Color(r=2, g=2, b=2), Color(r=3, g=3, b=3)
        back = v1_layer_factory(layer_id=0, width=1, height=1, fg=c2, bg=c1)
        front = v1_layer_factory(layer_id=1, width=1, height=1, fg=c3, bg=c2)
        scene = SceneV1(canvas=Canvas(width=1, height=1), layers=[back, front])

        result = upgrade_v1_to_v2(scene)
        assert result.palette[16:] == [c2, c1, c3]

    def test_losses_depend_on_selection(self, scene_v1):
        """Only a set selection flag is lost on the way up."""
        assert upgrade_losses(1, scene_v1) == frozenset()
        scene_v1.layers[0].selected = True
        assert upgrade_losses(1, scene_v1) == frozenset({"selected"})

    def test_later_upgrades_lose_nothing(self, scene_v1):
        assert upgrade_losses(2, upgrade_v1_to_v2(scene_v1)) == frozenset()


class TestDowngradeV2ToV1:
    """Palette references are resolved before the palette is dropped."""

    def test_round_trip_is_exact(self, scene_v1):
        """downgrade(upgrade(v1)) == v1 when no selection flag is set."""
        result = downgrade_v2_to_v1(upgrade_v1_to_v2(scene_v1))
        assert result.scene == scene_v1

    def test_reports_dropped_fields(self, scene_v1):
        result = downgrade_v2_to_v1(upgrade_v1_to_v2(scene_v1))
        assert result.lossy
        assert result.discarded == frozenset({"visible", "palette"})

    def test_colors_resolved(self):
        palette = list(DEFAULT_PALETTE) + [SALMON]
        scene = SceneV2(
            canvas=Canvas(width=2, height=1),
            palette=palette,
            layers=[LayerV2(
                id=0, width=2, height=1,
                cells=[[CellV2(glyph="a", fg=16, bg=9), CellV2(glyph="b", fg=0, bg=0)]],
            )],
        )
        result = downgrade_v2_to_v1(scene)
        cells = result.scene.layers[0].cells[0]
        assert cells[0].fg == SALMON
        assert cells[0].bg == Color(r=255, g=0, b=0)
        assert cells[1].fg == Color(r=0, g=0, b=0)

    def test_italic_dropped_and_reported(self):
        scene = SceneV2(
            canvas=Canvas(width=1, height=1),
            layers=[LayerV2(
                id=0, width=1, height=1,
                cells=[[CellV2(styles=frozenset({SymbolStyle.ITALIC, SymbolStyle.BOLD}))]],
            )],
        )
        result = downgrade_v2_to_v1(scene)
        assert result.discarded == frozenset({"visible", "palette", "italic"})
        assert result.scene.layers[0].cells[0][0].styles == frozenset({StyleV1.BOLD})

    def test_hidden_layer_kept_without_flag(self):
        """Dropping visibility never drops the layer itself."""
        scene = SceneV2(
            canvas=Canvas(width=1, height=1),
            layers=[LayerV2(id=3, width=1, height=1, cells=[[CellV2()]], visible=False)],
        )
        result = downgrade_v2_to_v1(scene)
        assert [layer.id for layer in result.scene.layers] == [3]

    def test_selected_not_restored(self, scene_v1):
        """A set selection flag does not survive a round trip."""
        scene_v1.layers[0].selected = True
        result = downgrade_v2_to_v1(upgrade_v1_to_v2(scene_v1))
        assert result.scene.layers[0].selected is False
        expected = scene_v1.model_copy(deep=True)
        expected.layers[0].selected = False
        assert result.scene == expected


class TestV2V3:
    """Conversions between versions 2 and 3."""

    @pytest.fixture
    def scene_v2(self, scene_v1):
        return upgrade_v1_to_v2(scene_v1)

    def test_upgrade_defaults(self, scene_v2):
        result = upgrade_v2_to_v3(scene_v2)
        assert result.version == 3
        assert result.bookmarks == {}
        assert result.frames == []
        assert all(layer.labels == [] for layer in result.layers)

    def test_upgrade_carries_fields(self, scene_v2):
        scene_v2.layers[0].visible = False
        result = upgrade_v2_to_v3(scene_v2)
        assert result.palette == scene_v2.palette
        assert result.layers[0].visible is False
        assert result.layers[0].cells == scene_v2.layers[0].cells

    def test_round_trip_is_exact(self, scene_v2):
        result = downgrade_v3_to_v2(upgrade_v2_to_v3(scene_v2))
        assert result.scene == scene_v2

    def test_downgrade_reports_dropped_fields(self, scene_v3):
        result = downgrade_v3_to_v2(scene_v3)
        assert result.discarded == frozenset({"labels", "bookmarks", "frames"})
        assert result.scene.version == 2
        assert [layer.id for layer in result.scene.layers] == [0, 1]

    def test_downgrade_does_not_share_cells(self, scene_v3):
        result = downgrade_v3_to_v2(scene_v3)
        assert result.scene.layers[0].cells[0][0] is not scene_v3.layers[0].cells[0][0]


class TestConversionRegistry:
    """Tests for converter registration."""

    def test_duplicate_registration_rejected(self):
        registry = ConversionRegistry()
        registry.register_upgrade(1, upgrade_v1_to_v2)
        with pytest.raises(ValueError):
            registry.register_upgrade(1, upgrade_v1_to_v2)

    def test_frozen_registry_rejects_changes(self):
        registry = ConversionRegistry().freeze()
        with pytest.raises(RuntimeError):
            registry.register_downgrade(2, downgrade_v2_to_v1)

    def test_default_registry_frozen(self):
        assert DEFAULT_REGISTRY.frozen
        with pytest.raises(RuntimeError):
            DEFAULT_REGISTRY.register_upgrade(3, upgrade_v2_to_v3)

    def test_lookup(self):
        assert DEFAULT_REGISTRY.upgrade_for(1) is upgrade_v1_to_v2
        assert DEFAULT_REGISTRY.downgrade_for(3) is downgrade_v3_to_v2
        assert DEFAULT_REGISTRY.upgrade_for(3) is None
