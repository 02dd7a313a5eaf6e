"""
Texel Scene Format

Versioned snapshot format for ASCII-art editor scenes, with lossless
upgrades to the current schema and reported-loss downgrades to older ones.
"""

__version__ = "0.1.0"

from .errors import (
    SceneFormatError,
    DecodeError,
    UnknownVersionError,
    SchemaViolation,
    SchemaViolationError,
    ConversionChainBrokenError,
    MixedDirectionError,
    InconsistentMutationError,
)
from .palette import Color, DEFAULT_PALETTE
from .models import (
    Canvas,
    Position2D,
    CellV1,
    CellV2,
    Cell,
    LayerV1,
    LayerV2,
    LayerV3,
    Layer,
    Frame,
    SceneV1,
    SceneV2,
    SceneV3,
    StyleV1,
    SymbolStyle,
    EMPTY_GLYPH,
)
from .versioning import (
    CURRENT_VERSION,
    SCHEMAS,
    VersionedScene,
    version_of,
    unwrap_as,
)
from .validation import validate_scene, ensure_valid
from .converters import ConversionRegistry, DowngradeResult, DEFAULT_REGISTRY
from .migration import (
    MigrationDirection,
    MigrationResult,
    MigrationStep,
    migrate,
    plan_migration,
    to_current,
)
from .codec import decode, encode, parse_scene
from .attachment import ComponentRegistry
from .edits import (
    Area,
    ColorMode,
    Direction,
    EditOperation,
    EditError,
    EditResult,
    SceneEdit,
    SceneEditSet,
    Translation,
    TranslationKind,
)
from .service import apply_edit, apply_edits, validate_edits

__all__ = [
    "__version__",
    "SceneFormatError",
    "DecodeError",
    "UnknownVersionError",
    "SchemaViolation",
    "SchemaViolationError",
    "ConversionChainBrokenError",
    "MixedDirectionError",
    "InconsistentMutationError",
    "Color",
    "DEFAULT_PALETTE",
    "Canvas",
    "Position2D",
    "CellV1",
    "CellV2",
    "Cell",
    "LayerV1",
    "LayerV2",
    "LayerV3",
    "Layer",
    "Frame",
    "SceneV1",
    "SceneV2",
    "SceneV3",
    "StyleV1",
    "SymbolStyle",
    "EMPTY_GLYPH",
    "CURRENT_VERSION",
    "SCHEMAS",
    "VersionedScene",
    "version_of",
    "unwrap_as",
    "validate_scene",
    "ensure_valid",
    "ConversionRegistry",
    "DowngradeResult",
    "DEFAULT_REGISTRY",
    "MigrationDirection",
    "MigrationResult",
    "MigrationStep",
    "migrate",
    "plan_migration",
    "to_current",
    "decode",
    "encode",
    "parse_scene",
    "ComponentRegistry",
    "Area",
    "ColorMode",
    "Direction",
    "Translation",
    "TranslationKind",
    "EditOperation",
    "SceneEdit",
    "SceneEditSet",
    "EditResult",
    "EditError",
    "apply_edit",
    "apply_edits",
    "validate_edits",
]
