"""
Scene endpoints.

Validation, version migration and atomic edits of posted scenes.
No persistence - computation only.
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, Field

from app.config import settings
from texel_scene import (
    CURRENT_VERSION,
    SCHEMAS,
    ConversionChainBrokenError,
    DecodeError,
    EditResult,
    MigrationDirection,
    SceneEditSet,
    SchemaViolation,
    SchemaViolationError,
    UnknownVersionError,
    apply_edits,
    migrate,
    parse_scene,
    to_current,
)
from texel_scene.converters import LOSSY_UPGRADES
from texel_scene.versioning import SCENE_ADAPTER

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Request/Response Models ---

class ErrorResponse(BaseModel):
    """Error response model."""

    error: str = Field(description="Error type")
    message: str = Field(description="Error message")
    detail: Any = Field(default=None, description="Additional error details")


class VersionsResponse(BaseModel):
    """Released schema versions."""

    current_version: int = Field(description="Canonical (highest) version")
    versions: list[int] = Field(description="Every released version tag")
    lossy_upgrades: dict[int, list[str]] = Field(
        description="Fields an upgrade from each listed version may drop"
    )


class ValidateResponse(BaseModel):
    """Result of validating a scene."""

    valid: bool = Field(description="Whether the scene is schema-valid")
    version: int = Field(description="Version tag of the scene")
    violations: list[SchemaViolation] = Field(default_factory=list)


class MigrateResponse(BaseModel):
    """Result of migrating a scene."""

    source_version: int
    target_version: int
    steps: list[dict[str, int]] = Field(description="Hops applied, in order")
    discarded: list[str] = Field(description="Fields dropped along the chain")
    lossy: bool
    scene: dict[str, Any] = Field(description="The migrated scene")


class EditRequest(BaseModel):
    """A scene of any version plus the edits to apply to it."""

    scene: dict[str, Any] = Field(description="Versioned scene; upgraded to the current version first")
    edit_set: SceneEditSet


def _error(code: int, error: str, message: str, detail: Any = None) -> HTTPException:
    return HTTPException(
        status_code=code,
        detail=ErrorResponse(error=error, message=message, detail=detail).model_dump(mode="json"),
    )


def _parse(payload: dict[str, Any]):
    try:
        return parse_scene(payload)
    except UnknownVersionError as e:
        logger.error("Unknown scene version: %s", e.version)
        raise _error(status.HTTP_400_BAD_REQUEST, "unknown_version", str(e), {"version": e.version})
    except DecodeError as e:
        logger.error("Decode error: %s", e)
        raise _error(status.HTTP_400_BAD_REQUEST, "decode_error", str(e))
    except SchemaViolationError as e:
        logger.error("Schema violation: %s", e)
        raise _error(
            422,
            "schema_violation",
            str(e),
            [v.model_dump() for v in e.violations],
        )


# --- Endpoints ---

@router.get("/versions", response_model=VersionsResponse)
async def get_versions() -> VersionsResponse:
    """List released scene schema versions."""
    return VersionsResponse(
        current_version=CURRENT_VERSION,
        versions=sorted(SCHEMAS),
        lossy_upgrades={k: sorted(v) for k, v in LOSSY_UPGRADES.items()},
    )


@router.post(
    "/validate",
    response_model=ValidateResponse,
    responses={400: {"model": ErrorResponse, "description": "Unknown version or not a scene"}},
)
async def validate_scene_payload(payload: dict[str, Any]) -> ValidateResponse:
    """
    Validate a versioned scene.

    A known version with an invalid payload is reported as a list of
    violations rather than an error status.
    """
    try:
        scene = parse_scene(payload)
    except SchemaViolationError as e:
        return ValidateResponse(valid=False, version=e.version, violations=e.violations)
    except UnknownVersionError as e:
        raise _error(status.HTTP_400_BAD_REQUEST, "unknown_version", str(e), {"version": e.version})
    except DecodeError as e:
        raise _error(status.HTTP_400_BAD_REQUEST, "decode_error", str(e))

    return ValidateResponse(valid=True, version=scene.version)


@router.post(
    "/migrate",
    response_model=MigrateResponse,
    responses={
        200: {"description": "Migration successful"},
        400: {"model": ErrorResponse, "description": "Unknown version"},
        409: {"model": ErrorResponse, "description": "Lossy downgrade rejected by configuration"},
        422: {"model": ErrorResponse, "description": "Schema violation"},
        500: {"model": ErrorResponse, "description": "Conversion chain broken"},
    },
)
async def migrate_scene(
    payload: dict[str, Any],
    target_version: Optional[int] = Query(default=None, description="Defaults to the current version"),
) -> MigrateResponse:
    """
    Migrate a versioned scene to `target_version`.

    Upgrades are lossless except for fields listed by `/scenes/versions`.
    Downgrades report every discarded field.
    """
    if target_version is None:
        target_version = settings.default_target_version or CURRENT_VERSION

    scene = _parse(payload)
    logger.info("Migrating scene | source=%s target=%s", scene.version, target_version)

    try:
        result = migrate(scene, target_version)
    except UnknownVersionError as e:
        raise _error(status.HTTP_400_BAD_REQUEST, "unknown_version", str(e), {"version": e.version})
    except ConversionChainBrokenError as e:
        logger.exception("Conversion chain broken")
        raise _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "conversion_chain_broken",
            str(e),
            {"source": e.source, "target": e.target},
        )

    is_downgrade = bool(result.steps) and result.steps[0].direction == MigrationDirection.DOWNGRADE
    if result.lossy and is_downgrade and settings.reject_lossy_downgrades:
        raise _error(
            status.HTTP_409_CONFLICT,
            "lossy_downgrade",
            f"Downgrade to version {target_version} would discard fields",
            sorted(result.discarded),
        )

    logger.info(
        "Migration complete | steps=%s lossy=%s",
        len(result.steps),
        result.lossy,
    )

    return MigrateResponse(
        source_version=result.source_version,
        target_version=result.target_version,
        steps=[step.model_dump() for step in result.steps],
        discarded=sorted(result.discarded),
        lossy=result.lossy,
        scene=SCENE_ADAPTER.dump_python(result.scene, mode="json"),
    )


@router.post("/edit", response_model=EditResult)
async def edit_scene(request: EditRequest) -> EditResult:
    """
    Apply an edit set atomically to a scene.

    The scene is upgraded to the current version before editing; the
    result is always a current-version scene.
    """
    scene = to_current(_parse(request.scene))
    result = apply_edits(scene, request.edit_set)

    logger.info(
        "Edit set applied | success=%s edits=%s",
        result.success,
        result.edits_applied,
    )
    return result
