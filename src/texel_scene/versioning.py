"""
The versioned scene tagged union.

Exactly one variant per released schema, discriminated by the integer
`version` tag. Tags only ever grow and are never reused.
"""

from types import MappingProxyType
from typing import Annotated, Any, Union

from pydantic import Field, TypeAdapter

from .errors import SchemaViolation, SchemaViolationError, UnknownVersionError
from .models import SceneV1, SceneV2, SceneV3


VersionedScene = Annotated[
    Union[SceneV1, SceneV2, SceneV3],
    Field(discriminator="version"),
]

SCHEMAS = MappingProxyType({
    1: SceneV1,
    2: SceneV2,
    3: SceneV3,
})

CURRENT_VERSION = max(SCHEMAS)

CanonicalScene = SceneV3

SCENE_ADAPTER: TypeAdapter = TypeAdapter(VersionedScene)


def is_known_version(tag: Any) -> bool:
    """True if `tag` is an integer tag of a released schema."""
    return isinstance(tag, int) and not isinstance(tag, bool) and tag in SCHEMAS


def version_of(value: Any) -> int:
    """
    Return the version tag of a versioned scene.

    Raises:
        TypeError: If `value` is not a scene model at all
        UnknownVersionError: If the tag is not a released version
    """
    tag = getattr(value, "version", None)
    if tag is None:
        raise TypeError(f"Not a versioned scene: {type(value).__name__}")
    if not is_known_version(tag):
        raise UnknownVersionError(tag)
    schema = SCHEMAS[tag]
    if not isinstance(value, schema):
        raise SchemaViolationError(
            [SchemaViolation(
                path="/version",
                message=f"Tag {tag} does not match schema {type(value).__name__}",
            )],
            version=tag,
        )
    return tag


def unwrap_as(value: Any, expected_version: int):
    """
    Return `value` as the concrete scene of `expected_version`.

    Raises:
        UnknownVersionError: If `expected_version` is not a released version
        SchemaViolationError: If `value` holds a different version
    """
    if not is_known_version(expected_version):
        raise UnknownVersionError(expected_version)

    actual = version_of(value)
    if actual != expected_version:
        raise SchemaViolationError(
            [SchemaViolation(
                path="/version",
                message=f"Expected version {expected_version}, got {actual}",
            )],
            version=actual,
        )
    return value
