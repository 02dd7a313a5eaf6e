"""
JSON codec for versioned scenes.

The envelope is the scene itself with its integer `version` tag at the top
level. The tag is checked before anything else is parsed, so a payload from
a newer build is always reported as UnknownVersionError and never decoded
best-effort.
"""

import json
from typing import Any, Mapping, Union

from pydantic import ValidationError

from .errors import DecodeError, SchemaViolation, SchemaViolationError, UnknownVersionError
from .validation import ensure_valid
from .versioning import SCENE_ADAPTER, is_known_version, version_of


def _violations_from(exc: ValidationError) -> list[SchemaViolation]:
    violations = []
    for err in exc.errors():
        # drop the union tag segment pydantic prepends, e.g. ('1', 'layers', 0)
        loc = [str(p) for p in err["loc"]]
        if loc and loc[0].isdigit():
            loc = loc[1:]
        violations.append(SchemaViolation(path="/" + "/".join(loc), message=err["msg"]))
    return violations


def read_version_tag(data: Mapping[str, Any]) -> int:
    """
    Read and check the version tag of a decoded envelope.

    Raises:
        DecodeError: If the tag is missing or not an integer
        UnknownVersionError: If the tag is not a released version
    """
    if "version" not in data:
        raise DecodeError("Scene envelope has no 'version' tag")
    tag = data["version"]
    if not isinstance(tag, int) or isinstance(tag, bool):
        raise DecodeError(f"Scene version tag must be an integer, got {tag!r}")
    if not is_known_version(tag):
        raise UnknownVersionError(tag)
    return tag


def parse_scene(data: Any):
    """
    Build a validated versioned scene from decoded JSON data.

    Raises:
        DecodeError: If `data` is not a scene envelope
        UnknownVersionError: If the version tag is not released
        SchemaViolationError: If the payload breaks the tagged schema
    """
    if not isinstance(data, Mapping):
        raise DecodeError(f"Scene envelope must be an object, got {type(data).__name__}")

    tag = read_version_tag(data)
    try:
        scene = SCENE_ADAPTER.validate_python(data)
    except ValidationError as e:
        raise SchemaViolationError(_violations_from(e), version=tag) from e

    return ensure_valid(scene)


def decode(payload: Union[bytes, bytearray, str]):
    """
    Decode JSON bytes into a validated versioned scene.

    Raises:
        DecodeError: If the payload is not JSON or not a scene envelope
        UnknownVersionError: If the version tag is not released
        SchemaViolationError: If the payload breaks the tagged schema
    """
    try:
        data = json.loads(payload)
    except RecursionError as e:
        raise DecodeError("Scene payload is nested too deeply") from e
    except TypeError as e:
        raise DecodeError(f"Scene payload must be bytes or str, got {type(payload).__name__}") from e
    except ValueError as e:
        # JSONDecodeError and UnicodeDecodeError
        raise DecodeError(f"Scene payload is not valid JSON: {e}") from e

    return parse_scene(data)


def encode(scene: Any, *, indent: Union[int, None] = None) -> bytes:
    """
    Encode a versioned scene as JSON bytes.

    Raises:
        UnknownVersionError: If the scene's tag is not released
    """
    version_of(scene)
    return SCENE_ADAPTER.dump_json(scene, indent=indent)
