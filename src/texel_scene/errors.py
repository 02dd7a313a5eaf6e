"""
Exception types for scene decoding, validation, migration and editing.

UnknownVersionError and ConversionChainBrokenError are fatal for the file
being processed. SchemaViolationError reports a corrupt payload. Lossy
downgrades are not errors: they are reported on the result objects.
"""

from typing import Optional, Sequence

from pydantic import BaseModel, Field


class SchemaViolation(BaseModel):
    """A single structural invariant failure."""

    path: str = Field(description="Location of the offending value (e.g. '/layers/0/cells/3')")
    message: str = Field(description="Error message")


class SceneFormatError(Exception):
    """Base class for all scene format errors."""


class DecodeError(SceneFormatError):
    """The payload is not a versioned scene envelope at all."""


class UnknownVersionError(SceneFormatError):
    """The version tag is not known to this build."""

    def __init__(self, version: object):
        self.version = version
        super().__init__(f"Unknown scene version: {version!r}")


class SchemaViolationError(SceneFormatError):
    """The version tag is known but the payload breaks its schema."""

    def __init__(self, violations: Sequence[SchemaViolation], version: Optional[int] = None):
        self.violations = list(violations)
        self.version = version
        summary = "; ".join(f"{v.path}: {v.message}" for v in self.violations[:5])
        if len(self.violations) > 5:
            summary += f" (+{len(self.violations) - 5} more)"
        super().__init__(f"Schema violation: {summary}")


class ConversionChainBrokenError(SceneFormatError, RuntimeError):
    """An adjacent-version converter needed for a migration is missing."""

    def __init__(self, source: int, target: int):
        self.source = source
        self.target = target
        super().__init__(f"No converter registered from version {source} to {target}")


class MixedDirectionError(SceneFormatError, ValueError):
    """A migration request would move against the requested direction."""


class InconsistentMutationError(SceneFormatError, ValueError):
    """A canonical scene operation was rejected; the scene is unchanged."""
