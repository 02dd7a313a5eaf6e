"""
Migration driver.

Composes single-step converters into a chain between any two released
versions. Chains are monotonic: ascending for upgrades, descending for
downgrades. The whole chain is resolved before the first converter runs,
so a missing converter never leaves a half-migrated value behind.
"""

import logging
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field

from .converters import DEFAULT_REGISTRY, ConversionRegistry, upgrade_losses
from .errors import ConversionChainBrokenError, MixedDirectionError, UnknownVersionError
from .models import SceneV3
from .validation import ensure_valid
from .versioning import CURRENT_VERSION, VersionedScene, is_known_version, version_of

logger = logging.getLogger(__name__)


class MigrationDirection(str, Enum):
    """Direction of a migration request."""
    UPGRADE = "upgrade"
    DOWNGRADE = "downgrade"


class MigrationStep(BaseModel):
    """A single adjacent-version hop."""

    source: int = Field(description="Version before the hop")
    target: int = Field(description="Version after the hop")

    @property
    def direction(self) -> MigrationDirection:
        if self.target > self.source:
            return MigrationDirection.UPGRADE
        return MigrationDirection.DOWNGRADE


class MigrationResult(BaseModel):
    """Result of migrating a scene between versions."""

    scene: VersionedScene = Field(description="The migrated scene")
    source_version: int = Field(description="Version of the input")
    target_version: int = Field(description="Version of the output")
    steps: list[MigrationStep] = Field(
        default_factory=list,
        description="Hops applied, in order (empty if already at target)"
    )
    discarded: frozenset[str] = Field(
        default_factory=frozenset,
        description="Fields dropped along the chain (empty if lossless)"
    )

    @property
    def lossy(self) -> bool:
        return bool(self.discarded)


def plan_migration(source: int, target: int) -> list[MigrationStep]:
    """
    Compute the minimal chain of hops from `source` to `target`.

    Args:
        source: Version of the input
        target: Requested version

    Returns:
        Ascending hops for an upgrade, descending hops for a downgrade,
        empty when source == target

    Raises:
        UnknownVersionError: If either version is not released
    """
    for version in (source, target):
        if not is_known_version(version):
            raise UnknownVersionError(version)

    if source <= target:
        return [MigrationStep(source=v, target=v + 1) for v in range(source, target)]
    return [MigrationStep(source=v, target=v - 1) for v in range(source, target, -1)]


def _resolve_chain(steps: list[MigrationStep], registry: ConversionRegistry) -> list:
    converters = []
    for step in steps:
        if step.direction == MigrationDirection.UPGRADE:
            fn = registry.upgrade_for(step.source)
        else:
            fn = registry.downgrade_for(step.source)
        if fn is None:
            raise ConversionChainBrokenError(step.source, step.target)
        converters.append(fn)
    return converters


def migrate(
    value: Any,
    target_version: int,
    *,
    registry: Optional[ConversionRegistry] = None,
    direction: Union[MigrationDirection, str, None] = None,
) -> MigrationResult:
    """
    Migrate a versioned scene to `target_version`.

    The input is validated first. A scene already at the target is returned
    as the very same object without invoking any converter.

    Args:
        value: A versioned scene of any released version
        target_version: Requested version
        registry: Converters to use (defaults to the shipped registry)
        direction: Expected direction; a request moving the other way is
            rejected

    Returns:
        MigrationResult with the migrated scene and discarded fields

    Raises:
        UnknownVersionError: If the source or target version is not released
        SchemaViolationError: If the input is not schema-valid
        MixedDirectionError: If the request contradicts `direction`
        ConversionChainBrokenError: If a needed converter is missing

    Example:
        >>> result = migrate(scene_v1, CURRENT_VERSION)
        >>> current = result.scene
    """
    if registry is None:
        registry = DEFAULT_REGISTRY
    source_version = version_of(value)
    steps = plan_migration(source_version, target_version)
    ensure_valid(value)

    if direction is not None and steps:
        expected = MigrationDirection(direction)
        if steps[0].direction != expected:
            raise MixedDirectionError(
                f"Requested {expected.value} but version {source_version} -> "
                f"{target_version} is a {steps[0].direction.value}"
            )

    if not steps:
        return MigrationResult(
            scene=value,
            source_version=source_version,
            target_version=target_version,
        )

    converters = _resolve_chain(steps, registry)

    current = value
    discarded: set[str] = set()
    for step, convert in zip(steps, converters):
        if step.direction == MigrationDirection.UPGRADE:
            dropped = upgrade_losses(step.source, current)
            current = convert(current)
        else:
            downgraded = convert(current)
            current = downgraded.scene
            dropped = downgraded.discarded
        discarded |= dropped
        logger.debug(
            "Converted scene | %s -> %s discarded=%s",
            step.source,
            step.target,
            sorted(dropped),
        )

    if discarded:
        logger.warning(
            "Lossy scene migration | %s -> %s discarded=%s",
            source_version,
            target_version,
            sorted(discarded),
        )

    return MigrationResult(
        scene=current,
        source_version=source_version,
        target_version=target_version,
        steps=steps,
        discarded=frozenset(discarded),
    )


def to_current(value: Any, *, registry: Optional[ConversionRegistry] = None) -> SceneV3:
    """Upgrade any released version to the canonical (current) version."""
    return migrate(
        value,
        CURRENT_VERSION,
        registry=registry,
        direction=MigrationDirection.UPGRADE,
    ).scene
