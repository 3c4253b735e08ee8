"""Allocation engines used by the scheduling modules."""

from .placement import (
    Placement,
    PlacementConfig,
    PlacementEngine,
    PlacementOutcome,
    UnplaceableError,
)

__all__ = [
    "Placement",
    "PlacementConfig",
    "PlacementEngine",
    "PlacementOutcome",
    "UnplaceableError",
]
