"""Force-directed layout engine and view transform."""

from booklog.services.layout.simulation import (
    ForceSimulation,
    SimulationClosedError,
)
from booklog.services.layout.transform import MAX_SCALE, MIN_SCALE, ViewTransform

__all__ = [
    "ForceSimulation",
    "SimulationClosedError",
    "ViewTransform",
    "MIN_SCALE",
    "MAX_SCALE",
]
