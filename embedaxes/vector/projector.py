"""
Axis projection: turns high-dimensional vectors into 3D display coordinates.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from ..core.config import DEFAULT_STRATEGY_ID, DISPLAY_RANGE
from ..core.errors import EmptyInputError
from ..core.schema import AXES, LabeledVector, Point3D, ReductionResult, Vector
from .strategies import VectorStrategyRegistry, default_registry


def scale(value: float, lo: float, hi: float, target_min: float, target_max: float) -> float:
    """Linearly rescale value from [lo, hi] to the target range, clamped."""
    if lo == hi:
        return (target_min + target_max) / 2
    scaled = target_min + (value - lo) * (target_max - target_min) / (hi - lo)
    return min(max(scaled, target_min), target_max)


class AxisProjector:
    """
    Computes reductions through a strategy registry and projects vectors
    into the display cube.
    """

    def __init__(self, registry: Optional[VectorStrategyRegistry] = None,
                 display_range: Tuple[float, float] = DISPLAY_RANGE):
        self.registry = registry or default_registry
        self.display_range = display_range

    def reduce(self, vectors: Sequence[Vector], strategy_id: str = DEFAULT_STRATEGY_ID) -> ReductionResult:
        """
        Reduce a batch of vectors with the named strategy.

        Raises:
            UnknownStrategyError: strategy_id is not registered
            EmptyInputError: vectors is empty
        """
        strategy = self.registry.get(strategy_id)
        if not vectors:
            raise EmptyInputError("Cannot reduce an empty batch of vectors")
        return strategy.reduce(vectors)

    def project(self, vector: Vector, result: ReductionResult) -> Point3D:
        """Place one vector in the display range using a reduction result."""
        lo, hi = self.display_range
        coords = [
            scale(vector[result.axis_indices[k]], result.axis_min[k], result.axis_max[k], lo, hi)
            for k in range(3)
        ]
        return Point3D(*coords)

    def project_all(self, items: Sequence[LabeledVector], result: ReductionResult) -> List[Tuple[str, Point3D]]:
        return [(item.text, self.project(item.vector, result)) for item in items]

    @staticmethod
    def dimension_info(result: Optional[ReductionResult]) -> Dict[str, object]:
        """Describe which component is bound to each axis."""
        if result is None:
            return {"algorithm": "None", "x": None, "y": None, "z": None}

        info: Dict[str, object] = {"algorithm": result.strategy_name or "Unknown"}
        for axis, index in zip(AXES, result.axis_indices):
            info[axis] = index
        return info
