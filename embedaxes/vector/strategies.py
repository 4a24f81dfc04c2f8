"""
Dimension reduction strategies and the registry that resolves them by id.

A strategy picks three vector components to bind to the X/Y/Z axes and
reports each component's range over the batch it was given.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Sequence

import numpy as np

from ..core.errors import EmptyInputError, UnknownStrategyError
from ..core.schema import ReductionResult, Vector
from ..util.logging import logger


def normalize_strategy_id(strategy_id: str) -> str:
    """Case-fold and hyphenate an id so 'Variance ranked_axes' == 'variance-ranked-axes'."""
    return "-".join(strategy_id.strip().lower().replace("_", " ").split())


def to_matrix(vectors: Sequence[Vector]) -> np.ndarray:
    """Stack a batch of vectors into a 2D float array."""
    if not vectors:
        raise EmptyInputError("Cannot reduce an empty batch of vectors")

    lengths = {len(v) for v in vectors}
    if len(lengths) != 1:
        raise ValueError(f"Vectors in a batch must share one length, got {sorted(lengths)}")
    if 0 in lengths:
        raise EmptyInputError("Cannot reduce zero-length vectors")

    return np.asarray(vectors, dtype=float)


class DimensionReductionStrategy(ABC):
    """Abstract interface for dimension reduction strategies."""

    id: str = ""
    display_name: str = ""
    description: str = ""

    @abstractmethod
    def reduce(self, vectors: Sequence[Vector]) -> ReductionResult:
        """Map a batch of vectors to three axis components and their ranges."""
        pass

    def _result(self, matrix: np.ndarray, indices: List[int]) -> ReductionResult:
        columns = matrix[:, indices]
        return ReductionResult(
            axis_indices=tuple(int(i) for i in indices),
            axis_min=tuple(float(v) for v in columns.min(axis=0)),
            axis_max=tuple(float(v) for v in columns.max(axis=0)),
            strategy_id=self.id,
            strategy_name=self.display_name,
        )


class VarianceRankedAxes(DimensionReductionStrategy):
    """
    Rank components by the sum of their absolute values across the batch
    and bind the top three to X, Y and Z.

    This is a cheap proxy for variance-based selection, not PCA. Ties are
    broken by ascending component index, so the result does not depend on
    the order of vectors in the batch. With fewer than three components
    the ranking wraps around and indices repeat.
    """

    id = "variance-ranked-axes"
    display_name = "Variance-ranked axes"
    description = "Binds the three components with the largest total magnitude to X, Y and Z"

    def reduce(self, vectors: Sequence[Vector]) -> ReductionResult:
        matrix = to_matrix(vectors)
        importance = np.abs(matrix).sum(axis=0)

        # Stable sort on the negated score keeps equal scores in index order
        ranked = np.argsort(-importance, kind="stable")
        dims = len(ranked)
        indices = [int(ranked[k % dims]) for k in range(3)]

        return self._result(matrix, indices)


class VectorStrategyRegistry:
    """
    Registry of named dimension reduction strategies.
    Lookup is total: an unknown id raises instead of falling back to a default.
    """

    def __init__(self, strategies: Iterable[DimensionReductionStrategy] = ()):
        self._strategies: Dict[str, DimensionReductionStrategy] = {}
        self._aliases: Dict[str, str] = {}
        for strategy in strategies:
            self.register(strategy)

    def register(self, strategy: DimensionReductionStrategy, aliases: Iterable[str] = ()) -> None:
        """Register a strategy, overwriting any strategy with the same id."""
        if not getattr(strategy, "id", None) or not callable(getattr(strategy, "reduce", None)):
            raise ValueError(f"Invalid strategy: {strategy!r}")

        key = normalize_strategy_id(strategy.id)
        if key in self._strategies:
            logger.warning(f"Strategy with id '{strategy.id}' is already registered. Overwriting.")

        self._strategies[key] = strategy
        for alias in aliases:
            self._aliases[normalize_strategy_id(alias)] = key

        logger.debug(f"Registered strategy: {strategy.display_name} ({strategy.id})")

    def get(self, strategy_id: str) -> DimensionReductionStrategy:
        """Resolve a strategy by id or alias."""
        if not strategy_id:
            raise UnknownStrategyError(str(strategy_id))

        key = normalize_strategy_id(strategy_id)
        key = self._aliases.get(key, key)
        if key not in self._strategies:
            raise UnknownStrategyError(strategy_id)
        return self._strategies[key]

    def list_strategies(self) -> List[Dict[str, str]]:
        """List registered strategies for display."""
        return [
            {"id": s.id, "name": s.display_name, "description": s.description}
            for s in self._strategies.values()
        ]

    def __contains__(self, strategy_id: str) -> bool:
        try:
            self.get(strategy_id)
            return True
        except UnknownStrategyError:
            return False


def build_default_registry() -> VectorStrategyRegistry:
    registry = VectorStrategyRegistry()
    registry.register(VarianceRankedAxes(), aliases=("pca",))
    return registry


default_registry = build_default_registry()
