"""
Axis label selection: rank candidates by their projection on each axis.
"""

from typing import Dict, List, Sequence

from ..core.config import LABELS_PER_AXIS, MIN_VECTORS
from ..core.errors import TooFewCandidatesError
from ..core.schema import AXES, AdditionalLabels, AxisLabelResult, AxisLabels, LabeledVector, ReductionResult
from ..util.logging import logger


class AxisLabelSelector:
    """
    Picks the candidate with the highest projection on each axis as its
    positive label and the one with the lowest as its negative label.

    Ties keep input order. One candidate may label several axes or both
    ends of different axes.
    """

    def __init__(self, min_candidates: int = MIN_VECTORS):
        self.min_candidates = min_candidates

    @staticmethod
    def rank_axis(candidates: Sequence[LabeledVector], index: int) -> List[LabeledVector]:
        """Sort candidates by descending signed value at one vector component."""
        return sorted(candidates, key=lambda c: c.vector[index], reverse=True)

    def select_best_labels(self, candidates: Sequence[LabeledVector], reduction: ReductionResult,
                           labels_per_axis: int = LABELS_PER_AXIS) -> AxisLabelResult:
        """
        Args:
            candidates: Candidate texts with their vectors
            reduction: Axis component binding to rank against
            labels_per_axis: Labels kept per axis end, the best one included

        Raises:
            TooFewCandidatesError: fewer than three usable candidates
        """
        required = max(reduction.axis_indices) + 1
        usable = [c for c in candidates if len(c.vector) >= required]
        if len(usable) < len(candidates):
            logger.warning(f"Ignoring {len(candidates) - len(usable)} candidates with vectors shorter than {required}")

        if len(usable) < self.min_candidates:
            raise TooFewCandidatesError(
                f"Need at least {self.min_candidates} candidates to select axis labels, got {len(usable)}",
                obtained=len(usable),
                required=self.min_candidates,
            )

        best: Dict[str, str] = {}
        additional: Dict[str, List[str]] = {}
        for axis, index in zip(AXES, reduction.axis_indices):
            ranked = self.rank_axis(usable, index)
            best[axis] = ranked[0].text
            best[f"neg_{axis}"] = ranked[-1].text

            # Runner-up labels, listed from each extreme inward
            additional[axis] = [c.text for c in ranked[1:labels_per_axis]]
            additional[f"neg_{axis}"] = [c.text for c in reversed(ranked[-labels_per_axis:-1])] if labels_per_axis > 1 else []

        result = AxisLabelResult(
            labels=AxisLabels(**best),
            additional=AdditionalLabels(**additional),
            dimension_indices=reduction.axis_indices,
            source="selector",
        )

        logger.log_operation("select_labels", "completed", {
            "candidates": len(usable),
            "labels": result.labels.as_dict(),
        })
        return result
