"""
Persisted label workflow state: the candidate pool and the latest labels.

Only the workflow orchestrator writes through this repository.
"""

import json
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..core.schema import AXES, AdditionalLabels, AxisLabelResult, AxisLabels
from ..core.store import KeyValueStore
from ..util.logging import logger

CANDIDATES_KEY = "axis-label-ideas"
LABELS_KEY = "axis-labels"
ADDITIONAL_LABELS_KEY = "axis-additional-labels"
DIMENSION_INFO_KEY = "current-dimension-info"


class LabelStateRepository:
    """Reads and writes workflow documents as JSON in a KeyValueStore."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def _load_json(self, key: str) -> Any:
        raw = self.store.get(key)
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse stored '{key}': {e}")
            return None

    # Candidates

    def load_candidates(self) -> List[str]:
        data = self._load_json(CANDIDATES_KEY)
        if not isinstance(data, list):
            return []
        return [c for c in data if isinstance(c, str) and c.strip()]

    def save_candidates(self, candidates: List[str]) -> None:
        self.store.set(CANDIDATES_KEY, json.dumps(list(candidates)))

    def clear_candidates(self) -> None:
        self.store.remove(CANDIDATES_KEY)

    # Labels

    def load_labels(self) -> Optional[AxisLabelResult]:
        """Return the persisted label result, or None when nothing valid is stored."""
        labels_data = self._load_json(LABELS_KEY)
        if not isinstance(labels_data, dict):
            return None

        try:
            labels = AxisLabels.model_validate(labels_data)
            additional = AdditionalLabels.model_validate(self._load_json(ADDITIONAL_LABELS_KEY) or {})
        except ValidationError as e:
            logger.warning(f"Ignoring malformed stored axis labels: {e}")
            return None

        info = self._load_json(DIMENSION_INFO_KEY)
        if not isinstance(info, dict):
            info = {}
        indices = tuple(info.get(axis) for axis in AXES)
        return AxisLabelResult(
            labels=labels,
            additional=additional,
            dimension_indices=indices if all(isinstance(i, int) for i in indices) else None,
            source=info.get("source", "selector"),
        )

    def save_labels(self, result: AxisLabelResult, dimension_info: Optional[Dict[str, Any]] = None) -> None:
        self.store.set(LABELS_KEY, json.dumps(result.labels.as_dict()))
        self.store.set(ADDITIONAL_LABELS_KEY, json.dumps(result.additional.model_dump(by_alias=True)))

        info = dict(dimension_info or {})
        if result.dimension_indices is not None:
            info.update(zip(AXES, result.dimension_indices))
        info["source"] = result.source
        self.store.set(DIMENSION_INFO_KEY, json.dumps(info))

    def clear_labels(self) -> None:
        for key in (LABELS_KEY, ADDITIONAL_LABELS_KEY, DIMENSION_INFO_KEY):
            self.store.remove(key)

    def clear(self) -> None:
        self.clear_candidates()
        self.clear_labels()
