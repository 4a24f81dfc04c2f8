"""
Durable text -> vector cache on top of a KeyValueStore.

Entries live as one JSON list under a namespace key, in insertion order.
Cached vectors are trusted forever; nothing is evicted automatically.
"""

import json
from typing import Dict, List, Optional

from pydantic import ValidationError

from ..core.schema import LabeledVector, StoredVector, Vector, as_vector
from ..core.store import KeyValueStore
from ..util.logging import logger

WORD_VECTORS_KEY = "embedding-words"
CANDIDATE_VECTORS_KEY = "axis-label-embeddings"


class EmbeddingCache:
    """
    Text -> vector cache. Keys are case-sensitive; put() overwrites silently.
    """

    def __init__(self, store: KeyValueStore, namespace: str = CANDIDATE_VECTORS_KEY):
        self.store = store
        self.namespace = namespace

    def _load(self) -> Dict[str, Vector]:
        raw = self.store.get(self.namespace)
        if not raw:
            return {}

        try:
            items = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse cached embeddings under '{self.namespace}': {e}")
            return {}

        if not isinstance(items, list):
            logger.warning(f"Ignoring cached embeddings under '{self.namespace}': not a list")
            return {}

        entries: Dict[str, Vector] = {}
        skipped = 0
        for item in items:
            try:
                record = StoredVector.model_validate(item)
            except ValidationError:
                skipped += 1
                continue
            entries[record.text] = as_vector(record.embedding)

        if skipped:
            logger.warning(f"Skipped {skipped} malformed cached embeddings under '{self.namespace}'")
        return entries

    def _save(self, entries: Dict[str, Vector]) -> None:
        payload = [{"text": text, "embedding": list(vector)} for text, vector in entries.items()]
        self.store.set(self.namespace, json.dumps(payload))

    def get(self, text: str) -> Optional[Vector]:
        return self._load().get(text)

    def put(self, text: str, vector: Vector) -> None:
        entries = self._load()
        entries[text] = as_vector(vector)
        self._save(entries)

    def get_all(self) -> List[LabeledVector]:
        return [LabeledVector(text, vector) for text, vector in self._load().items()]

    def remove(self, text: str) -> None:
        entries = self._load()
        if entries.pop(text, None) is not None:
            self._save(entries)

    def clear(self) -> None:
        self.store.remove(self.namespace)

    def __contains__(self, text: str) -> bool:
        return text in self._load()

    def __len__(self) -> int:
        return len(self._load())
