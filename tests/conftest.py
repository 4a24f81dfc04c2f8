"""
Shared fakes for the embedaxes test suite. No test touches the network.
"""

import asyncio
from typing import Dict, List, Optional, Sequence

import pytest

from embedaxes.agents.completion import ICompletionClient
from embedaxes.core.errors import TransientIOError
from embedaxes.core.schema import as_vector
from embedaxes.core.store import InMemoryKeyValueStore
from embedaxes.vector.embeddings import DeterministicHashEmbedding, IEmbeddingClient


class FakeEmbeddingClient(IEmbeddingClient):
    """Returns fixed vectors per text; texts without one get a hash vector."""

    def __init__(self, vectors: Optional[Dict[str, Sequence[float]]] = None, dimension: int = 4,
                 slow=(), fail=(), delay: float = 0.0):
        self.vectors = dict(vectors or {})
        self.slow = set(slow)
        self.fail = set(fail)
        self.delay = delay
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._fallback = DeterministicHashEmbedding(dimension=dimension)

    async def embed(self, text: str):
        self.calls.append(text)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if text in self.slow:
                await asyncio.sleep(10)
            if text in self.fail:
                raise TransientIOError(f"embedding failed for {text}")
            if text in self.vectors:
                return as_vector(self.vectors[text])
            return await self._fallback.embed(text)
        finally:
            self.in_flight -= 1


class FakeCompletionClient(ICompletionClient):
    """
    Returns one output list per call, in call order; the last list repeats.
    Calls whose index is in fail_calls raise TransientIOError.
    """

    def __init__(self, outputs: Optional[List[List[str]]] = None, fail_calls=(), credentials: bool = True):
        self.outputs = outputs if outputs is not None else [[]]
        self.fail_calls = set(fail_calls)
        self.credentials = credentials
        self.calls = []

    def has_credentials(self) -> bool:
        return self.credentials

    async def complete(self, words, existing, count):
        index = len(self.calls)
        self.calls.append({"words": list(words), "existing": list(existing), "count": count})
        if index in self.fail_calls:
            raise TransientIOError(f"completion call {index} failed")
        return list(self.outputs[min(index, len(self.outputs) - 1)])


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def embedding_client():
    return FakeEmbeddingClient()


@pytest.fixture
def completion_client():
    return FakeCompletionClient([["fast", "slow", "loud", "quiet", "furry"]])
