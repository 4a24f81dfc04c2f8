"""
Cache-first vector retrieval with bounded per-item timeouts.
"""

import asyncio
from typing import Callable, List, Optional, Sequence

from ..core.config import FETCH_BATCH_SIZE, FETCH_TIMEOUT_SEC, MIN_VECTORS
from ..core.errors import InsufficientEmbeddingsError
from ..core.schema import FetchFailure, FetchingVectors, FetchOutcome, LabeledVector, Vector
from ..util.logging import logger
from .cache import EmbeddingCache
from .embeddings import IEmbeddingClient

ProgressCallback = Callable[[FetchingVectors], None]


class VectorFetcher:
    """
    Resolves vectors for a list of texts.

    Cached texts are served without a network call. The rest are fetched in
    sequential batches; items inside a batch run concurrently, each raced
    against a timeout. Successes are written to the cache as soon as they
    arrive, so an interrupted run loses at most one batch of work.
    """

    def __init__(self, client: IEmbeddingClient, cache: EmbeddingCache,
                 batch_size: int = FETCH_BATCH_SIZE, timeout: float = FETCH_TIMEOUT_SEC,
                 min_vectors: int = MIN_VECTORS):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.client = client
        self.cache = cache
        self.batch_size = batch_size
        self.timeout = timeout
        self.min_vectors = min_vectors

    async def _fetch_item(self, text: str) -> Vector:
        return await asyncio.wait_for(self.client.embed(text), timeout=self.timeout)

    async def fetch_one(self, text: str) -> Optional[Vector]:
        """Resolve a single text; returns None if the fetch fails or times out."""
        cached = self.cache.get(text)
        if cached is not None:
            return cached

        try:
            vector = await self._fetch_item(text)
        except asyncio.TimeoutError:
            logger.log_fetch_item(text, "timeout", 1, 1, error=f"timed out after {self.timeout}s")
            return None
        except Exception as e:
            logger.log_fetch_item(text, "failed", 1, 1, error=str(e))
            return None

        self.cache.put(text, vector)
        logger.log_fetch_item(text, "success", 1, 1)
        return vector

    async def fetch_all(self, texts: Sequence[str],
                        on_progress: Optional[ProgressCallback] = None) -> FetchOutcome:
        """
        Resolve vectors for texts, cache first.

        Raises:
            InsufficientEmbeddingsError: fewer than min_vectors vectors were obtained
        """
        unique_texts = list(dict.fromkeys(texts))
        total = len(unique_texts)
        outcome = FetchOutcome()

        uncached: List[str] = []
        for text in unique_texts:
            vector = self.cache.get(text)
            if vector is not None:
                outcome.results.append(LabeledVector(text, vector))
            else:
                uncached.append(text)

        outcome.from_cache = len(outcome.results)
        completed = outcome.from_cache
        if completed and on_progress:
            on_progress(FetchingVectors(completed, total))

        logger.log_operation("fetch_vectors", "started", {
            "total": total,
            "cached": outcome.from_cache,
            "uncached": len(uncached),
        })

        for start in range(0, len(uncached), self.batch_size):
            batch = uncached[start:start + self.batch_size]

            async def settle(text: str) -> None:
                nonlocal completed
                error = None
                try:
                    vector = await self._fetch_item(text)
                except asyncio.TimeoutError:
                    error = f"timed out after {self.timeout}s"
                    status = "timeout"
                except Exception as e:
                    error = str(e) or type(e).__name__
                    status = "failed"
                else:
                    outcome.results.append(LabeledVector(text, vector))
                    self.cache.put(text, vector)
                    status = "success"

                if error is not None:
                    outcome.failures.append(FetchFailure(text, error))
                completed += 1
                logger.log_fetch_item(text, status, completed, total, error=error)
                if on_progress:
                    on_progress(FetchingVectors(completed, total))

            await asyncio.gather(*(settle(text) for text in batch))

        logger.log_operation("fetch_vectors", "completed", {
            "obtained": outcome.count,
            "failed": len(outcome.failures),
        })

        if outcome.count < self.min_vectors:
            raise InsufficientEmbeddingsError(
                f"Only {outcome.count} vectors obtained, at least {self.min_vectors} required",
                obtained=outcome.count,
                required=self.min_vectors,
            )

        return outcome
