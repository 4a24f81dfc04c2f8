"""
Embedding service clients.
Every client exposes one coroutine, embed(text) -> vector, and owns its own retry policy.
"""

import asyncio
import hashlib
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List, Optional

import httpx
import ollama
from openai import AsyncOpenAI, OpenAIError
from sentence_transformers import SentenceTransformer

from ..core.errors import MissingApiKeyError, TransientIOError
from ..core.schema import Vector, as_vector
from ..util.logging import logger


async def call_with_retries(call: Callable[[], Awaitable[List[float]]], description: str,
                            retry_count: int = 1, backoff_base: float = 1.0) -> List[float]:
    """
    Run call up to retry_count + 1 times with exponential backoff.

    Raises:
        TransientIOError: every attempt failed
    """
    last_error = None
    for attempt in range(retry_count + 1):
        if attempt > 0:
            wait = backoff_base * (2 ** (attempt - 1))
            logger.warning(f"Retry attempt {attempt}/{retry_count} for {description} in {wait}s")
            await asyncio.sleep(wait)
        try:
            return await call()
        except (OpenAIError, ollama.ResponseError, httpx.HTTPError, ConnectionError, OSError) as e:
            last_error = e
            logger.warning(f"Embedding request failed for {description}: {e}")

    raise TransientIOError(f"Embedding failed after {retry_count + 1} attempts: {last_error}") from last_error


def _require_text(text: str) -> str:
    if not isinstance(text, str) or not text.strip():
        raise ValueError("Valid text input is required")
    return text


class IEmbeddingClient(ABC):
    """Abstract interface for embedding service clients."""

    @abstractmethod
    async def embed(self, text: str) -> Vector:
        """Return the embedding vector for text."""
        pass

    def has_credentials(self) -> bool:
        """Whether the client can make calls at all (local clients always can)."""
        return True


class DeterministicHashEmbedding(IEmbeddingClient):
    """Deterministic hash-based embeddings for tests and offline runs.

    The same text always produces the same vector, without any model or network.
    """

    def __init__(self, dimension: int = 384):
        self.dimension = dimension
        self.calls = 0

    async def embed(self, text: str) -> Vector:
        self.calls += 1
        vector = []
        block = 0
        while len(vector) < self.dimension:
            digest = hashlib.sha256(f"{text}:{block}".encode()).hexdigest()
            for i in range(0, len(digest), 8):
                value = int(digest[i:i + 8], 16)
                # Map to [-1, 1]
                vector.append((value / 2**32) * 2 - 1)
            block += 1
        return as_vector(vector[:self.dimension])

    def get_dimension(self) -> int:
        return self.dimension


class SentenceTransformerEmbeddingClient(IEmbeddingClient):
    """Local sentence-transformers model, run off the event loop."""

    def __init__(self, model_name: str = "all-mpnet-base-v2"):
        self.model_name = model_name
        self._model = None

    @property
    def model(self):
        if self._model is None:
            self._model = SentenceTransformer(self.model_name)
        return self._model

    async def embed(self, text: str) -> Vector:
        _require_text(text)
        embedding = await asyncio.to_thread(self.model.encode, text, convert_to_tensor=False)
        return as_vector(embedding.tolist())


class OpenAIEmbeddingClient(IEmbeddingClient):
    """OpenAI embeddings endpoint with retry and exponential backoff."""

    def __init__(self, api_key: Optional[str] = None, model_name: str = "text-embedding-3-large",
                 retry_count: int = 1, backoff_base: float = 1.0, client: Optional[AsyncOpenAI] = None):
        self.api_key = api_key
        self.model_name = model_name
        self.retry_count = retry_count
        self.backoff_base = backoff_base
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.api_key:
                raise MissingApiKeyError("OpenAI API key is required")
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    def has_credentials(self) -> bool:
        return bool(self.api_key) or self._client is not None

    async def embed(self, text: str) -> Vector:
        _require_text(text)
        client = self.client

        async def call():
            response = await client.embeddings.create(
                model=self.model_name,
                input=text,
                encoding_format="float",
            )
            return response.data[0].embedding

        embedding = await call_with_retries(call, f"'{text[:30]}'", self.retry_count, self.backoff_base)
        return as_vector(embedding)


class OllamaEmbeddingClient(IEmbeddingClient):
    """Embeddings from a local Ollama server."""

    def __init__(self, model_name: str = "nomic-embed-text", host: Optional[str] = None,
                 retry_count: int = 1, backoff_base: float = 1.0, client: Optional[ollama.AsyncClient] = None):
        self.model_name = model_name
        self.retry_count = retry_count
        self.backoff_base = backoff_base
        self.client = client or ollama.AsyncClient(host=host)

    async def embed(self, text: str) -> Vector:
        _require_text(text)

        async def call():
            response = await self.client.embed(model=self.model_name, input=text)
            return response["embeddings"][0]

        embedding = await call_with_retries(call, f"'{text[:30]}'", self.retry_count, self.backoff_base)
        return as_vector(embedding)
