"""
Vector layer: dimension reduction, projection, embedding clients and the cached fetcher.
"""

# Package initialization for vector module
from .strategies import DimensionReductionStrategy, VarianceRankedAxes, VectorStrategyRegistry, default_registry
from .projector import AxisProjector
from .embeddings import (
    IEmbeddingClient,
    DeterministicHashEmbedding,
    SentenceTransformerEmbeddingClient,
    OpenAIEmbeddingClient,
    OllamaEmbeddingClient,
)
from .cache import EmbeddingCache
from .fetcher import VectorFetcher

__all__ = [
    'DimensionReductionStrategy',
    'VarianceRankedAxes',
    'VectorStrategyRegistry',
    'default_registry',
    'AxisProjector',
    'IEmbeddingClient',
    'DeterministicHashEmbedding',
    'SentenceTransformerEmbeddingClient',
    'OpenAIEmbeddingClient',
    'OllamaEmbeddingClient',
    'EmbeddingCache',
    'VectorFetcher'
]
