"""
Runtime configuration for the embedding axis pipeline.
All settings come from the environment (optionally a .env file).
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Durable store configuration
DB_PATH = os.getenv("EMBEDAXES_DB_PATH", "./data/embedaxes.db")
STORE_PROVIDER = os.getenv("STORE_PROVIDER", "sqlite")  # sqlite|memory

# Debug flag is read once here; use debug_enabled() for the live value
DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# External service providers
EMBED_PROVIDER = os.getenv("EMBED_PROVIDER", "openai")  # openai|ollama|sentence_transformers|hash
COMPLETION_PROVIDER = os.getenv("COMPLETION_PROVIDER", "openai")  # openai|ollama

OPENAI_EMBED_MODEL = os.getenv("OPENAI_EMBED_MODEL", "text-embedding-3-large")
OPENAI_COMPLETION_MODEL = os.getenv("OPENAI_COMPLETION_MODEL", "gpt-4o-mini")
OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "llama3.2")
OLLAMA_EMBED_MODEL = os.getenv("OLLAMA_EMBED_MODEL", "nomic-embed-text")
EMBED_MODEL_NAME = os.getenv("EMBED_MODEL_NAME", "all-mpnet-base-v2")
EMBED_RETRY_COUNT = int(os.getenv("EMBED_RETRY_COUNT", "1"))

# Vector fetching
FETCH_BATCH_SIZE = int(os.getenv("FETCH_BATCH_SIZE", "10"))
FETCH_TIMEOUT_SEC = float(os.getenv("FETCH_TIMEOUT_SEC", "5"))
MIN_VECTORS = int(os.getenv("MIN_VECTORS", "3"))

# Dimension reduction and display
DEFAULT_STRATEGY_ID = os.getenv("DEFAULT_STRATEGY_ID", "variance-ranked-axes")
DISPLAY_RANGE = (-2.0, 2.0)

# Label generation workflow
ITERATION_COUNT = int(os.getenv("ITERATION_COUNT", "1"))
OUTPUTS_PER_PROMPT = int(os.getenv("OUTPUTS_PER_PROMPT", "30"))
LABELS_PER_AXIS = int(os.getenv("LABELS_PER_AXIS", "2"))
AUTO_REFRESH_DELAY_SEC = float(os.getenv("AUTO_REFRESH_DELAY_SEC", "0.5"))

VERSION = "0.3.0"


def get_openai_api_key():
    """Read the OpenAI key at call time so a key set after import is honoured."""
    key = os.getenv("OPENAI_API_KEY", "").strip()
    return key or None


def get_store():
    """Get the configured durable key-value store."""
    if STORE_PROVIDER == "memory":
        from .store import InMemoryKeyValueStore
        return InMemoryKeyValueStore()

    from .store import SqliteKeyValueStore
    ensure_db_directory()
    return SqliteKeyValueStore(DB_PATH)


def get_embedding_client():
    """Get the configured embedding service client."""
    if EMBED_PROVIDER == "ollama":
        from ..vector.embeddings import OllamaEmbeddingClient
        return OllamaEmbeddingClient(model_name=OLLAMA_EMBED_MODEL, retry_count=EMBED_RETRY_COUNT)
    elif EMBED_PROVIDER == "sentence_transformers":
        from ..vector.embeddings import SentenceTransformerEmbeddingClient
        return SentenceTransformerEmbeddingClient(model_name=EMBED_MODEL_NAME)
    elif EMBED_PROVIDER == "hash":
        from ..vector.embeddings import DeterministicHashEmbedding
        return DeterministicHashEmbedding()

    from ..vector.embeddings import OpenAIEmbeddingClient
    return OpenAIEmbeddingClient(
        api_key=get_openai_api_key(),
        model_name=OPENAI_EMBED_MODEL,
        retry_count=EMBED_RETRY_COUNT,
    )


def get_completion_client():
    """Get the configured completion service client."""
    if COMPLETION_PROVIDER == "ollama":
        from ..agents.completion import OllamaCompletionClient
        return OllamaCompletionClient(model_name=OLLAMA_MODEL)

    from ..agents.completion import OpenAICompletionClient
    return OpenAICompletionClient(api_key=get_openai_api_key(), model_name=OPENAI_COMPLETION_MODEL)


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DEBUG", "false").lower() == "true"


def ensure_db_directory():
    """Ensure the database directory exists."""
    Path(DB_PATH).parent.mkdir(parents=True, exist_ok=True)
