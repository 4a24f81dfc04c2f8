"""
Completion service clients used to brainstorm axis label candidates.

complete() raises TransientIOError when the service call fails and
returns an empty list when the response cannot be parsed.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import httpx
import ollama
from openai import AsyncOpenAI, OpenAIError

from ..core.errors import MissingApiKeyError, TransientIOError
from ..util.logging import logger

WORDS_TOOL_NAME = "input_unique_words"

WORDS_TOOL = {
    "type": "function",
    "function": {
        "name": WORDS_TOOL_NAME,
        "description": "Takes as input a list of unique words",
        "parameters": {
            "type": "object",
            "required": ["words"],
            "properties": {
                "words": {
                    "type": "array",
                    "description": "List of unique words",
                    "items": {"type": "string", "description": "A unique word"},
                },
            },
            "additionalProperties": False,
        },
        "strict": True,
    },
}


def build_prompt(words: Sequence[str], existing: Sequence[str], count: int) -> str:
    """Prompt asking for characteristics that can place the words in 3D space."""
    prompt = (
        "Your task is to find descriptive adjectives or characteristics that can describe "
        "the following words on a 3-dimensional coordinate system.\n\n"
        f"Words to find characteristics for: {', '.join(words)}\n\n"
        "The idea is to plot those words in a 3d coordinate system using those characteristics. "
        f"Generate exactly {count} diverse and unique characteristics"
    )
    if existing:
        prompt += f" that are different from these: {', '.join(existing)}"
    return prompt + "."


def parse_words(payload: Any) -> List[str]:
    """
    Extract candidate strings from a decoded {"words": [...]} payload.
    Non-string and blank entries are dropped.
    """
    if isinstance(payload, dict):
        payload = payload.get("words")
    if not isinstance(payload, list):
        return []
    return [w.strip() for w in payload if isinstance(w, str) and w.strip()]


def parse_arguments(arguments: Optional[str]) -> List[str]:
    if not arguments:
        return []
    try:
        return parse_words(json.loads(arguments))
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse completion response JSON: {e}")
        return []


class ICompletionClient(ABC):
    """Abstract interface for completion service clients."""

    @abstractmethod
    async def complete(self, words: Sequence[str], existing: Sequence[str], count: int) -> List[str]:
        """Return up to count new candidate strings for words, avoiding existing."""
        pass

    def has_credentials(self) -> bool:
        return True


class OpenAICompletionClient(ICompletionClient):
    """
    Chat completions with a forced function call, so the model answers
    with a JSON word list instead of prose.
    """

    def __init__(self, api_key: Optional[str] = None, model_name: str = "gpt-4o-mini",
                 temperature: float = 1.0, max_tokens: int = 2048, client: Optional[AsyncOpenAI] = None):
        self.api_key = api_key
        self.model_name = model_name
        self.temperature = temperature
        self.max_tokens = max_tokens
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

    def _build_messages(self, words: Sequence[str], existing: Sequence[str], count: int) -> List[Dict[str, Any]]:
        return [
            {"role": "system", "content": build_prompt(words, existing, count)},
            {"role": "user", "content": json.dumps({"words": list(words)})},
        ]

    async def complete(self, words: Sequence[str], existing: Sequence[str], count: int) -> List[str]:
        try:
            response = await self.client.chat.completions.create(
                model=self.model_name,
                messages=self._build_messages(words, existing, count),
                tools=[WORDS_TOOL],
                tool_choice={"type": "function", "function": {"name": WORDS_TOOL_NAME}},
                temperature=self.temperature,
                max_completion_tokens=self.max_tokens,
            )
        except (OpenAIError, httpx.HTTPError) as e:
            raise TransientIOError(f"Completion request failed: {e}") from e

        if not response.choices:
            return []

        tool_calls = response.choices[0].message.tool_calls or []
        if not tool_calls:
            logger.warning("Completion response contained no tool call")
            return []
        return parse_arguments(tool_calls[0].function.arguments)


class OllamaCompletionClient(ICompletionClient):
    """Completions from a local Ollama model in JSON mode."""

    def __init__(self, model_name: str = "llama3.2", host: Optional[str] = None,
                 temperature: float = 1.0, client: Optional[ollama.AsyncClient] = None):
        self.model_name = model_name
        self.temperature = temperature
        self.client = client or ollama.AsyncClient(host=host)

    async def complete(self, words: Sequence[str], existing: Sequence[str], count: int) -> List[str]:
        prompt = build_prompt(words, existing, count)
        messages = [
            {"role": "system", "content": prompt},
            {"role": "user", "content": 'Answer with a JSON object of the form {"words": ["..."]}.'},
        ]

        try:
            response = await self.client.chat(
                model=self.model_name,
                messages=messages,
                format="json",
                options={"temperature": self.temperature},
            )
        except (ollama.ResponseError, httpx.HTTPError, ConnectionError) as e:
            raise TransientIOError(f"Ollama completion failed: {e}") from e

        content = response["message"]["content"]
        return parse_arguments(content)
