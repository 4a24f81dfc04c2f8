"""
Candidate label generation.

Runs several completion calls concurrently and merges their output into
one case-insensitively distinct candidate list.
"""

import asyncio
from typing import Callable, Iterable, List, Optional

from ..core.errors import MissingApiKeyError, NoWordsError, TransientIOError
from ..core.schema import GenerationRequest, GeneratingIdeas
from ..util.logging import logger
from .completion import ICompletionClient

ProgressCallback = Callable[[GeneratingIdeas], None]


def merge_unique(accumulated: List[str], new_items: Iterable[str]) -> List[str]:
    """
    Append the items of new_items that are not already present, ignoring case.
    Returns the items that were added.
    """
    seen = {item.lower() for item in accumulated}
    added = []
    for item in new_items:
        key = item.lower()
        if key in seen:
            continue
        seen.add(key)
        accumulated.append(item)
        added.append(item)
    return added


class CandidateGenerator:
    """
    Brainstorms axis label candidates for a word list.

    All calls of one run see the same snapshot of known candidates, taken
    before any call is issued. Duplicates between concurrent calls are
    removed afterwards, when the outputs are merged in call order.
    """

    def __init__(self, client: ICompletionClient):
        self.client = client

    async def generate(self, request: GenerationRequest,
                       on_progress: Optional[ProgressCallback] = None,
                       existing: Optional[List[str]] = None) -> List[str]:
        """
        Generate candidates for request.words.

        Args:
            request: Words plus iteration and output counts
            on_progress: Called once per settled completion call
            existing: Candidates to avoid; they are not part of the result

        Returns:
            New candidates in merge order

        Raises:
            MissingApiKeyError: the completion client has no credentials
            NoWordsError: no usable words were given
        """
        if not self.client.has_credentials():
            raise MissingApiKeyError("An API key is required to generate axis label candidates")
        if not request.words:
            raise NoWordsError("No words provided to generate candidates from")

        accumulated = list(existing or [])
        snapshot = list(accumulated)
        total = request.iteration_count
        completed = 0

        logger.log_operation("generate_candidates", "started", {
            "words": len(request.words),
            "iterations": total,
            "outputs_per_prompt": request.outputs_per_prompt,
        })

        async def run_call(index: int) -> List[str]:
            nonlocal completed
            try:
                result = await self.client.complete(request.words, snapshot, request.outputs_per_prompt)
                error = None
            except (TransientIOError, MissingApiKeyError) as e:
                result, error = [], str(e)
            except Exception as e:
                logger.error(f"Unexpected error in completion call {index + 1}: {e}")
                result, error = [], str(e) or type(e).__name__

            completed += 1
            logger.log_candidate_call(index + 1, total, len(result), error=error)
            if on_progress:
                on_progress(GeneratingIdeas(completed, total))
            return result

        outputs = await asyncio.gather(*(run_call(i) for i in range(total)))

        generated: List[str] = []
        for output in outputs:
            generated.extend(merge_unique(accumulated, output))

        logger.log_operation("generate_candidates", "completed", {
            "candidates": len(generated),
            "empty_calls": sum(1 for output in outputs if not output),
        })
        return generated
