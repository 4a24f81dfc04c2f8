"""
Axis label workflow.

A full run generates candidate labels, fetches their vectors and ranks
them against the axes of the visualised word set. A cache-only refresh
re-ranks whatever is already persisted, without any network call, and
degrades through a fixed ladder of fallbacks instead of failing.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from ..core.config import (
    AUTO_REFRESH_DELAY_SEC, DEFAULT_STRATEGY_ID, FETCH_BATCH_SIZE, FETCH_TIMEOUT_SEC,
    ITERATION_COUNT, LABELS_PER_AXIS, MIN_VECTORS, OUTPUTS_PER_PROMPT,
)
from ..core.errors import (
    EmbedAxesError, EmptyInputError, InsufficientDataError, MissingApiKeyError,
    MissingStrategyError, NoCandidatesError, NoWordsError, PreconditionError,
)
from ..core.schema import (
    AdditionalLabels, AxisLabelResult, AxisLabels, FetchingVectors, GenerationRequest,
    GeneratingIdeas, LabeledVector, Point3D, ReductionResult, Selecting, WorkflowProgress,
)
from ..core.store import KeyValueStore
from ..util.logging import logger
from ..vector.cache import CANDIDATE_VECTORS_KEY, WORD_VECTORS_KEY, EmbeddingCache
from ..vector.embeddings import IEmbeddingClient
from ..vector.fetcher import VectorFetcher
from ..vector.projector import AxisProjector
from .candidates import CandidateGenerator
from .completion import ICompletionClient
from .selector import AxisLabelSelector
from .state import LabelStateRepository

ProgressCallback = Callable[[WorkflowProgress], None]


class WorkflowState(Enum):
    IDLE = "idle"
    GENERATING_CANDIDATES = "generating_candidates"
    FETCHING_VECTORS = "fetching_vectors"
    SELECTING = "selecting"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_active(self) -> bool:
        return self not in (WorkflowState.IDLE, WorkflowState.DONE, WorkflowState.FAILED)


@dataclass
class RefreshContext:
    """Everything a cache-only refresh can work with."""
    candidates: List[str] = field(default_factory=list)
    cached: List[LabeledVector] = field(default_factory=list)
    matched: List[LabeledVector] = field(default_factory=list)
    reduction: Optional[ReductionResult] = None


class LabelWorkflowOrchestrator:
    """
    Sequences candidate generation, vector fetching and label selection,
    and owns all persisted label state.
    """

    def __init__(self, store: KeyValueStore, embedding_client: IEmbeddingClient,
                 completion_client: ICompletionClient, projector: Optional[AxisProjector] = None,
                 strategy_id: str = DEFAULT_STRATEGY_ID, batch_size: int = FETCH_BATCH_SIZE,
                 timeout: float = FETCH_TIMEOUT_SEC, min_vectors: int = MIN_VECTORS,
                 labels_per_axis: int = LABELS_PER_AXIS, refresh_delay: float = AUTO_REFRESH_DELAY_SEC):
        self.store = store
        self.projector = projector or AxisProjector()
        self.strategy_id = strategy_id
        self.min_vectors = min_vectors
        self.labels_per_axis = labels_per_axis
        self.refresh_delay = refresh_delay

        self.state_repo = LabelStateRepository(store)
        self.word_cache = EmbeddingCache(store, WORD_VECTORS_KEY)
        self.candidate_cache = EmbeddingCache(store, CANDIDATE_VECTORS_KEY)

        self.generator = CandidateGenerator(completion_client)
        self.word_fetcher = VectorFetcher(embedding_client, self.word_cache, batch_size, timeout, min_vectors)
        self.candidate_fetcher = VectorFetcher(embedding_client, self.candidate_cache, batch_size, timeout, min_vectors)
        self.selector = AxisLabelSelector(min_candidates=min_vectors)

        self.state = WorkflowState.IDLE
        self.last_error: Optional[Exception] = None
        self.last_result: Optional[AxisLabelResult] = None

        self._refresh_scheduled = False
        self._refresh_task: Optional[asyncio.Task] = None

        # Ordered fallback ladder for refresh_from_cache; the first matching tier wins
        self._refresh_tiers: List[Tuple[str, Callable[[RefreshContext], bool], Callable[[RefreshContext], AxisLabelResult]]] = [
            ("matched", self._has_matched_vectors, self._select_matched),
            ("substitute", self._has_substitute_vectors, self._select_substitute),
            ("positional", self._has_any_vectors, self._assign_positional),
            ("default", lambda ctx: True, lambda ctx: AxisLabelResult.defaults()),
        ]

    @property
    def is_running(self) -> bool:
        return self.state.is_active

    def _set_state(self, state: WorkflowState) -> None:
        logger.log_stage(state.value, "entered", {"from": self.state.value})
        self.state = state

    def _resolve_strategy(self, strategy_id: Optional[str]) -> str:
        strategy_id = strategy_id or self.strategy_id
        if not strategy_id:
            raise MissingStrategyError("A dimension reduction strategy id is required")
        # Raises UnknownStrategyError
        self.projector.registry.get(strategy_id)
        return strategy_id

    # Full run

    async def generate(self, words: Optional[Sequence[str]] = None, strategy_id: Optional[str] = None,
                       iteration_count: int = ITERATION_COUNT, outputs_per_prompt: int = OUTPUTS_PER_PROMPT,
                       on_progress: Optional[ProgressCallback] = None) -> Optional[AxisLabelResult]:
        """
        Run candidate generation, vector fetching and label selection.

        Args:
            words: Words defining the axes; defaults to the visualised word set
            strategy_id: Dimension reduction strategy; defaults to the configured one
            iteration_count: Concurrent completion calls
            outputs_per_prompt: Candidates requested per call
            on_progress: Receives WorkflowProgress updates

        Returns:
            The selected labels, or None when a stage had too little data
            (state FAILED, see last_error)

        Raises:
            PreconditionError: already running, too few words, or no credentials
            UnknownStrategyError: strategy_id is not registered
        """
        if self.is_running:
            raise PreconditionError("A label generation run is already in progress")

        strategy_id = self._resolve_strategy(strategy_id)
        request = GenerationRequest(
            words=words if words is not None else self.words(),
            iteration_count=iteration_count,
            outputs_per_prompt=outputs_per_prompt,
        )
        if len(request.words) < self.min_vectors:
            raise NoWordsError(f"At least {self.min_vectors} words are required, got {len(request.words)}")
        if not self.generator.client.has_credentials():
            raise MissingApiKeyError("An API key is required to generate axis labels")

        def emit(stage: int, message: str, progress: float, event=None) -> None:
            if on_progress:
                on_progress(WorkflowProgress(stage, message, round(progress, 1), event))

        self.last_error = None
        self.state_repo.clear()

        try:
            self._set_state(WorkflowState.GENERATING_CANDIDATES)
            emit(1, "Generating label candidates", 0)

            def on_ideas(event: GeneratingIdeas) -> None:
                emit(1, f"Generated ideas ({event.completed}/{event.total})",
                     100 * event.completed / event.total, event)

            candidates = await self.generator.generate(request, on_progress=on_ideas)
            if not candidates:
                raise NoCandidatesError("Candidate generation produced no candidates")
            self.state_repo.save_candidates(candidates)
            logger.log_stage("generating_candidates", "completed", {"candidates": len(candidates)})

            self._set_state(WorkflowState.FETCHING_VECTORS)
            emit(2, "Fetching vectors", 0)
            word_outcome = await self.word_fetcher.fetch_all(request.words)
            reduction = self.projector.reduce([w.vector for w in word_outcome.results], strategy_id)

            def on_vectors(event: FetchingVectors) -> None:
                emit(2, f"Fetched vectors ({event.completed}/{event.total})",
                     50 * event.completed / event.total, event)

            candidate_outcome = await self.candidate_fetcher.fetch_all(candidates, on_progress=on_vectors)
            logger.log_stage("fetching_vectors", "completed", {
                "vectors": candidate_outcome.count,
                "failures": len(candidate_outcome.failures),
            })

            self._set_state(WorkflowState.SELECTING)
            emit(2, "Selecting best labels", 50, Selecting())
            result = self.selector.select_best_labels(candidate_outcome.results, reduction, self.labels_per_axis)
            self.state_repo.save_labels(result, self.projector.dimension_info(reduction))
            emit(2, "Axis labels ready", 100, Selecting())

        except InsufficientDataError as e:
            logger.log_stage(self.state.value, "failed", {"error": str(e)})
            self.last_error = e
            self._set_state(WorkflowState.FAILED)
            return None
        except Exception as e:
            logger.log_stage(self.state.value, "failed", {"error": str(e)})
            self.last_error = e
            self._set_state(WorkflowState.FAILED)
            raise

        self.last_result = result
        self._set_state(WorkflowState.DONE)
        return result

    # Cache-only refresh

    def _has_matched_vectors(self, ctx: RefreshContext) -> bool:
        return ctx.reduction is not None and len(ctx.matched) >= self.min_vectors

    def _has_substitute_vectors(self, ctx: RefreshContext) -> bool:
        return ctx.reduction is not None and len(ctx.cached) >= self.min_vectors

    def _has_any_vectors(self, ctx: RefreshContext) -> bool:
        return len(ctx.cached) >= self.min_vectors

    def _select_matched(self, ctx: RefreshContext) -> AxisLabelResult:
        return self.selector.select_best_labels(ctx.matched, ctx.reduction, self.labels_per_axis)

    def _select_substitute(self, ctx: RefreshContext) -> AxisLabelResult:
        result = self.selector.select_best_labels(ctx.cached, ctx.reduction, self.labels_per_axis)
        return result.model_copy(update={"source": "substitute"})

    def _assign_positional(self, ctx: RefreshContext) -> AxisLabelResult:
        """First three vectors label the positive ends, last three the negative ends."""
        pool = ctx.matched if len(ctx.matched) >= self.min_vectors else ctx.cached
        texts = [item.text for item in pool]
        labels = AxisLabels(
            x=texts[0], y=texts[1], z=texts[2],
            neg_x=texts[-3], neg_y=texts[-2], neg_z=texts[-1],
        )
        return AxisLabelResult(labels=labels, additional=AdditionalLabels(), source="positional")

    def _build_refresh_context(self, strategy_id: str) -> RefreshContext:
        ctx = RefreshContext(
            candidates=self.state_repo.load_candidates(),
            cached=self.candidate_cache.get_all(),
        )
        cached_by_text = {item.text: item for item in ctx.cached}
        ctx.matched = [cached_by_text[text] for text in dict.fromkeys(ctx.candidates) if text in cached_by_text]

        word_vectors = [w.vector for w in self.word_cache.get_all()]
        if len(word_vectors) >= self.min_vectors:
            try:
                ctx.reduction = self.projector.reduce(word_vectors, strategy_id)
            except (EmptyInputError, ValueError) as e:
                logger.warning(f"Could not reduce word vectors: {e}")
        return ctx

    def refresh_from_cache(self, strategy_id: Optional[str] = None) -> AxisLabelResult:
        """
        Recompute axis labels from persisted data only.

        Never raises InsufficientDataError; with nothing usable persisted the
        default labels are returned.

        Raises:
            UnknownStrategyError: strategy_id is not registered
        """
        strategy_id = self._resolve_strategy(strategy_id)
        ctx = self._build_refresh_context(strategy_id)

        for tier, applies, handler in self._refresh_tiers:
            if not applies(ctx):
                continue
            try:
                result = handler(ctx)
            except InsufficientDataError as e:
                logger.warning(f"Refresh tier '{tier}' could not produce labels: {e}")
                continue

            logger.log_fallback(tier, {
                "candidates": len(ctx.candidates),
                "matched": len(ctx.matched),
                "cached": len(ctx.cached),
            })
            if tier != "default":
                self.state_repo.save_labels(result, self.projector.dimension_info(ctx.reduction))
            self.last_result = result
            return result

        # The default tier always applies
        return AxisLabelResult.defaults()

    # Automatic refresh

    def schedule_refresh(self, strategy_id: Optional[str] = None) -> bool:
        """
        Arm one debounced refresh_from_cache after refresh_delay seconds.

        Returns False without scheduling while a full run is active, while a
        refresh is already pending, when fewer than min_vectors word vectors
        exist, or when no event loop is running.
        """
        if self.is_running or self._refresh_scheduled:
            return False
        if len(self.word_cache) < self.min_vectors:
            return False

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, automatic label refresh skipped")
            return False

        self._refresh_scheduled = True
        self._refresh_task = loop.create_task(self._debounced_refresh(strategy_id))
        return True

    async def _debounced_refresh(self, strategy_id: Optional[str]) -> Optional[AxisLabelResult]:
        try:
            await asyncio.sleep(self.refresh_delay)
            if self.is_running:
                return None
            return self.refresh_from_cache(strategy_id)
        except EmbedAxesError as e:
            logger.error(f"Automatic label refresh failed: {e}")
            self.last_error = e
            return None
        finally:
            self._refresh_scheduled = False

    async def wait_for_refresh(self) -> Optional[AxisLabelResult]:
        """Await the pending automatic refresh, if any."""
        if self._refresh_task is None:
            return None
        return await self._refresh_task

    # Visualised word set

    def words(self) -> List[str]:
        return [item.text for item in self.word_cache.get_all()]

    async def add_word(self, text: str) -> bool:
        """
        Add a word to the visualised set, fetching its vector if needed.
        Returns False when no vector could be obtained.
        """
        text = text.strip() if isinstance(text, str) else ""
        if not text:
            raise NoWordsError("A non-empty word is required")

        vector = await self.word_fetcher.fetch_one(text)
        if vector is None:
            return False

        logger.log_operation("add_word", "success", {"word": text, "words": len(self.word_cache)})
        self.schedule_refresh()
        return True

    def remove_word(self, text: str) -> bool:
        if text not in self.word_cache:
            return False
        self.word_cache.remove(text)
        logger.log_operation("remove_word", "success", {"word": text, "words": len(self.word_cache)})
        self.schedule_refresh()
        return True

    def project_words(self, strategy_id: Optional[str] = None) -> List[Tuple[str, Point3D]]:
        """Place the visualised words in the display cube."""
        strategy_id = self._resolve_strategy(strategy_id)
        items = self.word_cache.get_all()
        if not items:
            return []
        reduction = self.projector.reduce([item.vector for item in items], strategy_id)
        return self.projector.project_all(items, reduction)

    # Persisted labels

    def current_labels(self) -> AxisLabelResult:
        return self.state_repo.load_labels() or AxisLabelResult.defaults()

    def reset(self) -> None:
        """Forget candidates, candidate vectors and labels; word vectors are kept."""
        if self.is_running:
            raise PreconditionError("Cannot reset while a label generation run is in progress")
        self.state_repo.clear()
        self.candidate_cache.clear()
        self.last_result = None
        self.last_error = None
        self.state = WorkflowState.IDLE
        logger.log_operation("reset_labels", "success")
