"""
Exception hierarchy for the embedding axis pipeline.
"""


class EmbedAxesError(Exception):
    """Base exception for the package."""


# Caller errors, surfaced immediately and never retried

class PreconditionError(EmbedAxesError):
    """A required input or credential is missing."""


class MissingApiKeyError(PreconditionError):
    """No API key is configured for the external service."""


class NoWordsError(PreconditionError):
    """No usable words were supplied."""


class MissingStrategyError(PreconditionError):
    """No dimension reduction strategy id was supplied."""


class UnknownStrategyError(EmbedAxesError, KeyError):
    """The strategy id is not registered."""

    def __init__(self, strategy_id: str):
        super().__init__(strategy_id)
        self.strategy_id = strategy_id

    def __str__(self):
        return f"Unknown dimension reduction strategy: '{self.strategy_id}'"


class EmptyInputError(EmbedAxesError, ValueError):
    """A reduction was requested for an empty batch of vectors."""


# Single external call failure

class TransientIOError(EmbedAxesError):
    """A network or API call failed after client-level retries."""


# Stage-boundary insufficiency

class InsufficientDataError(EmbedAxesError):
    """Fewer usable items than a stage needs."""

    def __init__(self, message: str, obtained: int = 0, required: int = 3):
        super().__init__(message)
        self.obtained = obtained
        self.required = required


class InsufficientEmbeddingsError(InsufficientDataError):
    """Too few vectors were obtained by a fetch."""


class TooFewCandidatesError(InsufficientDataError):
    """Too few candidates to rank axis labels."""


class NoCandidatesError(InsufficientDataError):
    """Candidate generation produced nothing."""
