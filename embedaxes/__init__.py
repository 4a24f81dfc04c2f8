"""
embedaxes - semantic axes for 3D embedding visualisation.

Reduces text embeddings to three display axes and discovers
human-readable labels for those axes.
"""

from .core.config import VERSION
from .core.errors import (
    EmbedAxesError,
    PreconditionError,
    UnknownStrategyError,
    EmptyInputError,
    TransientIOError,
    InsufficientDataError,
)
from .core.schema import AxisLabelResult, LabeledVector, Point3D, ReductionResult, WorkflowProgress
from .core.store import InMemoryKeyValueStore, KeyValueStore, SqliteKeyValueStore
from .agents.orchestrator import LabelWorkflowOrchestrator, WorkflowState

__version__ = VERSION

__all__ = [
    'EmbedAxesError',
    'PreconditionError',
    'UnknownStrategyError',
    'EmptyInputError',
    'TransientIOError',
    'InsufficientDataError',
    'AxisLabelResult',
    'LabeledVector',
    'Point3D',
    'ReductionResult',
    'WorkflowProgress',
    'InMemoryKeyValueStore',
    'KeyValueStore',
    'SqliteKeyValueStore',
    'LabelWorkflowOrchestrator',
    'WorkflowState',
    '__version__'
]
