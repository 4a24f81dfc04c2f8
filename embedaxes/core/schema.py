"""
Data model for the embedding axis pipeline.
Dataclasses for internal values, pydantic models for validated input and persisted documents.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

Vector = Tuple[float, ...]

AXES = ("x", "y", "z")


def as_vector(values: Sequence[float]) -> Vector:
    """Freeze a sequence of numbers into an immutable vector."""
    return tuple(float(v) for v in values)


@dataclass(frozen=True)
class LabeledVector:
    """A text and the vector the embedding service returned for it."""
    text: str
    vector: Vector

    def __post_init__(self):
        if not isinstance(self.vector, tuple):
            object.__setattr__(self, "vector", as_vector(self.vector))


@dataclass(frozen=True)
class ReductionResult:
    """Which vector components map to X/Y/Z and their ranges over the reduced batch."""
    axis_indices: Tuple[int, int, int]
    axis_min: Tuple[float, float, float]
    axis_max: Tuple[float, float, float]
    strategy_id: str = ""
    strategy_name: str = ""


@dataclass(frozen=True)
class Point3D:
    x: float
    y: float
    z: float


@dataclass(frozen=True)
class FetchFailure:
    text: str
    error: str


@dataclass
class FetchOutcome:
    """Result of a VectorFetcher run."""
    results: List[LabeledVector] = field(default_factory=list)
    failures: List[FetchFailure] = field(default_factory=list)
    from_cache: int = 0

    @property
    def count(self) -> int:
        return len(self.results)


# Progress events

@dataclass(frozen=True)
class GeneratingIdeas:
    completed: int
    total: int


@dataclass(frozen=True)
class FetchingVectors:
    completed: int
    total: int


@dataclass(frozen=True)
class Selecting:
    pass


ProgressEvent = Union[GeneratingIdeas, FetchingVectors, Selecting]


@dataclass(frozen=True)
class WorkflowProgress:
    """Progress reported by the label workflow to its caller."""
    stage: int  # 1 = generating candidates, 2 = fetching + selecting
    message: str
    progress: float  # 0..100 within the stage
    event: Optional[ProgressEvent] = None


# Validated input

class GenerationRequest(BaseModel):
    words: List[str]
    iteration_count: int = Field(default=1, ge=1)
    outputs_per_prompt: int = Field(default=30, ge=1)

    @field_validator('words', mode='before')
    @classmethod
    def words_must_be_text(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            raise ValueError("words must be a list of words, not a single string")
        cleaned = []
        for word in v:
            # Accept word records as well as plain strings
            text = getattr(word, "text", word)
            if isinstance(text, str) and text.strip():
                cleaned.append(text.strip())
        return list(dict.fromkeys(cleaned))


# Persisted documents

class StoredVector(BaseModel):
    text: str
    embedding: List[float]

    @field_validator('text')
    @classmethod
    def text_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('text cannot be empty')
        return v

    @field_validator('embedding')
    @classmethod
    def embedding_must_not_be_empty(cls, v):
        if not v:
            raise ValueError('embedding cannot be empty')
        return v


class AxisLabels(BaseModel):
    """Label text for both ends of each axis."""
    model_config = ConfigDict(populate_by_name=True)

    x: str = "X"
    y: str = "Y"
    z: str = "Z"
    neg_x: str = Field(default="-X", alias="negX")
    neg_y: str = Field(default="-Y", alias="negY")
    neg_z: str = Field(default="-Z", alias="negZ")

    @classmethod
    def defaults(cls) -> "AxisLabels":
        return cls()

    def as_dict(self) -> Dict[str, str]:
        return self.model_dump(by_alias=True)


class AdditionalLabels(BaseModel):
    """Runner-up labels per axis end, ordered from the extreme inward."""
    model_config = ConfigDict(populate_by_name=True)

    x: List[str] = Field(default_factory=list)
    y: List[str] = Field(default_factory=list)
    z: List[str] = Field(default_factory=list)
    neg_x: List[str] = Field(default_factory=list, alias="negX")
    neg_y: List[str] = Field(default_factory=list, alias="negY")
    neg_z: List[str] = Field(default_factory=list, alias="negZ")


class AxisLabelResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    labels: AxisLabels = Field(default_factory=AxisLabels)
    additional: AdditionalLabels = Field(default_factory=AdditionalLabels)
    dimension_indices: Optional[Tuple[int, int, int]] = None
    source: str = "default"  # selector|substitute|positional|default

    @property
    def positive(self) -> Dict[str, str]:
        return {"x": self.labels.x, "y": self.labels.y, "z": self.labels.z}

    @property
    def negative(self) -> Dict[str, str]:
        return {"x": self.labels.neg_x, "y": self.labels.neg_y, "z": self.labels.neg_z}

    @property
    def is_default(self) -> bool:
        return self.labels == AxisLabels.defaults()

    @classmethod
    def defaults(cls) -> "AxisLabelResult":
        return cls()
