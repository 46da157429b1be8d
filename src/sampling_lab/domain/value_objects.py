"""
Domain Value Objects

Defines immutable data structures representing values such as quality metrics,
parameter combinations, model responses, and per-task outcomes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

from sampling_lab.domain.constants import DEFAULT_MAX_TOKENS, DEFAULT_MODEL

if TYPE_CHECKING:
    from sampling_lab.domain.entities import Response


@dataclass
class MetricDetails:
    """Descriptive statistics derived from a response text"""
    word_count: int = 0
    sentence_count: int = 0
    avg_sentence_length: int = 0
    paragraph_count: int = 0
    punctuation_density: float = 0.0
    lexical_diversity: float = 0.0


@dataclass
class QualityMetrics:
    """Quality scores (0-100) plus the details they were derived from"""
    coherence: int
    completeness: int
    structural: int
    overall: int
    details: MetricDetails = field(default_factory=MetricDetails)

    def __post_init__(self):
        for name in ("coherence", "completeness", "structural", "overall"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ValueError(f"{name} must be between 0 and 100, got {value}")


@dataclass(frozen=True)
class ParameterCombination:
    """One (temperature, top_p) pair driving a single generation task"""
    temperature: float
    top_p: float


@dataclass
class GenerationParams:
    """Sampling parameters sent to the generation collaborator"""
    temperature: float
    top_p: float
    model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS


@dataclass
class ModelResponse:
    """Model response"""
    output: str
    latency_ms: int
    model_name: str
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass
class CreateResponseInput:
    """Everything the storage collaborator needs to persist a response row"""
    experiment_id: str
    temperature: float
    top_p: float
    model: str
    response_text: str
    metrics: QualityMetrics
    response_time_ms: int
    token_count: int

    def __post_init__(self):
        if self.response_time_ms < 0:
            raise ValueError("response_time_ms must be non-negative")
        if self.token_count < 0:
            raise ValueError("token_count must be non-negative")


@dataclass
class TaskSuccess:
    """A generation task that produced a persisted response"""
    combination: ParameterCombination
    response: Response


@dataclass
class TaskFailure:
    """A generation task that failed; kind labels the failing step"""
    combination: ParameterCombination
    reason: str
    kind: str = "other"


TaskOutcome = Union[TaskSuccess, TaskFailure]


@dataclass
class ExperimentMetadata:
    """Summary numbers for one experiment submission"""
    total_generated: int
    total_time_ms: int
    average_score: int


@dataclass
class AggregateResult:
    """Final output of the orchestrator for one experiment submission"""
    experiment_id: str
    responses: list[Response]
    metadata: ExperimentMetadata
    failures: list[TaskFailure] = field(default_factory=list)
