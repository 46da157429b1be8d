"""
Domain Layer

Defines constants, entities, value objects, and errors that form the core of the business logic.
Has no dependencies on external libraries.
"""

from sampling_lab.domain.constants import (
    CSV_EXPORT_HEADERS,
    DEFAULT_MODEL,
    MIN_PROMPT_LENGTH,
    OVERALL_WEIGHTS,
    STOPWORDS,
    TRANSITION_WORDS,
)
from sampling_lab.domain.entities import (
    Experiment,
    HealthCheckResult,
    Response,
)
from sampling_lab.domain.errors import (
    DeadlineExceededError,
    GenerationError,
    PersistenceError,
    SamplingLabError,
    ScoringError,
    ValidationError,
)
from sampling_lab.domain.value_objects import (
    AggregateResult,
    CreateResponseInput,
    ExperimentMetadata,
    GenerationParams,
    MetricDetails,
    ModelResponse,
    ParameterCombination,
    QualityMetrics,
    TaskFailure,
    TaskOutcome,
    TaskSuccess,
)

__all__ = [
    # constants
    "CSV_EXPORT_HEADERS",
    "DEFAULT_MODEL",
    "MIN_PROMPT_LENGTH",
    "OVERALL_WEIGHTS",
    "STOPWORDS",
    "TRANSITION_WORDS",
    # entities
    "Experiment",
    "HealthCheckResult",
    "Response",
    # errors
    "DeadlineExceededError",
    "GenerationError",
    "PersistenceError",
    "SamplingLabError",
    "ScoringError",
    "ValidationError",
    # value objects
    "AggregateResult",
    "CreateResponseInput",
    "ExperimentMetadata",
    "GenerationParams",
    "MetricDetails",
    "ModelResponse",
    "ParameterCombination",
    "QualityMetrics",
    "TaskFailure",
    "TaskOutcome",
    "TaskSuccess",
]
