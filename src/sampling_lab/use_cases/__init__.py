"""
Use Cases Layer

Aggregates business logic and provides use cases called from the runner and the viewer.
"""

from sampling_lab.use_cases.experiment import (
    ExperimentOrchestrator,
    calculate_average_score,
    validate_request,
)
from sampling_lab.use_cases.export import (
    aggregate_to_dict,
    best_response,
    comparison_frame,
    experiment_to_dict,
    export_csv,
    export_experiment,
    export_filename,
    export_json,
)
from sampling_lab.use_cases.grid import expand_grid
from sampling_lab.use_cases.health_check import (
    HEALTH_CHECK_PROMPT,
    check_storage,
    health_check_model,
)

__all__ = [
    # experiment
    "ExperimentOrchestrator",
    "calculate_average_score",
    "validate_request",
    # export
    "aggregate_to_dict",
    "best_response",
    "comparison_frame",
    "experiment_to_dict",
    "export_csv",
    "export_experiment",
    "export_filename",
    "export_json",
    # grid
    "expand_grid",
    # health_check
    "HEALTH_CHECK_PROMPT",
    "check_storage",
    "health_check_model",
]
