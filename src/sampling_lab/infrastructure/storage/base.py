"""
Storage service base class

Defines the narrow CRUD contract the orchestrator relies on, plus the
row <-> entity mapping shared by every store. Rows are flat dicts whose
keys match the persisted column names.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone

from sampling_lab.domain.entities import Experiment, Response
from sampling_lab.domain.value_objects import CreateResponseInput, QualityMetrics
from sampling_lab.scoring.quality import recompute_details

EXPERIMENT_COLUMNS = ["id", "prompt", "created_at", "updated_at"]

RESPONSE_COLUMNS = [
    "id",
    "experiment_id",
    "temperature",
    "top_p",
    "model",
    "response_text",
    "coherence_score",
    "completeness_score",
    "structural_score",
    "overall_score",
    "response_time_ms",
    "token_count",
    "created_at",
]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def _as_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _as_int(value) -> int:
    """Integer column value, treating missing values as 0"""
    if value is None or value == "" or value != value:  # NaN
        return 0
    return int(value)


class StorageService(ABC):
    """Abstract base class for experiment storage"""

    @abstractmethod
    def create_experiment(self, prompt: str) -> Experiment:
        """Create a new experiment"""
        pass

    @abstractmethod
    def create_response(self, data: CreateResponseInput) -> Response:
        """Create a new response row tied to an experiment"""
        pass

    @abstractmethod
    def get_experiment(self, experiment_id: str) -> Experiment | None:
        """Get a single experiment with its responses, or None if it does not exist"""
        pass

    @abstractmethod
    def get_all_experiments(self) -> list[Experiment]:
        """Get all experiments, newest first (responses are not populated)"""
        pass

    @staticmethod
    def _experiment_row(prompt: str) -> dict:
        now = _now().isoformat()
        return {"id": _new_id(), "prompt": prompt, "created_at": now, "updated_at": now}

    @staticmethod
    def _response_row(data: CreateResponseInput) -> dict:
        return {
            "id": _new_id(),
            "experiment_id": data.experiment_id,
            "temperature": data.temperature,
            "top_p": data.top_p,
            "model": data.model,
            "response_text": data.response_text,
            "coherence_score": data.metrics.coherence,
            "completeness_score": data.metrics.completeness,
            "structural_score": data.metrics.structural,
            "overall_score": data.metrics.overall,
            "response_time_ms": data.response_time_ms,
            "token_count": data.token_count,
            "created_at": _now().isoformat(),
        }

    @staticmethod
    def _map_experiment_row(row: dict) -> Experiment:
        """Map a stored row to the Experiment domain model"""
        return Experiment(
            id=str(row["id"]),
            prompt=str(row["prompt"]),
            created_at=_as_datetime(row["created_at"]),
            updated_at=_as_datetime(row["updated_at"]),
        )

    @staticmethod
    def _map_response_row(row: dict, prompt: str | None = None) -> Response:
        """
        Map a stored row to the Response domain model

        Details are not stored; they are recomputed when the prompt is known
        and zero otherwise.
        """
        response_text = str(row["response_text"])
        metrics = QualityMetrics(
            coherence=_as_int(row.get("coherence_score")),
            completeness=_as_int(row.get("completeness_score")),
            structural=_as_int(row.get("structural_score")),
            overall=_as_int(row.get("overall_score")),
            details=recompute_details(response_text, prompt),
        )
        return Response(
            id=str(row["id"]),
            experiment_id=str(row["experiment_id"]),
            temperature=float(row["temperature"]),
            top_p=float(row["top_p"]),
            model=str(row["model"]),
            response_text=response_text,
            metrics=metrics,
            response_time_ms=_as_int(row.get("response_time_ms")),
            token_count=_as_int(row.get("token_count")),
            created_at=_as_datetime(row["created_at"]),
        )

    @staticmethod
    def _created_response(row: dict, data: CreateResponseInput) -> Response:
        """The Response just written, carrying the details computed at scoring time"""
        response = StorageService._map_response_row(row)
        response.metrics = data.metrics
        return response

    @staticmethod
    def _newest_first(experiments: list[Experiment]) -> list[Experiment]:
        # Reverse first so equal timestamps keep newest-inserted first
        return sorted(reversed(experiments), key=lambda e: e.created_at, reverse=True)
