"""
In-memory storage

Keeps rows in process memory. Used by tests and for ad-hoc runs that do not
need to outlive the process.
"""

from __future__ import annotations

import threading

from sampling_lab.domain.entities import Experiment, Response
from sampling_lab.domain.errors import PersistenceError
from sampling_lab.domain.value_objects import CreateResponseInput
from sampling_lab.infrastructure.storage.base import StorageService


class InMemoryStorage(StorageService):
    """Thread-safe in-memory experiment store"""

    def __init__(self) -> None:
        self._experiments: dict[str, dict] = {}
        self._responses: list[dict] = []
        self._lock = threading.Lock()

    def create_experiment(self, prompt: str) -> Experiment:
        row = self._experiment_row(prompt)
        with self._lock:
            self._experiments[row["id"]] = row
        return self._map_experiment_row(row)

    def create_response(self, data: CreateResponseInput) -> Response:
        row = self._response_row(data)
        with self._lock:
            if data.experiment_id not in self._experiments:
                raise PersistenceError(f"Experiment not found: {data.experiment_id}")
            self._responses.append(row)
        return self._created_response(row, data)

    def get_experiment(self, experiment_id: str) -> Experiment | None:
        with self._lock:
            row = self._experiments.get(experiment_id)
            response_rows = [r for r in self._responses if r["experiment_id"] == experiment_id]
        if row is None:
            return None

        experiment = self._map_experiment_row(row)
        responses = [self._map_response_row(r, experiment.prompt) for r in response_rows]
        experiment.responses = sorted(responses, key=lambda r: r.created_at)
        return experiment

    def get_all_experiments(self) -> list[Experiment]:
        with self._lock:
            rows = list(self._experiments.values())
        return self._newest_first([self._map_experiment_row(r) for r in rows])
