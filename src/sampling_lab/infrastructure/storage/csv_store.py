"""
CSV file storage

Persists experiments and responses as two CSV files in a directory:
experiments.csv and responses.csv. Rows are appended, never rewritten.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

import pandas as pd

from sampling_lab.domain.entities import Experiment, Response
from sampling_lab.domain.errors import PersistenceError
from sampling_lab.domain.value_objects import CreateResponseInput
from sampling_lab.infrastructure.storage.base import (
    EXPERIMENT_COLUMNS,
    RESPONSE_COLUMNS,
    StorageService,
)

logger = logging.getLogger(__name__)

_TEXT_COLUMNS = ("id", "experiment_id", "prompt", "model", "response_text")


class CsvStorage(StorageService):
    """Experiment store backed by append-only CSV files"""

    def __init__(self, directory: str | Path) -> None:
        """
        Args:
            directory: Directory holding experiments.csv and responses.csv (created on first write)
        """
        self.directory = Path(directory)
        self.experiments_path = self.directory / "experiments.csv"
        self.responses_path = self.directory / "responses.csv"
        self._lock = threading.Lock()

    def _append(self, path: Path, row: dict, columns: list[str]) -> None:
        try:
            with self._lock:
                path.parent.mkdir(parents=True, exist_ok=True)
                pd.DataFrame([row], columns=columns).to_csv(
                    path, mode="a", header=not path.exists(), index=False,
                )
        except OSError as e:
            raise PersistenceError(f"Failed to write {path}: {e}") from e

    def _read(self, path: Path, columns: list[str]) -> list[dict]:
        if not path.exists():
            return []
        try:
            with self._lock:
                df = pd.read_csv(
                    path,
                    dtype={c: str for c in _TEXT_COLUMNS if c in columns},
                    keep_default_na=False,
                )
        except pd.errors.EmptyDataError:
            return []
        except (OSError, pd.errors.ParserError) as e:
            raise PersistenceError(f"Failed to read {path}: {e}") from e
        return df.to_dict("records")

    def _experiment_rows(self) -> list[dict]:
        return self._read(self.experiments_path, EXPERIMENT_COLUMNS)

    def _response_rows(self) -> list[dict]:
        return self._read(self.responses_path, RESPONSE_COLUMNS)

    def create_experiment(self, prompt: str) -> Experiment:
        row = self._experiment_row(prompt)
        self._append(self.experiments_path, row, EXPERIMENT_COLUMNS)
        logger.debug("Stored experiment %s", row["id"])
        return self._map_experiment_row(row)

    def create_response(self, data: CreateResponseInput) -> Response:
        if not any(r["id"] == data.experiment_id for r in self._experiment_rows()):
            raise PersistenceError(f"Experiment not found: {data.experiment_id}")
        row = self._response_row(data)
        self._append(self.responses_path, row, RESPONSE_COLUMNS)
        logger.debug("Stored response %s for experiment %s", row["id"], data.experiment_id)
        return self._created_response(row, data)

    def get_experiment(self, experiment_id: str) -> Experiment | None:
        row = next(
            (r for r in self._experiment_rows() if r["id"] == experiment_id),
            None,
        )
        if row is None:
            return None

        experiment = self._map_experiment_row(row)
        responses = [
            self._map_response_row(r, experiment.prompt)
            for r in self._response_rows()
            if r["experiment_id"] == experiment_id
        ]
        experiment.responses = sorted(responses, key=lambda r: r.created_at)
        return experiment

    def get_all_experiments(self) -> list[Experiment]:
        return self._newest_first(
            [self._map_experiment_row(r) for r in self._experiment_rows()]
        )
