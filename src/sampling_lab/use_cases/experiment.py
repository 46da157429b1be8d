"""
Experiment Execution

Runs one generate -> score -> store task per parameter combination
concurrently and aggregates the settled tasks into a single result.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Callable

from sampling_lab.domain.constants import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    MIN_PROMPT_LENGTH,
    TEMPERATURE_RANGE,
    TOP_P_RANGE,
)
from sampling_lab.domain.entities import Response
from sampling_lab.domain.errors import (
    DeadlineExceededError,
    GenerationError,
    PersistenceError,
    ScoringError,
    ValidationError,
)
from sampling_lab.domain.value_objects import (
    AggregateResult,
    CreateResponseInput,
    ExperimentMetadata,
    GenerationParams,
    ParameterCombination,
    TaskFailure,
    TaskOutcome,
    TaskSuccess,
)
from sampling_lab.infrastructure.model_clients.base import ModelClient, estimate_tokens
from sampling_lab.infrastructure.storage.base import StorageService
from sampling_lab.lab_config import LabConfig
from sampling_lab.scoring.quality import calculate_all
from sampling_lab.scoring.text_analysis import round_half_up
from sampling_lab.use_cases.grid import expand_grid

logger = logging.getLogger(__name__)


def _is_number(value) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and not math.isnan(value)
    )


def _validate_values(name: str, values, value_range: tuple[float, float]) -> None:
    if not isinstance(values, (list, tuple)) or len(values) == 0:
        raise ValidationError(f"At least one value must be provided for {name}")
    low, high = value_range
    for value in values:
        if not _is_number(value):
            raise ValidationError(f"{name} values must be numbers, got {value!r}")
        if not low <= value <= high:
            raise ValidationError(f"{name} values must be between {low} and {high}, got {value}")


def validate_request(prompt, temperatures, top_ps) -> None:
    """
    Validate an experiment submission before any work begins.

    Args:
        prompt: Prompt text
        temperatures: Temperature values
        top_ps: Top-p values

    Raises:
        ValidationError: If any input is missing, empty, or out of range
    """
    if not isinstance(prompt, str) or len(prompt) < MIN_PROMPT_LENGTH:
        raise ValidationError(f"Prompt must be at least {MIN_PROMPT_LENGTH} characters")
    _validate_values("temperature", temperatures, TEMPERATURE_RANGE)
    _validate_values("top_p", top_ps, TOP_P_RANGE)


def calculate_average_score(responses: list[Response]) -> int:
    """Rounded mean overall score (0 when there are no responses)"""
    if not responses:
        return 0
    return round_half_up(sum(r.metrics.overall for r in responses) / len(responses))


class _WriteGate:
    """
    Admits response writes until the deadline closes it.

    Writes run under the gate's lock, so once close() returns no task can
    store a response and every admitted write has finished.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._closed = False
        self._written: set[int] = set()

    def write(self, index: int, store: Callable[[], Response]) -> Response:
        with self._lock:
            if self._closed:
                raise DeadlineExceededError("Deadline exceeded before the response was stored")
            response = store()
            self._written.add(index)
            return response

    def close(self) -> None:
        with self._lock:
            self._closed = True

    def has_written(self, index: int) -> bool:
        with self._lock:
            return index in self._written


class ExperimentOrchestrator:
    """
    Fans an experiment out into concurrent generation tasks.

    Each task is isolated: a failing generation, scoring, or storage step marks
    only that task as failed. Task failures are reported in the result and
    logged, never raised.
    """

    def __init__(
        self,
        generator: ModelClient,
        storage: StorageService,
        *,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        deadline_seconds: float | None = None,
        max_workers: int | None = None,
    ) -> None:
        """
        Args:
            generator: Generation collaborator
            storage: Storage collaborator
            model: Model name sent with every generation request
            max_tokens: Maximum tokens per generation
            deadline_seconds: Overall time budget per run, measured from the start of
                run_experiment (None or 0 = wait for every task)
            max_workers: Thread pool size (None = one worker per task)
        """
        self.generator = generator
        self.storage = storage
        self.model = model
        self.max_tokens = max_tokens
        self.deadline_seconds = deadline_seconds
        self.max_workers = max_workers

    @classmethod
    def from_config(
        cls,
        config: LabConfig,
        generator: ModelClient,
        storage: StorageService,
    ) -> "ExperimentOrchestrator":
        """Create an orchestrator using the generation and orchestration settings of config"""
        return cls(
            generator,
            storage,
            model=config.generation.model,
            max_tokens=config.generation.max_tokens,
            deadline_seconds=config.orchestration.deadline_seconds or None,
            max_workers=config.orchestration.max_workers or None,
        )

    def run_experiment(
        self,
        prompt: str,
        temperatures: list[float],
        top_ps: list[float],
        *,
        deadline_seconds: float | None = None,
    ) -> AggregateResult:
        """
        Run one generation task per (temperature, top_p) combination.

        Args:
            prompt: Prompt text (at least 10 characters)
            temperatures: Temperature values
            top_ps: Top-p values
            deadline_seconds: Overrides the orchestrator's deadline for this run (0 = no deadline)

        Returns:
            AggregateResult: Successful responses in completion order, failures, and metadata.
                Returned even when every task failed.

        Raises:
            ValidationError: If the request is invalid (nothing is created)
            PersistenceError: If the experiment record cannot be created
        """
        start_time = time.time()
        logger.info("Validating experiment request")
        validate_request(prompt, temperatures, top_ps)

        try:
            experiment = self.storage.create_experiment(prompt)
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to create experiment: {e}") from e
        logger.info("Created experiment %s", experiment.id)

        combinations = expand_grid(temperatures, top_ps)
        if deadline_seconds is None:
            deadline_seconds = self.deadline_seconds
        if deadline_seconds is not None and deadline_seconds <= 0:
            # 0 disables the deadline, as in OrchestrationConfig
            deadline_seconds = None
        outcomes = self._dispatch(experiment.id, prompt, combinations, deadline_seconds, start_time)

        responses = [o.response for o in outcomes if isinstance(o, TaskSuccess)]
        failures = [o for o in outcomes if isinstance(o, TaskFailure)]

        if failures:
            logger.warning(
                "Experiment %s: %d of %d generation tasks failed",
                experiment.id, len(failures), len(combinations),
            )
            for failure in failures:
                logger.warning(
                    "  temperature=%s top_p=%s [%s] %s",
                    failure.combination.temperature,
                    failure.combination.top_p,
                    failure.kind,
                    failure.reason,
                )

        metadata = ExperimentMetadata(
            total_generated=len(responses),
            total_time_ms=int((time.time() - start_time) * 1000),
            average_score=calculate_average_score(responses),
        )
        logger.info(
            "Experiment %s aggregated: %d generated, average score %d, %dms",
            experiment.id, metadata.total_generated, metadata.average_score, metadata.total_time_ms,
        )
        return AggregateResult(
            experiment_id=experiment.id,
            responses=responses,
            metadata=metadata,
            failures=failures,
        )

    def _dispatch(
        self,
        experiment_id: str,
        prompt: str,
        combinations: list[ParameterCombination],
        deadline_seconds: float | None,
        start_time: float,
    ) -> list[TaskOutcome]:
        """Launch every task at once and collect outcomes in completion order."""
        logger.info("Dispatching %d generation tasks", len(combinations))
        timeout = None
        if deadline_seconds is not None:
            timeout = max(deadline_seconds - (time.time() - start_time), 0.0)

        gate = _WriteGate()
        executor = ThreadPoolExecutor(
            max_workers=self.max_workers or len(combinations),
            thread_name_prefix="experiment-task",
        )
        futures: dict[Future, tuple[int, ParameterCombination]] = {
            executor.submit(self._run_task, experiment_id, prompt, combination, gate, index): (index, combination)
            for index, combination in enumerate(combinations)
        }

        outcomes: list[TaskOutcome] = []
        settled: set[Future] = set()
        timed_out = False
        try:
            for future in as_completed(futures, timeout=timeout):
                settled.add(future)
                outcomes.append(self._settle(future, futures[future][1]))
        except FuturesTimeoutError:
            timed_out = True
            logger.warning("Deadline of %ss exceeded, abandoning unsettled tasks", deadline_seconds)
            gate.close()
            for future, (index, combination) in futures.items():
                if future in settled:
                    continue
                if gate.has_written(index) or (future.done() and not future.cancelled()):
                    # Settled or stored before the gate closed
                    outcomes.append(self._settle(future, combination))
                    continue
                # Running tasks cannot be interrupted, but the closed gate keeps them from storing
                future.cancel()
                outcomes.append(TaskFailure(
                    combination=combination,
                    reason=f"Deadline of {deadline_seconds}s exceeded",
                    kind="timeout",
                ))
        finally:
            executor.shutdown(wait=not timed_out, cancel_futures=timed_out)

        return outcomes

    @staticmethod
    def _settle(future: Future, combination: ParameterCombination) -> TaskOutcome:
        try:
            return future.result()
        except Exception as e:
            return TaskFailure(combination=combination, reason=str(e), kind="other")

    def _run_task(
        self,
        experiment_id: str,
        prompt: str,
        combination: ParameterCombination,
        gate: _WriteGate,
        index: int,
    ) -> TaskOutcome:
        """Run a single generate -> score -> store task, capturing any failure."""
        try:
            response = self._generate_and_store(experiment_id, prompt, combination, gate, index)
        except GenerationError as e:
            return TaskFailure(combination=combination, reason=str(e), kind=e.kind)
        except ScoringError as e:
            return TaskFailure(combination=combination, reason=str(e), kind="scoring")
        except PersistenceError as e:
            return TaskFailure(combination=combination, reason=str(e), kind="persistence")
        except DeadlineExceededError as e:
            logger.debug(
                "temperature=%s top_p=%s finished after the deadline, response discarded",
                combination.temperature, combination.top_p,
            )
            return TaskFailure(combination=combination, reason=str(e), kind="timeout")
        except Exception as e:
            return TaskFailure(combination=combination, reason=f"{type(e).__name__}: {e}", kind="other")

        logger.info(
            "temperature=%s top_p=%s -> overall %d (%dms)",
            combination.temperature, combination.top_p,
            response.metrics.overall, response.response_time_ms,
        )
        return TaskSuccess(combination=combination, response=response)

    def _generate_and_store(
        self,
        experiment_id: str,
        prompt: str,
        combination: ParameterCombination,
        gate: _WriteGate,
        index: int,
    ) -> Response:
        start_time = time.time()
        params = GenerationParams(
            temperature=combination.temperature,
            top_p=combination.top_p,
            model=self.model,
            max_tokens=self.max_tokens,
        )
        model_response = self.generator.generate(prompt, params)
        response_text = model_response.output

        try:
            metrics = calculate_all(response_text, prompt)
        except Exception as e:
            raise ScoringError(f"Failed to score response: {e}") from e
        response_time_ms = int((time.time() - start_time) * 1000)

        try:
            data = CreateResponseInput(
                experiment_id=experiment_id,
                temperature=combination.temperature,
                top_p=combination.top_p,
                model=self.model,
                response_text=response_text,
                metrics=metrics,
                response_time_ms=response_time_ms,
                token_count=estimate_tokens(response_text),
            )
            return gate.write(index, lambda: self.storage.create_response(data))
        except (PersistenceError, DeadlineExceededError):
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to store response: {e}") from e
