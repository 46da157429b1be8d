"""
Tests for use_cases.experiment

Uses a scripted generator and InMemoryStorage; no model API is called.
"""

import math
import threading
import time
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from sampling_lab.domain.entities import Response
from sampling_lab.domain.errors import GenerationError, PersistenceError, ValidationError
from sampling_lab.domain.value_objects import (
    GenerationParams,
    ModelResponse,
    ParameterCombination,
    QualityMetrics,
)
from sampling_lab.infrastructure.model_clients.base import ModelClient
from sampling_lab.infrastructure.storage import InMemoryStorage
from sampling_lab.lab_config import LabConfig
from sampling_lab.use_cases.experiment import (
    ExperimentOrchestrator,
    calculate_average_score,
    validate_request,
)

PROMPT = "Explain quantum computing in simple terms"

RESPONSE_TEXT = (
    "Quantum computing uses qubits instead of bits. "
    "However, qubits can hold several states at once.\n\n"
    "Therefore quantum computers explore many answers in parallel."
)


class ScriptedGenerator(ModelClient):
    """Generator whose behaviour is chosen per (temperature, top_p)"""

    model_name = "scripted"

    def __init__(self, behaviours=None, default=RESPONSE_TEXT):
        self.behaviours = behaviours or {}
        self.default = default
        self.calls: list[GenerationParams] = []
        self._lock = threading.Lock()

    def generate(self, prompt: str, params: GenerationParams) -> ModelResponse:
        with self._lock:
            self.calls.append(params)
        behaviour = self.behaviours.get((params.temperature, params.top_p), self.default)
        if callable(behaviour):
            behaviour = behaviour()
        if isinstance(behaviour, Exception):
            raise behaviour
        return ModelResponse(output=behaviour, latency_ms=1, model_name=params.model)


class FailingStorage(InMemoryStorage):
    """InMemoryStorage that fails response writes for selected temperatures"""

    def __init__(self, failing_temperatures, error):
        super().__init__()
        self.failing_temperatures = failing_temperatures
        self.error = error

    def create_response(self, data):
        if data.temperature in self.failing_temperatures:
            raise self.error
        return super().create_response(data)


class SlowWriteStorage(InMemoryStorage):
    """InMemoryStorage whose response writes block until released"""

    def __init__(self, release):
        super().__init__()
        self.release = release

    def create_response(self, data):
        self.release.wait(5)
        return super().create_response(data)


class SlowCreateStorage(InMemoryStorage):
    """InMemoryStorage that takes a while to create the experiment"""

    def __init__(self, delay):
        super().__init__()
        self.delay = delay

    def create_experiment(self, prompt):
        time.sleep(self.delay)
        return super().create_experiment(prompt)


def _combos(result):
    return {(r.temperature, r.top_p) for r in result.responses}


def _join_task_threads(timeout=5):
    for thread in threading.enumerate():
        if thread.name.startswith("experiment-task"):
            thread.join(timeout)


def _stored_count(storage, experiment_id):
    return len(storage.get_experiment(experiment_id).responses)


class TestValidateRequest:
    @pytest.mark.parametrize("prompt", ["", "too short", None, 12345678901])
    def test_invalid_prompt(self, prompt):
        with pytest.raises(ValidationError, match="at least 10 characters"):
            validate_request(prompt, [0.5], [0.9])

    def test_prompt_of_exactly_ten_characters(self):
        validate_request("0123456789", [0.5], [0.9])

    @pytest.mark.parametrize("temperatures", [[], None, "0.5", (0.5, "hot"), [True], [math.nan]])
    def test_invalid_temperatures(self, temperatures):
        with pytest.raises(ValidationError):
            validate_request(PROMPT, temperatures, [0.9])

    @pytest.mark.parametrize("top_ps", [[], [1.5], [-0.1]])
    def test_invalid_top_ps(self, top_ps):
        with pytest.raises(ValidationError):
            validate_request(PROMPT, [0.5], top_ps)

    def test_out_of_range_temperature(self):
        with pytest.raises(ValidationError, match="between 0.0 and 2.0"):
            validate_request(PROMPT, [2.5], [0.9])

    def test_range_bounds_are_inclusive(self):
        validate_request(PROMPT, [0, 2.0], [0.0, 1])


class TestCalculateAverageScore:
    @staticmethod
    def _with_overall(overall):
        return Response(
            id="r", experiment_id="e", temperature=0.5, top_p=0.9, model="m",
            response_text="", metrics=QualityMetrics(0, 0, 0, overall),
            response_time_ms=0, token_count=0, created_at=datetime.now(timezone.utc),
        )

    def test_empty(self):
        assert calculate_average_score([]) == 0

    def test_rounds_half_up(self):
        assert calculate_average_score([self._with_overall(50), self._with_overall(51)]) == 51

    def test_mean(self):
        scores = [self._with_overall(s) for s in (40, 60, 80)]
        assert calculate_average_score(scores) == 60


class TestRunExperiment:
    def test_all_combinations_succeed(self):
        storage = InMemoryStorage()
        generator = ScriptedGenerator()
        orchestrator = ExperimentOrchestrator(generator, storage, model="gpt-4o-mini", max_tokens=1000)

        result = orchestrator.run_experiment(PROMPT, [0.1, 0.5, 0.9], [0.5, 0.9])

        assert result.metadata.total_generated == 6
        assert result.failures == []
        assert _combos(result) == {(t, p) for t in (0.1, 0.5, 0.9) for p in (0.5, 0.9)}
        assert result.metadata.average_score == calculate_average_score(result.responses)
        assert result.metadata.total_time_ms >= 0
        stored = storage.get_experiment(result.experiment_id)
        assert stored.prompt == PROMPT
        assert len(stored.responses) == 6

    def test_generation_request_carries_model_and_params(self):
        generator = ScriptedGenerator()
        orchestrator = ExperimentOrchestrator(
            generator, InMemoryStorage(), model="claude-haiku-4-5-20251001", max_tokens=256,
        )

        orchestrator.run_experiment(PROMPT, [0.7], [0.8])

        assert generator.calls == [
            GenerationParams(temperature=0.7, top_p=0.8, model="claude-haiku-4-5-20251001", max_tokens=256),
        ]

    def test_response_fields(self):
        orchestrator = ExperimentOrchestrator(ScriptedGenerator(default="x" * 10), InMemoryStorage())

        result = orchestrator.run_experiment(PROMPT, [0.5], [0.9])

        response = result.responses[0]
        assert response.experiment_id == result.experiment_id
        assert response.model == "gpt-4o-mini"
        assert response.response_text == "x" * 10
        assert response.token_count == 3
        assert response.response_time_ms >= 0
        assert 0 <= response.metrics.overall <= 100

    def test_duplicate_values_produce_duplicate_tasks(self):
        orchestrator = ExperimentOrchestrator(ScriptedGenerator(), InMemoryStorage())
        result = orchestrator.run_experiment(PROMPT, [0.5, 0.5], [1.0])
        assert result.metadata.total_generated == 2

    def test_partial_failure(self):
        generator = ScriptedGenerator({
            (0.9, 1.0): GenerationError("RateLimitError: limit", kind="rate_limited"),
        })
        orchestrator = ExperimentOrchestrator(generator, InMemoryStorage())

        result = orchestrator.run_experiment(PROMPT, [0.1, 0.9], [0.5, 1.0])

        assert result.metadata.total_generated == 3
        assert (0.9, 1.0) not in _combos(result)
        assert len(result.failures) == 1
        failure = result.failures[0]
        assert failure.combination == ParameterCombination(0.9, 1.0)
        assert failure.kind == "rate_limited"
        assert "limit" in failure.reason

    def test_every_task_fails(self):
        storage = InMemoryStorage()
        generator = ScriptedGenerator(default=GenerationError("APIConnectionError: down", kind="network"))
        orchestrator = ExperimentOrchestrator(generator, storage)

        result = orchestrator.run_experiment(PROMPT, [0.1, 0.9], [1.0])

        assert result.responses == []
        assert result.metadata.total_generated == 0
        assert result.metadata.average_score == 0
        assert [f.kind for f in result.failures] == ["network", "network"]
        assert storage.get_experiment(result.experiment_id).responses == []

    def test_unexpected_generator_exception_is_other(self):
        generator = ScriptedGenerator({(0.5, 0.9): KeyError("choices")})
        orchestrator = ExperimentOrchestrator(generator, InMemoryStorage())

        result = orchestrator.run_experiment(PROMPT, [0.5], [0.9])

        assert result.failures[0].kind == "other"
        assert result.failures[0].reason.startswith("KeyError")

    def test_persistence_failure_isolated(self):
        storage = FailingStorage({0.9}, PersistenceError("disk full"))
        orchestrator = ExperimentOrchestrator(ScriptedGenerator(), storage)

        result = orchestrator.run_experiment(PROMPT, [0.1, 0.9], [0.5])

        assert _combos(result) == {(0.1, 0.5)}
        assert result.failures[0].kind == "persistence"
        assert result.failures[0].reason == "disk full"

    def test_unexpected_storage_exception_is_persistence(self):
        storage = FailingStorage({0.1}, RuntimeError("connection reset"))
        orchestrator = ExperimentOrchestrator(ScriptedGenerator(), storage)

        result = orchestrator.run_experiment(PROMPT, [0.1], [0.5])

        assert result.failures[0].kind == "persistence"
        assert "connection reset" in result.failures[0].reason

    def test_scoring_failure(self):
        orchestrator = ExperimentOrchestrator(ScriptedGenerator(), InMemoryStorage())

        with patch("sampling_lab.use_cases.experiment.calculate_all", side_effect=ZeroDivisionError("bad")):
            result = orchestrator.run_experiment(PROMPT, [0.5], [0.5, 0.9])

        assert result.metadata.total_generated == 0
        assert {f.kind for f in result.failures} == {"scoring"}

    def test_validation_failure_creates_nothing(self):
        storage = InMemoryStorage()
        generator = ScriptedGenerator()
        orchestrator = ExperimentOrchestrator(generator, storage)

        with pytest.raises(ValidationError):
            orchestrator.run_experiment("short", [0.5], [0.9])

        assert storage.get_all_experiments() == []
        assert generator.calls == []

    def test_experiment_creation_failure(self):
        storage = MagicMock()
        storage.create_experiment.side_effect = RuntimeError("database unavailable")
        generator = ScriptedGenerator()
        orchestrator = ExperimentOrchestrator(generator, storage)

        with pytest.raises(PersistenceError, match="database unavailable"):
            orchestrator.run_experiment(PROMPT, [0.5], [0.9])
        assert generator.calls == []

    def test_tasks_run_concurrently(self):
        barrier = threading.Barrier(4, timeout=5)

        def wait_for_all():
            # Raises BrokenBarrierError unless all four tasks are in flight together
            barrier.wait()
            return RESPONSE_TEXT

        generator = ScriptedGenerator(default=wait_for_all)
        orchestrator = ExperimentOrchestrator(generator, InMemoryStorage())

        result = orchestrator.run_experiment(PROMPT, [0.1, 0.9], [0.5, 1.0])

        assert result.failures == []
        assert result.metadata.total_generated == 4

    def test_responses_in_completion_order(self):
        def slow():
            time.sleep(0.3)
            return RESPONSE_TEXT

        generator = ScriptedGenerator({(0.1, 0.5): slow})
        orchestrator = ExperimentOrchestrator(generator, InMemoryStorage())

        result = orchestrator.run_experiment(PROMPT, [0.1, 0.9], [0.5])

        assert [r.temperature for r in result.responses] == [0.9, 0.1]

    def test_deadline_marks_unfinished_tasks_as_timeout(self):
        release = threading.Event()

        def stuck():
            release.wait(5)
            return RESPONSE_TEXT

        storage = InMemoryStorage()
        generator = ScriptedGenerator({(0.9, 0.5): stuck})
        orchestrator = ExperimentOrchestrator(generator, storage, deadline_seconds=0.3)

        try:
            start = time.time()
            result = orchestrator.run_experiment(PROMPT, [0.1, 0.9], [0.5])
            elapsed = time.time() - start
        finally:
            release.set()

        assert elapsed < 3
        assert _combos(result) == {(0.1, 0.5)}
        assert len(result.failures) == 1
        assert result.failures[0].kind == "timeout"
        assert result.failures[0].combination == ParameterCombination(0.9, 0.5)

        # The abandoned task finishes later but must not store its response
        _join_task_threads()
        assert _stored_count(storage, result.experiment_id) == result.metadata.total_generated == 1

    def test_write_in_progress_at_deadline_counts_as_success(self):
        release = threading.Event()
        storage = SlowWriteStorage(release)
        orchestrator = ExperimentOrchestrator(ScriptedGenerator(), storage, deadline_seconds=0.2)
        timer = threading.Timer(0.6, release.set)
        timer.start()

        try:
            result = orchestrator.run_experiment(PROMPT, [0.5], [0.9])
        finally:
            release.set()
            timer.cancel()

        assert result.failures == []
        assert result.metadata.total_generated == 1
        assert _stored_count(storage, result.experiment_id) == 1

    def test_deadline_includes_experiment_creation(self):
        def slow():
            time.sleep(0.4)
            return RESPONSE_TEXT

        storage = SlowCreateStorage(delay=0.5)
        orchestrator = ExperimentOrchestrator(ScriptedGenerator(default=slow), storage, deadline_seconds=0.6)

        result = orchestrator.run_experiment(PROMPT, [0.5], [0.9])

        assert [f.kind for f in result.failures] == ["timeout"]
        _join_task_threads()
        assert _stored_count(storage, result.experiment_id) == 0

    def test_zero_deadline_means_no_deadline(self):
        orchestrator = ExperimentOrchestrator(ScriptedGenerator(), InMemoryStorage(), deadline_seconds=60)

        result = orchestrator.run_experiment(
            PROMPT, [0.1, 0.5, 0.9], [0.5, 0.9, 1.0], deadline_seconds=0,
        )

        assert result.failures == []
        assert result.metadata.total_generated == 9

    def test_zero_default_deadline_means_no_deadline(self):
        orchestrator = ExperimentOrchestrator(ScriptedGenerator(), InMemoryStorage(), deadline_seconds=0)
        result = orchestrator.run_experiment(PROMPT, [0.1, 0.9], [0.5])
        assert result.metadata.total_generated == 2

    def test_call_deadline_overrides_default(self):
        release = threading.Event()

        def stuck():
            release.wait(5)
            return RESPONSE_TEXT

        generator = ScriptedGenerator(default=stuck)
        orchestrator = ExperimentOrchestrator(generator, InMemoryStorage(), deadline_seconds=60)

        try:
            result = orchestrator.run_experiment(PROMPT, [0.5], [0.9], deadline_seconds=0.2)
        finally:
            release.set()

        assert [f.kind for f in result.failures] == ["timeout"]

    def test_limited_workers_still_run_every_task(self):
        orchestrator = ExperimentOrchestrator(ScriptedGenerator(), InMemoryStorage(), max_workers=2)
        result = orchestrator.run_experiment(PROMPT, [0.1, 0.5, 0.9], [0.5, 1.0])
        assert result.metadata.total_generated == 6


class TestFromConfig:
    def test_uses_generation_and_orchestration_settings(self):
        config = LabConfig()
        config.generation.model = "gemini-2.5-flash"
        config.generation.max_tokens = 512
        config.orchestration.deadline_seconds = 0
        config.orchestration.max_workers = 4

        orchestrator = ExperimentOrchestrator.from_config(config, ScriptedGenerator(), InMemoryStorage())

        assert orchestrator.model == "gemini-2.5-flash"
        assert orchestrator.max_tokens == 512
        assert orchestrator.deadline_seconds is None
        assert orchestrator.max_workers == 4

    def test_default_deadline(self):
        orchestrator = ExperimentOrchestrator.from_config(LabConfig(), ScriptedGenerator(), InMemoryStorage())
        assert orchestrator.deadline_seconds == 300.0
        assert orchestrator.max_workers is None
