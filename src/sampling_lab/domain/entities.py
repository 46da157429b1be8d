"""
Domain Entities

Defines the experiment aggregate and the responses it owns.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sampling_lab.domain.value_objects import QualityMetrics


@dataclass
class Response:
    """A single generated response for one parameter combination"""
    id: str
    experiment_id: str
    temperature: float
    top_p: float
    model: str
    response_text: str
    metrics: QualityMetrics
    response_time_ms: int
    token_count: int
    created_at: datetime


@dataclass
class Experiment:
    """A prompt submission; aggregate root of its responses"""
    id: str
    prompt: str
    created_at: datetime
    updated_at: datetime
    responses: list[Response] | None = None


@dataclass
class HealthCheckResult:
    """Health check result"""
    target: str
    success: bool
    latency_ms: int | None
    error: str | None
