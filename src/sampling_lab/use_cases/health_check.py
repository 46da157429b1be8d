"""
Health Check

Performs connectivity checks for generation models and for storage.
"""

import logging
import time
from typing import Callable

from sampling_lab.domain.entities import HealthCheckResult
from sampling_lab.domain.value_objects import GenerationParams
from sampling_lab.infrastructure.model_clients.base import ModelClient
from sampling_lab.infrastructure.storage.base import StorageService

logger = logging.getLogger(__name__)

HEALTH_CHECK_PROMPT = "Reply with only 'OK' if you can read this message."


def health_check_model(
    model_name: str,
    create_client_fn: Callable[[str], ModelClient],
) -> HealthCheckResult:
    """
    Send one short, deterministic request to a model before an experiment.

    Client construction errors (missing credentials) are reported the same
    way as generation errors.

    Args:
        model_name: Model to ping
        create_client_fn: Builds the client for model_name

    Returns:
        HealthCheckResult: success with the round-trip latency, or the error text
    """
    params = GenerationParams(temperature=0.0, top_p=1.0, model=model_name, max_tokens=16)
    try:
        response = create_client_fn(model_name).generate(HEALTH_CHECK_PROMPT, params)
    except Exception as e:
        logger.warning("Health check failed for %s: %s", model_name, e)
        return HealthCheckResult(target=model_name, success=False, latency_ms=None, error=str(e))
    return HealthCheckResult(target=model_name, success=True, latency_ms=response.latency_ms, error=None)


def check_storage(storage: StorageService) -> HealthCheckResult:
    """
    Check that storage can be read by listing experiments.

    Args:
        storage: Storage collaborator

    Returns:
        HealthCheckResult: Health check result
    """
    start_time = time.time()
    try:
        experiments = storage.get_all_experiments()
    except Exception as e:
        logger.error("Storage health check failed: %s", e)
        return HealthCheckResult(target="storage", success=False, latency_ms=None, error=str(e))

    latency_ms = int((time.time() - start_time) * 1000)
    logger.info("Storage connection successful (%d experiments)", len(experiments))
    return HealthCheckResult(target="storage", success=True, latency_ms=latency_ms, error=None)
