"""
Model client factory

Creates the appropriate client instance based on the model name.
"""

from __future__ import annotations

from sampling_lab.lab_config import LabConfig, load_config
from sampling_lab.infrastructure.model_clients.base import ModelClient
from sampling_lab.infrastructure.model_clients.claude import ClaudeClient
from sampling_lab.infrastructure.model_clients.openai_client import OpenAIClient
from sampling_lab.infrastructure.model_clients.vertex_ai import VertexAIClient


def create_client(model_name: str, config: LabConfig | None = None) -> ModelClient:
    """
    Create the appropriate client based on the model name

    Args:
        model_name: Model name
        config: LabConfig (loads from env if not provided)

    Returns:
        ModelClient: The appropriate client instance
    """
    if config is None:
        config = load_config()

    timeout = config.generation.timeout_seconds

    if model_name.startswith("claude"):
        return ClaudeClient(model_name, timeout_seconds=timeout)
    elif model_name.startswith("gemini"):
        return VertexAIClient(model_name, timeout_seconds=timeout)
    else:
        return OpenAIClient(model_name, base_url=config.openai.base_url, timeout_seconds=timeout)
