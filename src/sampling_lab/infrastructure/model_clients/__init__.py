"""
Model client package

Provides a unified interface to each LLM provider.
"""

from sampling_lab.infrastructure.model_clients.base import ModelClient, estimate_tokens
from sampling_lab.infrastructure.model_clients.factory import create_client
from sampling_lab.domain.value_objects import GenerationParams, ModelResponse

__all__ = ["GenerationParams", "ModelClient", "ModelResponse", "create_client", "estimate_tokens"]
