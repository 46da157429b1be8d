"""
OpenAI (and OpenAI-compatible API) model client
"""

import logging
import os
import time

import openai
from openai import OpenAI

from sampling_lab.domain.errors import GenerationError
from sampling_lab.domain.value_objects import GenerationParams, ModelResponse
from sampling_lab.infrastructure.model_clients.base import ErrorLabelMixin, ModelClient

logger = logging.getLogger(__name__)

_PLACEHOLDER_MARKERS = ("your_openai", "placeholder")


class OpenAIClient(ErrorLabelMixin, ModelClient):
    """Client using the OpenAI chat completions API"""

    error_labels = (
        (openai.RateLimitError, "rate_limited"),
        ((openai.AuthenticationError, openai.PermissionDeniedError), "unauthorized"),
        (openai.APIConnectionError, "network"),
        (openai.OpenAIError, "other"),
    )

    def __init__(
        self,
        model_name: str,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout_seconds: int = 60,
    ):
        """
        Args:
            model_name: Model name (e.g. gpt-4o-mini)
            api_key: OpenAI API key (falls back to OPENAI_API_KEY env var if not specified)
            base_url: Endpoint of an OpenAI-compatible server (defaults to the OpenAI API)
            timeout_seconds: Request timeout in seconds (default: 60)
        """
        self.model_name = model_name
        api_key = api_key or os.environ.get("OPENAI_API_KEY")

        if not api_key:
            if base_url is None:
                raise ValueError("OPENAI_API_KEY is not set")
            # Local OpenAI-compatible servers usually ignore the key
            api_key = "not-needed"

        if any(marker in api_key for marker in _PLACEHOLDER_MARKERS):
            raise ValueError("OPENAI_API_KEY appears to be a placeholder. Set your actual API key.")

        self.base_url = base_url
        self.client = OpenAI(api_key=api_key, base_url=base_url, timeout=timeout_seconds)

    def generate(self, prompt: str, params: GenerationParams) -> ModelResponse:
        """
        Send a prompt and retrieve the response

        Args:
            prompt: Input prompt
            params: Sampling parameters

        Returns:
            ModelResponse: The model's response

        Raises:
            GenerationError: On API failure or empty content
        """
        def _call():
            logger.info(
                "Generating with model=%s, temperature=%s, top_p=%s",
                params.model, params.temperature, params.top_p,
            )
            start_time = time.time()
            response = self.client.chat.completions.create(
                model=params.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=params.temperature,
                top_p=params.top_p,
                max_tokens=params.max_tokens,
            )
            latency_ms = int((time.time() - start_time) * 1000)
            content = response.choices[0].message.content if response.choices else None
            if not content:
                raise GenerationError("No content returned from OpenAI API", kind="other")

            usage = response.usage
            return ModelResponse(
                output=content,
                latency_ms=latency_ms,
                model_name=params.model,
                input_tokens=(usage.prompt_tokens or 0) if usage else 0,
                output_tokens=(usage.completion_tokens or 0) if usage else 0,
            )

        return self._call_labeled(_call)
