"""
Anthropic Claude model client
"""

import os
import time

import anthropic
from anthropic import Anthropic

from sampling_lab.domain.errors import GenerationError
from sampling_lab.domain.value_objects import GenerationParams, ModelResponse
from sampling_lab.infrastructure.model_clients.base import ErrorLabelMixin, ModelClient


class ClaudeClient(ErrorLabelMixin, ModelClient):
    """Claude client using the Anthropic API"""

    error_labels = (
        (anthropic.RateLimitError, "rate_limited"),
        ((anthropic.AuthenticationError, anthropic.PermissionDeniedError), "unauthorized"),
        (anthropic.APIConnectionError, "network"),
        (anthropic.AnthropicError, "other"),
    )

    def __init__(
        self,
        model_name: str,
        api_key: str | None = None,
        timeout_seconds: int = 60,
    ):
        """
        Args:
            model_name: Model name (e.g. claude-haiku-4-5-20251001)
            api_key: Anthropic API key (falls back to environment variable if not specified)
            timeout_seconds: Request timeout in seconds (default: 60)
        """
        self.model_name = model_name
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")

        if not self.api_key:
            raise ValueError("ANTHROPIC_API_KEY is not set")

        self.client = Anthropic(api_key=self.api_key, timeout=timeout_seconds)

    def generate(self, prompt: str, params: GenerationParams) -> ModelResponse:
        """
        Send a prompt and retrieve the response

        Args:
            prompt: Input prompt
            params: Sampling parameters (temperature and top_p are forwarded as given)

        Returns:
            ModelResponse: The model's response

        Raises:
            GenerationError: On API failure or empty content
        """
        def _call():
            start_time = time.time()
            response = self.client.messages.create(
                model=params.model,
                max_tokens=params.max_tokens,
                temperature=params.temperature,
                top_p=params.top_p,
                messages=[{"role": "user", "content": prompt}],
            )
            latency_ms = int((time.time() - start_time) * 1000)
            output = "".join(
                block.text for block in response.content if getattr(block, "type", None) == "text"
            )
            if not output:
                raise GenerationError("No content returned from Anthropic API", kind="other")

            usage = response.usage
            return ModelResponse(
                output=output,
                latency_ms=latency_ms,
                model_name=params.model,
                input_tokens=getattr(usage, "input_tokens", 0) or 0,
                output_tokens=getattr(usage, "output_tokens", 0) or 0,
            )

        return self._call_labeled(_call)
