"""
Vertex AI (Google GenAI SDK) model client
"""

import os
import time

from google import genai
from google.api_core import exceptions as google_exceptions
from google.genai import errors as genai_errors
from google.genai.types import GenerateContentConfig, HttpOptions

from sampling_lab.domain.errors import GenerationError
from sampling_lab.domain.value_objects import GenerationParams, ModelResponse
from sampling_lab.infrastructure.model_clients.base import ErrorLabelMixin, ModelClient


class VertexAIClient(ErrorLabelMixin, ModelClient):
    """Model client using Google GenAI SDK (via Vertex AI)"""

    error_labels = (
        (google_exceptions.ResourceExhausted, "rate_limited"),
        ((google_exceptions.Unauthenticated, google_exceptions.PermissionDenied), "unauthorized"),
        ((google_exceptions.DeadlineExceeded, google_exceptions.ServiceUnavailable), "network"),
        ((google_exceptions.GoogleAPIError, genai_errors.APIError), "other"),
    )

    def __init__(
        self,
        model_name: str,
        project_id: str | None = None,
        location: str | None = None,
        timeout_seconds: int = 60,
    ):
        """
        Args:
            model_name: Model name (e.g. gemini-2.5-flash)
            project_id: GCP project ID (falls back to environment variable if not specified)
            location: Region (default: global)
            timeout_seconds: Timeout in seconds (default: 60)
        """
        self.model_name = model_name
        self.project_id = project_id or os.environ.get("GCP_PROJECT_ID")
        self.location = location or "global"
        self.timeout_seconds = timeout_seconds

        if not self.project_id:
            raise ValueError("GCP_PROJECT_ID is not set")

        # Timeout is configured via HttpOptions (milliseconds)
        self.client = genai.Client(
            vertexai=True,
            project=self.project_id,
            location=self.location,
            http_options=HttpOptions(timeout=timeout_seconds * 1000),
        )

    def _call_labeled(self, fn):
        try:
            return super()._call_labeled(fn)
        except GenerationError as e:
            # google-genai reports HTTP failures as APIError with a status code
            cause = e.__cause__
            if isinstance(cause, genai_errors.APIError):
                if cause.code == 429:
                    raise GenerationError(str(e), kind="rate_limited") from cause
                if cause.code in (401, 403):
                    raise GenerationError(str(e), kind="unauthorized") from cause
            raise

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
            config = GenerateContentConfig(
                temperature=params.temperature,
                top_p=params.top_p,
                max_output_tokens=params.max_tokens,
            )
            start_time = time.time()
            response = self.client.models.generate_content(
                model=params.model,
                contents=prompt,
                config=config,
            )
            latency_ms = int((time.time() - start_time) * 1000)
            if not response.text:
                raise GenerationError("No content returned from Vertex AI", kind="other")

            usage = getattr(response, "usage_metadata", None)
            return ModelResponse(
                output=response.text,
                latency_ms=latency_ms,
                model_name=params.model,
                input_tokens=getattr(usage, "prompt_token_count", 0) or 0,
                output_tokens=getattr(usage, "candidates_token_count", 0) or 0,
            )

        return self._call_labeled(_call)
