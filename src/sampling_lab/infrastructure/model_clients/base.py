"""
Model client base class and error labelling mixin

Defines the abstract base class inherited by all model clients
and the ErrorLabelMixin that maps provider exceptions to GenerationError.
"""

import math
from abc import ABC, abstractmethod

from sampling_lab.domain.errors import GenerationError
from sampling_lab.domain.value_objects import GenerationParams, ModelResponse


def estimate_tokens(text: str) -> int:
    """
    Estimate the token count of a text

    Rough approximation of about four characters per token; not an exact
    tokenizer count.

    Args:
        text: Text to measure

    Returns:
        Estimated token count
    """
    return math.ceil(len(text) / 4)


class ErrorLabelMixin:
    """Single-attempt call that relabels provider exceptions. Subclasses set self.error_labels."""

    # Ordered (exception types, kind) pairs; the first matching entry wins
    error_labels: tuple = ()

    def _call_labeled(self, fn):
        """
        Execute once, converting known provider exceptions to GenerationError.

        Args:
            fn: The function to call (a callable with no arguments)

        Returns:
            The return value of fn()

        Raises:
            GenerationError: If fn raises an exception listed in error_labels
            Exception: Any other exception, unchanged
        """
        try:
            return fn()
        except GenerationError:
            raise
        except Exception as e:
            for exception_types, kind in self.error_labels:
                if isinstance(e, exception_types):
                    raise GenerationError(f"{type(e).__name__}: {e}", kind=kind) from e
            raise


class ModelClient(ABC):
    """Abstract base class for model clients"""

    model_name: str

    @abstractmethod
    def generate(self, prompt: str, params: GenerationParams) -> ModelResponse:
        """Send a prompt with the given sampling parameters and retrieve the response"""
        pass
