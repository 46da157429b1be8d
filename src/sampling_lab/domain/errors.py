"""
Domain Errors

Error taxonomy shared by the orchestrator and its collaborators.
"""


class SamplingLabError(Exception):
    """Base class for all sampling-lab errors"""
    pass


class ValidationError(SamplingLabError):
    """Bad input shape or range, raised before any work begins"""
    pass


class PersistenceError(SamplingLabError):
    """Storage collaborator failure"""
    pass


class GenerationError(SamplingLabError):
    """
    Generation collaborator failure

    kind is one of: rate_limited, unauthorized, network, other
    """

    KINDS = ("rate_limited", "unauthorized", "network", "other")

    def __init__(self, message: str, kind: str = "other") -> None:
        super().__init__(message)
        self.kind = kind if kind in self.KINDS else "other"


class ScoringError(SamplingLabError):
    """Unexpected failure while scoring a response"""
    pass


class DeadlineExceededError(SamplingLabError):
    """The experiment deadline passed before the task could store its response"""
    pass
