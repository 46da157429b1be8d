"""
Sampling Lab Configuration

Manages loading from environment variables and default values.
"""

import os
from dataclasses import dataclass, field, asdict

from sampling_lab.domain.constants import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURES,
    DEFAULT_TOP_PS,
)


def _env_int(key: str, default: int) -> int:
    """Convert an environment variable to int"""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        raise ValueError(f"The value '{val}' of environment variable '{key}' cannot be converted to an integer.")


def _env_float(key: str, default: float) -> float:
    """Convert an environment variable to float"""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return float(val)
    except ValueError:
        raise ValueError(f"The value '{val}' of environment variable '{key}' cannot be converted to a number.")


def _env_str(key: str, default: str) -> str:
    """Get an environment variable as a string"""
    return os.environ.get(key, default)


def _env_optional_str(key: str) -> str | None:
    """Get an environment variable, treating an empty value as unset"""
    return os.environ.get(key) or None


def _env_float_list(key: str, default: list[float]) -> list[float]:
    """Convert an environment variable to a comma-separated list of floats"""
    val = os.environ.get(key)
    if val is None:
        return list(default)
    try:
        return [float(x.strip()) for x in val.split(",") if x.strip()]
    except ValueError:
        raise ValueError(f"The value '{val}' of environment variable '{key}' cannot be converted to a comma-separated list of numbers.")


@dataclass
class GenerationConfig:
    """Generation collaborator configuration"""
    model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    timeout_seconds: int = 60


@dataclass
class OrchestrationConfig:
    """Fan-out configuration"""
    deadline_seconds: float = 300.0  # 0 disables the deadline
    max_workers: int = 0  # 0 = one worker per task


@dataclass
class GridConfig:
    """Default parameter grid"""
    temperatures: list[float] = field(default_factory=lambda: list(DEFAULT_TEMPERATURES))
    top_ps: list[float] = field(default_factory=lambda: list(DEFAULT_TOP_PS))


@dataclass
class StorageConfig:
    """Storage configuration"""
    directory: str = "results"


@dataclass
class OpenAIConfig:
    """OpenAI (or OpenAI-compatible server) configuration"""
    base_url: str | None = None


@dataclass
class LabConfig:
    """Overall sampling lab configuration"""
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    orchestration: OrchestrationConfig = field(default_factory=OrchestrationConfig)
    grid: GridConfig = field(default_factory=GridConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    openai: OpenAIConfig = field(default_factory=OpenAIConfig)

    def to_dict(self) -> dict:
        """Convert to dictionary format"""
        return {"lab_config": asdict(self)}

    @classmethod
    def from_dict(cls, data: dict) -> "LabConfig":
        """Create from dictionary (handles presence/absence of lab_config key)"""
        config_data = data.get("lab_config", data)
        return cls(
            generation=GenerationConfig(**config_data.get("generation", {})),
            orchestration=OrchestrationConfig(**config_data.get("orchestration", {})),
            grid=GridConfig(**config_data.get("grid", {})),
            storage=StorageConfig(**config_data.get("storage", {})),
            openai=OpenAIConfig(**config_data.get("openai", {})),
        )


def load_config() -> LabConfig:
    """
    Load configuration from environment variables

    Uses default values when environment variables are not set.

    Returns:
        LabConfig
    """
    generation = GenerationConfig(
        model=_env_str("LAB_MODEL", DEFAULT_MODEL),
        max_tokens=_env_int("LAB_MAX_TOKENS", DEFAULT_MAX_TOKENS),
        timeout_seconds=_env_int("LAB_REQUEST_TIMEOUT_SECONDS", 60),
    )
    orchestration = OrchestrationConfig(
        deadline_seconds=_env_float("LAB_DEADLINE_SECONDS", 300.0),
        max_workers=_env_int("LAB_MAX_WORKERS", 0),
    )
    grid = GridConfig(
        temperatures=_env_float_list("LAB_TEMPERATURES", DEFAULT_TEMPERATURES),
        top_ps=_env_float_list("LAB_TOP_PS", DEFAULT_TOP_PS),
    )
    storage = StorageConfig(
        directory=_env_str("LAB_STORAGE_DIR", "results"),
    )
    openai = OpenAIConfig(
        base_url=_env_optional_str("OPENAI_BASE_URL"),
    )
    return LabConfig(
        generation=generation,
        orchestration=orchestration,
        grid=grid,
        storage=storage,
        openai=openai,
    )
