"""
Tests for lab_config
"""

import pytest

from sampling_lab.lab_config import (
    GenerationConfig,
    GridConfig,
    LabConfig,
    OpenAIConfig,
    OrchestrationConfig,
    StorageConfig,
    load_config,
)

ENV_KEYS = [
    "LAB_MODEL",
    "LAB_MAX_TOKENS",
    "LAB_REQUEST_TIMEOUT_SECONDS",
    "LAB_DEADLINE_SECONDS",
    "LAB_MAX_WORKERS",
    "LAB_TEMPERATURES",
    "LAB_TOP_PS",
    "LAB_STORAGE_DIR",
    "OPENAI_BASE_URL",
]


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


class TestSectionDefaults:
    """Dataclass default tests"""

    def test_generation(self):
        config = GenerationConfig()
        assert config.model == "gpt-4o-mini"
        assert config.max_tokens == 1000
        assert config.timeout_seconds == 60

    def test_orchestration(self):
        config = OrchestrationConfig()
        assert config.deadline_seconds == 300.0
        assert config.max_workers == 0

    def test_grid(self):
        config = GridConfig()
        assert config.temperatures == [0.1, 0.5, 0.9]
        assert config.top_ps == [0.5, 0.9, 1.0]

    def test_grid_lists_are_independent(self):
        a, b = GridConfig(), GridConfig()
        a.temperatures.append(1.5)
        assert b.temperatures == [0.1, 0.5, 0.9]

    def test_storage_and_openai(self):
        assert StorageConfig().directory == "results"
        assert OpenAIConfig().base_url is None


class TestLabConfig:
    """LabConfig serialization tests"""

    def test_to_dict(self):
        data = LabConfig().to_dict()
        assert "lab_config" in data
        assert data["lab_config"]["generation"]["model"] == "gpt-4o-mini"
        assert data["lab_config"]["grid"]["top_ps"] == [0.5, 0.9, 1.0]

    def test_from_dict_with_key(self):
        config = LabConfig.from_dict({
            "lab_config": {
                "generation": {"model": "claude-haiku-4-5-20251001", "max_tokens": 256},
                "orchestration": {"deadline_seconds": 30.0},
            }
        })
        assert config.generation.model == "claude-haiku-4-5-20251001"
        assert config.generation.max_tokens == 256
        assert config.generation.timeout_seconds == 60
        assert config.orchestration.deadline_seconds == 30.0
        assert config.orchestration.max_workers == 0

    def test_from_dict_without_key(self):
        config = LabConfig.from_dict({"storage": {"directory": "out"}})
        assert config.storage.directory == "out"

    def test_from_dict_empty(self):
        config = LabConfig.from_dict({})
        assert config.generation.model == "gpt-4o-mini"
        assert config.openai.base_url is None

    def test_roundtrip(self):
        original = LabConfig()
        original.grid.temperatures = [0.2, 1.2]
        original.openai.base_url = "http://localhost:1234/v1"
        restored = LabConfig.from_dict(original.to_dict())
        assert restored == original


class TestLoadConfig:
    """load_config() tests"""

    def test_defaults_without_env(self, clean_env):
        config = load_config()
        assert config == LabConfig()

    def test_custom_env_values(self, clean_env):
        clean_env.setenv("LAB_MODEL", "gemini-2.5-flash")
        clean_env.setenv("LAB_MAX_TOKENS", "512")
        clean_env.setenv("LAB_REQUEST_TIMEOUT_SECONDS", "30")
        clean_env.setenv("LAB_DEADLINE_SECONDS", "0")
        clean_env.setenv("LAB_MAX_WORKERS", "4")
        clean_env.setenv("LAB_TEMPERATURES", "0.2, 0.7 ,1.4")
        clean_env.setenv("LAB_TOP_PS", "0.95")
        clean_env.setenv("LAB_STORAGE_DIR", "/tmp/lab")
        clean_env.setenv("OPENAI_BASE_URL", "http://localhost:1234/v1")

        config = load_config()

        assert config.generation.model == "gemini-2.5-flash"
        assert config.generation.max_tokens == 512
        assert config.generation.timeout_seconds == 30
        assert config.orchestration.deadline_seconds == 0.0
        assert config.orchestration.max_workers == 4
        assert config.grid.temperatures == [0.2, 0.7, 1.4]
        assert config.grid.top_ps == [0.95]
        assert config.storage.directory == "/tmp/lab"
        assert config.openai.base_url == "http://localhost:1234/v1"

    def test_empty_base_url_is_unset(self, clean_env):
        clean_env.setenv("OPENAI_BASE_URL", "")
        assert load_config().openai.base_url is None

    def test_invalid_int(self, clean_env):
        clean_env.setenv("LAB_MAX_TOKENS", "many")
        with pytest.raises(ValueError, match="LAB_MAX_TOKENS"):
            load_config()

    def test_invalid_float(self, clean_env):
        clean_env.setenv("LAB_DEADLINE_SECONDS", "soon")
        with pytest.raises(ValueError, match="LAB_DEADLINE_SECONDS"):
            load_config()

    def test_invalid_float_list(self, clean_env):
        clean_env.setenv("LAB_TEMPERATURES", "0.1,warm")
        with pytest.raises(ValueError, match="LAB_TEMPERATURES"):
            load_config()
