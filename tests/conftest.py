"""Shared test fixtures and configuration."""

import sys
from pathlib import Path

import pytest

# Add src to path for testing
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from compass_bridge.core.config import settings as settings_module  # noqa: E402
from compass_bridge.core.config.settings import Settings  # noqa: E402
from tests.fixtures.providers import StaticTextGenerator  # noqa: E402

CREDENTIAL_ENV_VARS = (
    "FIGMA_API_KEY",
    "FIGMA_ACCESS_TOKEN",
    "ANTHROPIC_API_KEY",
    "OPENAI_API_KEY",
    "LLM_PROVIDER",
    "LLM_MODEL",
    "HOST_REMOTE_PROVIDERS",
    "LOG_LEVEL",
    "APP_ENV",
)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Run every test without real credentials or a cached settings object."""
    for var in CREDENTIAL_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(settings_module, "_settings", None)
    yield
    monkeypatch.setattr(settings_module, "_settings", None)


@pytest.fixture
def settings():
    """Settings with every external API in mock mode."""
    return Settings(_env_file=None)


@pytest.fixture
def static_generator():
    """Text generator that answers with its fallback."""
    return StaticTextGenerator()
