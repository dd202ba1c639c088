"""Shared fixtures: environment isolation, a scripted fake backend and a sleep recorder."""
import pytest

from app.core.config import get_settings
from helpers import FakeBackend, SleepRecorder

ENV_VARS = (
    "GOOGLE_API_KEY",
    "GEMINI_API_KEY",
    "GEMINI_MODEL",
    "GEMINI_API_BASE",
    "CATALOG_TIMEOUT_SECONDS",
    "OVERLOAD_RETRIES",
    "OVERLOAD_BACKOFF_MS",
    "GEMINI_TEMPERATURE",
    "GEMINI_TOP_P",
    "GEMINI_TOP_K",
    "CORS_ORIGINS",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()
