"""Application settings from environment."""
import os
from dataclasses import dataclass
from functools import lru_cache

from app.core.errors import ConfigurationError

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"


@lru_cache
def get_settings() -> "Settings":
    return Settings()


@dataclass(frozen=True)
class GenerationConfig:
    """Sampling controls passed through unchanged to a chat session."""

    temperature: float = 0.7
    top_p: float = 0.95
    top_k: int = 40


@dataclass(frozen=True)
class RetryPolicy:
    """Overload retries: `retries` sleeps of initial_delay_s * multiplier**i."""

    retries: int = 3
    initial_delay_s: float = 0.5
    multiplier: float = 2.0

    def delays(self) -> list[float]:
        return [self.initial_delay_s * (self.multiplier ** i) for i in range(self.retries)]


def _env_float(name: str, default: float, lo: float, hi: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return max(lo, min(hi, float(raw)))
    except ValueError:
        return default


def _env_int(name: str, default: int, lo: int, hi: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return max(lo, min(hi, int(raw)))
    except ValueError:
        return default


class Settings:
    """Central config. Load .env in main/run_api before using. Key settings are @property so they read env at access time."""

    # Gemini credential: never defaulted, see require_api_key()
    @property
    def google_api_key(self) -> str:
        return (os.getenv("GOOGLE_API_KEY", "") or os.getenv("GEMINI_API_KEY", "")).strip()

    def require_api_key(self) -> str:
        key = self.google_api_key
        if not key:
            raise ConfigurationError("GOOGLE_API_KEY is not set")
        return key

    @property
    def gemini_model(self) -> str:
        return (os.getenv("GEMINI_MODEL", "") or "").strip() or DEFAULT_MODEL

    @property
    def gemini_api_base(self) -> str:
        return ((os.getenv("GEMINI_API_BASE", "") or "").strip() or DEFAULT_API_BASE).rstrip("/")

    @property
    def catalog_timeout_seconds(self) -> float:
        return _env_float("CATALOG_TIMEOUT_SECONDS", 15.0, 1.0, 120.0)

    # Overload handling
    @property
    def overload_retries(self) -> int:
        return _env_int("OVERLOAD_RETRIES", 3, 0, 10)

    @property
    def overload_backoff_ms(self) -> int:
        return _env_int("OVERLOAD_BACKOFF_MS", 500, 0, 60000)

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(retries=self.overload_retries, initial_delay_s=self.overload_backoff_ms / 1000.0)

    # Sampling used for multi-turn sessions
    @property
    def generation_config(self) -> GenerationConfig:
        return GenerationConfig(
            temperature=_env_float("GEMINI_TEMPERATURE", 0.7, 0.0, 2.0),
            top_p=_env_float("GEMINI_TOP_P", 0.95, 0.0, 1.0),
            top_k=_env_int("GEMINI_TOP_K", 40, 1, 1000),
        )

    # API
    @property
    def api_title(self) -> str:
        return os.getenv("API_TITLE", "Gemini Chat API").strip()

    @property
    def api_version(self) -> str:
        return os.getenv("API_VERSION", "0.1.0").strip()

    @property
    def log_level(self) -> str:
        return os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"

    # CORS: comma-separated origins (e.g. http://localhost:3000) or * for all
    @property
    def cors_origins(self) -> list[str]:
        raw = os.getenv("CORS_ORIGINS", "*").strip()
        if not raw or raw == "*":
            return ["*"]
        return [o.strip() for o in raw.split(",") if o.strip()]
