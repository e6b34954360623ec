"""Runtime configuration loaded from the process environment."""

from dataclasses import dataclass
from functools import lru_cache
import os
from typing import Optional


DEFAULT_MODEL = "google/flan-t5-small"
DEFAULT_API_BASE = "https://api-inference.huggingface.co/models"
BACKENDS = {"huggingface", "mock", "local"}


@dataclass(frozen=True)
class Settings:
    """Read-only settings shared by every request."""

    hf_api_key: Optional[str] = None
    hf_model: str = DEFAULT_MODEL
    hf_api_base: str = DEFAULT_API_BASE
    generation_backend: str = "huggingface"
    fetch_timeout: Optional[float] = None
    log_level: str = "INFO"

    def __repr__(self) -> str:
        # Keep the credential out of tracebacks and debug logs.
        return (
            f"Settings(hf_model={self.hf_model!r}, hf_api_base={self.hf_api_base!r}, "
            f"generation_backend={self.generation_backend!r}, "
            f"fetch_timeout={self.fetch_timeout!r}, log_level={self.log_level!r})"
        )

    @property
    def endpoint_url(self) -> str:
        return f"{self.hf_api_base.rstrip('/')}/{self.hf_model}"

    @classmethod
    def from_env(cls) -> "Settings":
        backend = os.getenv("SOURCEWRITER_GENERATION_BACKEND", "huggingface")
        backend = backend.strip().lower()
        if backend not in BACKENDS:
            raise ValueError(
                f"Unknown generation backend {backend!r}; expected one of {sorted(BACKENDS)}."
            )

        raw_timeout = os.getenv("SOURCEWRITER_FETCH_TIMEOUT")
        fetch_timeout = float(raw_timeout) if raw_timeout else None

        return cls(
            hf_api_key=os.getenv("HF_API_KEY") or None,
            hf_model=os.getenv("HF_MODEL") or DEFAULT_MODEL,
            hf_api_base=os.getenv("HF_API_BASE") or DEFAULT_API_BASE,
            generation_backend=backend,
            fetch_timeout=fetch_timeout,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return process-wide settings, read once from the environment."""
    return Settings.from_env()
