"""Application configuration — loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from chapter_scribe.domain.entities import CompletionConfig

PRODUCTION_ORIGINS = [
    "https://stunning-fox-b1e4ea.netlify.app",
    "https://conectorai.netlify.app",
    "https://pavolker-conectorai.netlify.app",
    "https://escriba-capitulos.netlify.app",
]

DEVELOPMENT_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:8080",
    "http://localhost:5500",
    "http://127.0.0.1:5500",
]


class Settings(BaseSettings):
    """Central configuration loaded from env vars (or ``.env`` file)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    openai_api_key: SecretStr | None = None
    openai_model: str = "gpt-4o"
    openai_max_tokens: int = 4000
    openai_temperature: float = 0.3
    openai_timeout_seconds: float = 60.0

    rate_limit_window_ms: int = 15 * 60 * 1000
    rate_limit_max_requests: int = 100

    environment: str = "production"  # only "development" exposes provider detail
    cors_allowed_origins: str | None = None  # comma-separated override

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def cors_origins(self) -> list[str]:
        """Explicit override if set, else the allowlist for this environment."""
        if self.cors_allowed_origins:
            return [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]
        return list(PRODUCTION_ORIGINS if self.is_production else DEVELOPMENT_ORIGINS)

    @property
    def api_key(self) -> str | None:
        if self.openai_api_key is None:
            return None
        return self.openai_api_key.get_secret_value() or None

    def completion_config(self) -> CompletionConfig:
        return CompletionConfig(
            model=self.openai_model,
            max_tokens=self.openai_max_tokens,
            temperature=self.openai_temperature,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton application settings (cached after first call)."""
    return Settings()
