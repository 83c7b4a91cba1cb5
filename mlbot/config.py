"""mlbot configuration via pydantic-settings."""

from __future__ import annotations

from pydantic import field_validator
from pydantic_settings import BaseSettings


class MLBotSettings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///mlbot.db"
    database_ssl: bool = True
    database_connect_timeout: float = 10.0
    echo_sql: bool = False
    app_title: str = "Velox ML Bot"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000

    # Mercado Livre OAuth app
    ml_client_id: str = ""
    ml_client_secret: str = ""
    ml_redirect_uri: str = ""
    ml_api_base: str = "https://api.mercadolibre.com"
    ml_auth_url: str = "https://auth.mercadolivre.com.br/authorization"
    ml_token_ttl_seconds: int = 21600

    # Replay guard for authorization codes
    replay_window_seconds: float = 120.0
    replay_max_entries: int = 1024

    # Hugging Face Inference API
    hf_token: str = ""
    hf_model: str = "mistralai/Mistral-7B-Instruct-v0.2"
    hf_api_base: str = "https://api-inference.huggingface.co/models"
    hf_max_new_tokens: int = 120
    hf_temperature: float = 0.6

    answer_max_chars: int = 900
    http_timeout_seconds: float = 30.0

    model_config = {"env_file": ".env", "extra": "ignore"}

    @field_validator("database_url")
    @classmethod
    def _async_driver(cls, value: str) -> str:
        # Hosted Postgres hands out plain postgres:// URLs.
        for prefix in ("postgres://", "postgresql://"):
            if value.startswith(prefix):
                return "postgresql+asyncpg://" + value[len(prefix):]
        return value

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def oauth_configured(self) -> bool:
        return bool(self.ml_client_id and self.ml_redirect_uri)

    @property
    def hf_model_url(self) -> str:
        return f"{self.hf_api_base.rstrip('/')}/{self.hf_model}"


settings = MLBotSettings()
