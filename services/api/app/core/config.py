from functools import lru_cache
import json
from urllib.parse import urlsplit

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_PLACEHOLDER_KEY_PREFIX = "your_"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = Field(default="Veritext API", alias="APP_NAME")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    api_prefix: str = Field(default="/v1", alias="API_PREFIX")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=True, alias="LOG_JSON")

    redis_url: str = Field(default="", alias="REDIS_URL")
    cache_ttl_seconds: int = Field(default=300, alias="CACHE_TTL_SECONDS")

    cors_allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        alias="CORS_ALLOWED_ORIGINS",
    )
    cors_allow_origin_regex: str = Field(default="", alias="CORS_ALLOW_ORIGIN_REGEX")

    sentry_dsn: str = Field(default="", alias="SENTRY_DSN")
    max_upload_bytes: int = Field(default=3_145_728, alias="MAX_UPLOAD_BYTES")

    text_min_chars: int = Field(default=50, alias="TEXT_MIN_CHARS")
    text_max_chars: int = Field(default=50_000, alias="TEXT_MAX_CHARS")
    batch_max_texts: int = Field(default=20, alias="BATCH_MAX_TEXTS")

    rewrite_api_key: str = Field(default="", alias="REWRITE_API_KEY")
    rewrite_base_url: str = Field(default="https://api.groq.com/openai/v1", alias="REWRITE_BASE_URL")
    rewrite_model: str = Field(default="openai/gpt-oss-120b", alias="REWRITE_MODEL")
    rewrite_temperature: float = Field(default=0.95, alias="REWRITE_TEMPERATURE")
    rewrite_top_p: float = Field(default=0.95, alias="REWRITE_TOP_P")
    rewrite_max_completion_tokens: int = Field(default=4000, alias="REWRITE_MAX_COMPLETION_TOKENS")
    rewrite_max_input_chars: int = Field(default=12000, alias="REWRITE_MAX_INPUT_CHARS")
    rewrite_timeout_seconds: float = Field(default=30.0, alias="REWRITE_TIMEOUT_SECONDS")
    rewrite_session_timeout_seconds: float = Field(default=120.0, alias="REWRITE_SESSION_TIMEOUT_SECONDS")

    humanizer_max_iterations: int = Field(default=3, alias="HUMANIZER_MAX_ITERATIONS")
    humanizer_accept_score: int = Field(default=45, alias="HUMANIZER_ACCEPT_SCORE")
    humanizer_meaning_threshold: float = Field(default=0.65, alias="HUMANIZER_MEANING_THRESHOLD")

    history_max_records: int = Field(default=1000, alias="HISTORY_MAX_RECORDS")

    @field_validator("rewrite_base_url", mode="before")
    @classmethod
    def strip_base_url(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().rstrip("/")
        return value

    @field_validator("humanizer_max_iterations", mode="before")
    @classmethod
    def bound_iterations(cls, value: object) -> object:
        try:
            numeric = int(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 3
        return max(1, min(10, numeric))

    @staticmethod
    def _normalize_origin(origin: str) -> str:
        candidate = origin.strip().strip("'\"")
        if not candidate:
            return ""

        if "://" not in candidate:
            candidate = f"https://{candidate}"

        parsed = urlsplit(candidate)
        if not parsed.scheme or not parsed.netloc:
            return ""

        # CORS matching is exact on scheme+host+port; paths must be removed.
        return f"{parsed.scheme}://{parsed.netloc}".rstrip("/")

    @property
    def cors_origins(self) -> list[str]:
        raw = self.cors_allowed_origins.strip()
        if not raw:
            return []

        values: list[str]
        if raw.startswith("["):
            try:
                parsed = json.loads(raw)
                if isinstance(parsed, list):
                    values = [str(item) for item in parsed]
                else:
                    values = [raw]
            except json.JSONDecodeError:
                values = [raw]
        else:
            values = raw.split(",")

        normalized = [self._normalize_origin(value) for value in values]
        return [origin for origin in normalized if origin]

    @property
    def cors_origin_regex(self) -> str | None:
        value = self.cors_allow_origin_regex.strip()
        return value or None

    @property
    def rewrite_service_enabled(self) -> bool:
        key = self.rewrite_api_key.strip()
        return bool(key) and not key.startswith(_PLACEHOLDER_KEY_PREFIX) and len(key) > 10


@lru_cache
def get_settings() -> Settings:
    return Settings()
