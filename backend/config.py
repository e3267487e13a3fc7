from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ROOT_DIR = Path(__file__).parent


class Settings(BaseSettings):
    mongo_url: str = "mongodb://localhost:27017"
    db_name: str = "melodyhub"
    redis_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("redis_url", "REDIS_URL", "REDIS_TLS_URL"),
    )
    suno_api_key: Optional[str] = None
    suno_base_url: str = "https://api.suno.ai/v1"
    suno_model: str = "chirp-v3"
    suno_poll_attempts: int = Field(default=30, ge=1)
    suno_poll_interval: float = Field(default=2.0, ge=0)
    jwt_secret: str = "your-secret-key"
    cors_origins: str = "*"
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)

    model_config = SettingsConfigDict(
        env_file=ROOT_DIR / ".env",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    @field_validator("redis_url", "suno_api_key", mode="before")
    @classmethod
    def _blank_is_unset(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("suno_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
