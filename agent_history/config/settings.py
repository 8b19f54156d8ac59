from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    history_db_path: str = Field(default="db.json", validation_alias="HISTORY_DB_PATH")
    history_backend: Literal["json", "redis"] = Field(default="json", validation_alias="HISTORY_BACKEND")
    redis_url: str = Field(default="redis://localhost:6379/0", validation_alias="REDIS_URL")
    history_redis_key: str = Field(default="agent_history:state", validation_alias="HISTORY_REDIS_KEY")
    openai_api_key: str = Field(default="", validation_alias="OPENAI_API_KEY")
    summary_model: str = Field(default="gpt-4o-mini", validation_alias="SUMMARY_MODEL")
    compaction_threshold: int = Field(default=10, validation_alias="HISTORY_COMPACTION_THRESHOLD")
    trim_size: int = Field(default=5, validation_alias="HISTORY_TRIM_SIZE")
    window_size: int = Field(default=5, validation_alias="HISTORY_WINDOW_SIZE")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: str | None = Field(default=None, validation_alias="LOG_FILE")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    @field_validator("history_backend", mode="before")
    @classmethod
    def normalize_backend(cls, value: str) -> str:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.strip().upper()


settings = Settings()
