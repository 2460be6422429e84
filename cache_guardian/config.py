from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models.config import GuardianConfig


class Settings(BaseSettings):
    """Cache guardian configuration (environment variables or .env)"""

    # Store connection; REDIS_URL is shared with the rest of the app
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        validation_alias=AliasChoices("CACHE_GUARDIAN_REDIS_URL", "REDIS_URL"),
    )
    socket_timeout: float = Field(default=5.0, gt=0)  # seconds, per connect and per command

    # Eviction Settings
    key_pattern: str = "cache:*"
    threshold_percent: float = 80.0
    batch_size: int = 100

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="CACHE_GUARDIAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_assignment=True,
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    def guardian_config(self, dry_run: bool = False) -> GuardianConfig:
        return GuardianConfig(
            key_pattern=self.key_pattern,
            threshold_percent=self.threshold_percent,
            batch_size=self.batch_size,
            dry_run=dry_run,
        )
