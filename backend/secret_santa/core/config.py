from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ASSIGNMENT_SECRET = "fallback-secret-key"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Logging
    log_level: str = "INFO"
    json_logs: bool = True

    # Assignment encryption (NEXTAUTH_SECRET kept for older deployments)
    assignment_secret: str = Field(
        default=DEFAULT_ASSIGNMENT_SECRET,
        validation_alias=AliasChoices("ASSIGNMENT_SECRET", "NEXTAUTH_SECRET"),
    )

    # Draw and clue tuning
    max_assignment_attempts: int = 100
    clue_target_count: int = 10

    @property
    def uses_default_secret(self) -> bool:
        return self.assignment_secret == DEFAULT_ASSIGNMENT_SECRET


@lru_cache
def get_settings() -> Settings:
    return Settings()
