"""Application configuration via environment variables."""

from pydantic import model_validator
from pydantic_settings import BaseSettings

_INSECURE_SECRETS = {
    "dev-secret-change-in-production",
    "secret",
    "changeme",
    "password",
}

MIN_SECRET_LENGTH = 16


class Settings(BaseSettings):
    # DynamoDB
    table_name: str = ""
    time_ordered_index: str = "TimeOrderedIndex"
    aws_region: str = "us-east-1"
    dynamodb_endpoint_url: str = ""  # Empty = AWS default endpoint

    # Store over-fetch heuristic (DynamoDB applies Limit before FilterExpression)
    store_fetch_multiplier: int = 3
    store_min_fetch_limit: int = 100

    # Pagination
    next_token_secret: str = ""
    default_page_size: int = 50
    max_future_days: int = 30

    # App
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @model_validator(mode="after")
    def validate_next_token_secret(self) -> "Settings":
        """Raise if a token secret is configured but weak."""
        secret = self.next_token_secret
        if not secret:
            return self
        if secret in _INSECURE_SECRETS:
            raise ValueError(
                "Insecure NEXT_TOKEN_SECRET detected. Set NEXT_TOKEN_SECRET to a strong, unique value."
            )
        if len(secret) < MIN_SECRET_LENGTH:
            raise ValueError(f"NEXT_TOKEN_SECRET must be at least {MIN_SECRET_LENGTH} characters.")
        return self

    @property
    def is_store_configured(self) -> bool:
        return bool(self.table_name)


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() reloads them."""
    global _settings
    _settings = None
