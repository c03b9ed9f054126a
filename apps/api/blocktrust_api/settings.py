"""Application settings and configuration."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "dev-jwt-secret-change-in-production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: Optional[str] = None
    postgres_user: str = "blocktrust"
    postgres_password: str = "blocktrust_dev_password"
    postgres_db: str = "blocktrust"
    postgres_host: str = "localhost"
    postgres_port: int = 5432

    # Runtime
    environment: str = "development"

    # Security (identity is issued externally; we only verify bearer tokens)
    jwt_secret_key: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expiration_hours: int = 24
    jwt_audience: Optional[str] = None

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json, text

    # Simulated ledger
    ledger_hash_mode: str = "simulated"  # simulated, content
    ledger_block_baseline: int = 15_000_000
    ledger_block_spread: int = 1_000_000
    ledger_recent_limit: int = 50

    # Events
    default_target_signatures: int = 1000

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    @property
    def database_url_computed(self) -> str:
        """Compute database URL if not explicitly set."""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in a development or test environment."""
        return self.environment.lower() in ("development", "test", "dev")

    def validate_production_settings(self):
        """Validate settings for production environment."""
        if self.is_development:
            return
        if self.jwt_secret_key == DEFAULT_JWT_SECRET:
            raise ValueError(
                "JWT_SECRET_KEY must be set in production. "
                "Do not use the development default."
            )
        if self.ledger_hash_mode not in ("simulated", "content"):
            raise ValueError(
                f"LEDGER_HASH_MODE must be 'simulated' or 'content', got '{self.ledger_hash_mode}'."
            )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
