"""Configuration settings using Pydantic BaseSettings."""

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Store Configuration
    store_backend: Literal["rest", "memory"] = Field(
        default="memory", description="Task store backend: hosted REST store or in-process memory"
    )
    store_url: Optional[str] = Field(default=None, description="Base URL of the hosted store project")
    store_api_key: Optional[str] = Field(default=None, description="Public API key sent with every store request")
    store_table: str = Field(default="tasks", description="Name of the tasks table")
    store_timeout_seconds: float = Field(default=10.0, description="Timeout for a single store round trip")

    # Dashboard Configuration
    notification_timeout_seconds: float = Field(
        default=3.0, description="Seconds before a dashboard notification expires"
    )

    # Application Configuration
    app_host: str = Field(default="0.0.0.0", description="FastAPI host")
    app_port: int = Field(default=8000, description="FastAPI port")
    debug: bool = Field(default=False, description="Enable debug mode")
    environment: str = Field(default="development", description="Deployment environment name")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_dir: Path = Field(default=Path("logs"), description="Directory for rotating log files")
    log_file: Optional[Path] = Field(default=None, description="Log file path")

    class Config:
        """Pydantic configuration."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @model_validator(mode="after")
    def check_store_credentials(self) -> "Settings":
        if self.store_backend == "rest" and not (self.store_url and self.store_api_key):
            raise ValueError("store_url and store_api_key are required for the rest store backend")
        return self

    @property
    def rest_base_url(self) -> str:
        return (self.store_url or "").rstrip("/")


# Global settings instance
settings = Settings()
