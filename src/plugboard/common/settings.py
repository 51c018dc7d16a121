from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env into os.environ
load_dotenv()


class Settings(BaseSettings):
    """Runtime configuration backed by environment variables."""

    log_level: str = Field(default="INFO", validation_alias="PLUGBOARD_LOG_LEVEL")
    log_json: bool = Field(default=False, validation_alias="PLUGBOARD_LOG_JSON")

    datasource_config_path: str = Field(
        default="configs/datasources.yaml",
        validation_alias="PLUGBOARD_DATASOURCE_CONFIG",
        description="Path to the YAML file holding datasource profiles.",
    )

    default_query_timeout_ms: int = Field(
        default=30000,
        validation_alias="PLUGBOARD_QUERY_TIMEOUT_MS",
        description="Timeout applied to queries when the caller does not pass one.",
    )
    query_workers: int = Field(
        default=8,
        validation_alias="PLUGBOARD_QUERY_WORKERS",
        description="Max worker threads used to run queries under a timeout.",
    )

    breaker_fail_max: int = Field(
        default=5,
        validation_alias="PLUGBOARD_BREAKER_FAIL_MAX",
        description="Consecutive native failures before a backend breaker opens.",
    )
    breaker_reset_timeout: int = Field(
        default=30,
        validation_alias="PLUGBOARD_BREAKER_RESET_TIMEOUT",
        description="Seconds an open breaker waits before a trial call.",
    )

    discover_entry_points: bool = Field(
        default=True,
        validation_alias="PLUGBOARD_ENTRY_POINTS",
        description="Load third-party plugins from installed entry points.",
    )

    observability_exporter: str = Field(
        default="none",
        validation_alias="PLUGBOARD_OBSERVABILITY_EXPORTER",
        description="Exporter for metrics: 'none', 'console', 'otlp'.",
    )
    otlp_endpoint: Optional[str] = Field(
        default=None,
        validation_alias="OTEL_EXPORTER_OTLP_ENDPOINT",
        description="Endpoint for OTLP exporter (e.g. http://localhost:4317).",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def configure_env(self, env: str) -> None:
        """Loads environment-specific variables and reloads settings."""
        if not env:
            return

        load_dotenv(f".env.{env}", override=True)
        new_settings = Settings()
        self.__dict__.update(new_settings.__dict__)


settings = Settings()
