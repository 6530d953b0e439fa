# Application Configuration using Pydantic BaseSettings
import logging
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    # MongoDB
    MONGO_DETAILS: str = "mongodb://mongo:27017"
    DB_NAME: str = "visa_case_db"

    # Observability
    LOG_LEVEL: str = "INFO"
    OTEL_EXPORTER_OTLP_TRACES_ENDPOINT: Optional[str] = None
    OTEL_EXPORTER_OTLP_METRICS_ENDPOINT: Optional[str] = None
    SERVICE_NAME_API: str = "visa-case-api"
    SERVICE_NAME_SCHEDULER: str = "visa-case-scheduler"

    # Case intake
    CASE_ID_MAX_ATTEMPTS: int = 5 # Retries when a generated VC-<year>-<nnnn> id collides
    DEFAULT_PAGE_SIZE: int = 50

    # Document audit
    DOCUMENT_EXPIRY_WARNING_DAYS: int = 7

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

# Instantiate settings to be imported by other modules
settings = AppSettings()

logger = logging.getLogger(__name__)
logger.info("Application settings module initialized.")
