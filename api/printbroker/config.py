"""Application configuration."""

from datetime import datetime
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    postgres_host: str = "postgres"
    postgres_port: int = 5432
    postgres_user: str = "printbroker"
    postgres_password: str = "changeme"
    postgres_db: str = "printbroker_db"
    database_url_override: Optional[str] = None  # e.g. sqlite:///./dev.db
    db_pool_size: int = 10
    db_pool_timeout_seconds: int = 10

    # Redis
    redis_url: str = "redis://redis:6379/0"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_reload: bool = True

    # Celery
    celery_broker_url: str = "redis://redis:6379/0"
    celery_result_backend: str = "redis://redis:6379/0"

    # Transaction bounds (seconds)
    job_tx_max_wait_seconds: float = 10
    job_tx_timeout_seconds: float = 30
    batch_tx_max_wait_seconds: float = 30
    batch_tx_timeout_seconds: float = 120
    payment_tx_max_wait_seconds: float = 5
    payment_tx_timeout_seconds: float = 10

    # Sequences
    job_number_start: int = 1001  # first issued job number (J-1001)
    master_sequence_start: int = 3000  # first issued base sequence is start + 1

    # Jobs created on/after this date must carry base_job_id and pathway
    pathway_cutover_date: datetime = datetime(2024, 1, 1)

    # Ordering portal webhook
    portal_webhook_secret: Optional[str] = None

    # Downstream invoice notices
    notice_backend: str = "celery"  # celery or log
    notice_recipient: str = "billing@partner.example.com"
    notice_task_name: str = "documents.tasks.send_downstream_invoice_notice"

    # Environment
    environment: str = "development"
    log_level: str = "INFO"

    @property
    def database_url(self) -> str:
        """Build database URL."""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


settings = Settings()
