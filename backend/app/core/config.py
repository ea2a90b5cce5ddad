from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "Trip Invoice Reminders"
    version: str = "0.1.0"
    DEBUG: bool = False
    APP_DOMAIN: str = "example.com"
    APP_DATABASE_DSN: str = "sqlite:////tmp/database.db"
    REDIS_URL: str = "redis://localhost:6379"
    DATABASE_TIMEOUT_SECONDS: float = 10.0  # per statement / lock wait

    # Outgoing email (empty host disables sending)
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    SMTP_FROM_EMAIL: str = "invoices@example.com"
    SMTP_FROM_NAME: str = "Travel2Egypt"

    # Branding used in rendered reminders
    AGENCY_NAME: str = "Travel2Egypt"
    AGENCY_LOCATION: str = "Cairo, Egypt"

    # Reminder scheduling
    REMINDER_INTERVAL_DAYS: int = 7
    REMINDER_BATCH_LIMIT: int = 50  # max invoices per scheduled sweep
    REMINDER_MAX_CONCURRENCY: int = 5
    REMINDER_SEND_TIMEOUT_SECONDS: float = 30.0

    # Shared secret for the external cron trigger (empty disables the check)
    CRON_SECRET: str = ""

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"


settings = Settings()
