from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "Notification Engine"
    version: str = "0.1.0"
    DEBUG: bool = False
    APP_DATABASE_DSN: str = "sqlite:////tmp/notifications.db"
    REDIS_URL: str = "redis://localhost:6379"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Retry policy
    RETRY_BASE_DELAY_SECONDS: int = 60
    RETRY_URGENT_BASE_DELAY_SECONDS: int = 15
    RETRY_MAX_DELAY_SECONDS: int = 3600
    RETRY_MAX_ATTEMPTS: int = 5
    RETRY_URGENT_MAX_ATTEMPTS: int = 8
    RETRY_RATE_LIMIT_MULTIPLIER: int = 4

    # Delivery
    CHANNEL_TIMEOUT_SECONDS: float = 10.0
    DISPATCH_LEASE_SECONDS: int = 120
    SCHEDULER_BATCH_SIZE: int = 100
    SCHEDULER_CONCURRENCY: int = 10

    # Snooze
    DEFAULT_MAX_SNOOZE_COUNT: int = 3
    DEFAULT_SNOOZE_MINUTES: int = 10

    # Reminders
    REMINDER_MAX_LATENESS_MINUTES: int = 60

    # Retention
    NOTIFICATION_RETENTION_DAYS: int = 90

    # Push (FCM HTTP v1); the access token is minted outside this service
    FCM_PROJECT_ID: str = ""
    FCM_ACCESS_TOKEN: str = ""

    # Email (SMTP)
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    SMTP_FROM_EMAIL: str = "notifications@example.com"
    SMTP_FROM_NAME: str = "Notifications"

    # SMS (Twilio)
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_FROM_NUMBER: str = ""

    @property
    def push_enabled(self) -> bool:
        return bool(self.FCM_PROJECT_ID and self.FCM_ACCESS_TOKEN)

    @property
    def email_enabled(self) -> bool:
        return bool(self.SMTP_HOST)

    @property
    def sms_enabled(self) -> bool:
        return bool(self.TWILIO_ACCOUNT_SID and self.TWILIO_AUTH_TOKEN and self.TWILIO_FROM_NUMBER)


settings = Settings()
