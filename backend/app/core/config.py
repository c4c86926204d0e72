from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "postgresql://localhost/dealer_desk"
    LOG_LEVEL: str = "INFO"

    # CORS origins — comma-separated list
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # Redis / Celery
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/1"
    CELERY_TASK_ALWAYS_EAGER: bool = False

    # Bill documents
    FILE_STORAGE_PATH: str = "/tmp/dealer-desk-files"
    MAX_DOCUMENT_BYTES: int = 5 * 1024 * 1024
    # Stored documents younger than this are never swept as orphans
    ORPHAN_GRACE_MINUTES: int = 60

    # Reject a second closing entry for the same branch and day
    CLOSING_ENTRY_UNIQUE_PER_DAY: bool = False


settings = Settings()
