from pydantic import BaseModel
import os

class Settings(BaseModel):
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    task_backend: str = os.getenv("TASK_BACKEND", "redis")
    storage_backend: str = os.getenv("STORAGE_BACKEND", "redis")
    storage_bucket: str = os.getenv("STORAGE_BUCKET", "imexport")
    storage_key_prefix: str = os.getenv("STORAGE_KEY_PREFIX", "imexport")
    blob_ttl_seconds: int = int(os.getenv("BLOB_TTL_SECONDS", 7 * 24 * 3600))
    signing_secret: str = os.getenv("SIGNING_SECRET", "change-me")
    public_base_url: str = os.getenv("PUBLIC_BASE_URL", "https://files.example.com")
    template_url_ttl_seconds: int = int(os.getenv("TEMPLATE_URL_TTL_SECONDS", 3600))
    default_file_format: str = os.getenv("DEFAULT_FILE_FORMAT", "xlsx")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_format: str = os.getenv("LOG_FORMAT", "json")
    max_status_longpoll_seconds: int = int(os.getenv("MAX_STATUS_LONGPOLL_SECONDS", 60))
    status_poll_interval_seconds: float = float(os.getenv("STATUS_POLL_INTERVAL_SECONDS", 1.0))

settings = Settings()
