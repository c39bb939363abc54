"""Application configuration."""

from os import getenv

from pydantic import BaseModel


class Settings(BaseModel):
    """Runtime settings for the application."""

    app_name: str = "Costume Order Tracker API"
    app_env: str = getenv("APP_ENV", "dev")
    debug: bool = getenv("DEBUG", "0") == "1"
    database_url: str = getenv("DATABASE_URL", "sqlite:///./costume_orders.db")
    jwt_secret_key: str = getenv("JWT_SECRET_KEY", "dev-only-change-me-to-a-long-random-secret")
    jwt_algorithm: str = getenv("JWT_ALGORITHM", "HS256")
    jwt_expire_minutes: int = int(getenv("JWT_EXPIRE_MINUTES", "60"))
    admin_email: str = getenv("ADMIN_EMAIL", "admin@local.dev")
    admin_password: str = getenv("ADMIN_PASSWORD", "")
    order_number_prefix: str = getenv("ORDER_NUMBER_PREFIX", "CG")
    lifecycle_timeout_seconds: float = float(getenv("LIFECYCLE_TIMEOUT_SECONDS", "10"))
    lifecycle_max_retries: int = int(getenv("LIFECYCLE_MAX_RETRIES", "3"))
    notification_worker_enabled: bool = getenv("NOTIFICATION_WORKER_ENABLED", "1") == "1"


settings: Settings = Settings()
