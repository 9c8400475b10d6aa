from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="ROOMBILL_", extra="ignore")

    db_url: str = "sqlite:///roombill.db"

    timezone: str = "Asia/Ho_Chi_Minh"
    default_currency: str = "VND"
    due_days_after_period: int = 10

    notification_backend: str = "database"

    log_level: str = "INFO"
    log_json: bool = False


settings = Settings()
