from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./goalstore.db"
    default_tz: str | None = None  # IANA name; None = host local time

    # Evaluation
    streak_lookback_days: int = 365  # Max days walked back by get_streak
    default_warn_days: list[int] = [7, 3, 1]  # Flex deadline reminders (days left)

    # Add-goal form autosave
    draft_ttl_seconds: int = 300  # 5 minutes; older drafts are discarded unread

    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_prefix": "GOALSTORE_", "extra": "ignore"}


settings = Settings()
