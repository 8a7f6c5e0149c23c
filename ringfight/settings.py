"""Runtime settings for the training driver and CLI."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings overridable via RINGFIGHT_* environment variables or a .env file."""

    # Driver
    TICK_INTERVAL_S: float = 0.1  # 10 decisions per second
    SEED: int | None = None

    # Output
    LOG_LEVEL: str = "INFO"
    SNAPSHOT_DIR: Path = Path("snapshots")

    model_config = SettingsConfigDict(env_prefix="RINGFIGHT_", env_file=".env", extra="ignore")


settings = Settings()
