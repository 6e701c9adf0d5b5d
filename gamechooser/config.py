from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration for the game chooser service."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="GAMECHOOSER_")

    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"
    room_code_bytes: int = 3
    default_host_name: str = "Host"
    default_player_name: str = "Player"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
