from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_WHITELIST_REJECTION_MESSAGE = (
    "You are not yet whitelisted in this server.\n"
    "Please join http://discord.gg/example.\n"
    "Your ID: <id>"
)


class Settings(BaseSettings):
    app_name: str = "playerhub"
    debug: bool = False
    verbose: bool = False
    log_level: str = "INFO"
    api_prefix: str = "/api/v1"

    store_backend: str = "json"
    store_path: str = "./data/playersDB.json"
    database_url: str = "sqlite:///./data/players.db"
    redis_url: str = "redis://localhost:6379/0"
    redis_socket_timeout_seconds: float = 1.0
    player_list_mirror_enabled: bool = False

    admin_api_key: str = "change-this-admin-key"

    min_session_time_seconds: int = 60
    check_ban: bool = False
    check_whitelist: bool = False
    whitelist_rejection_message: str = DEFAULT_WHITELIST_REJECTION_MESSAGE
    wipe_pending_wl_on_start: bool = False

    flush_interval_seconds: float = 15.0
    persist_timeout_seconds: float = 10.0
    heartbeat_queue_size: int = 4

    model_config = SettingsConfigDict(
        env_prefix="PLAYERHUB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
