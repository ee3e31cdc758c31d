from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Telegram
    telegram_bot_token: str
    telegram_webhook_secret: str
    telegram_api: str = "https://api.telegram.org"

    # Guide delivery
    guide_url: str
    channel_username: str  # e.g. hlebsasha_travel (with or without @)
    pick_tour_url: str = ""  # Defaults to the channel link

    # Supabase (update log). Logging is disabled when not configured.
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    supabase_updates_table: str = "tg_updates"

    # Runtime
    http_timeout_seconds: float = 15.0
    log_level: str = "INFO"
    environment: str = "development"
    port: int = 8080

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

    @property
    def channel_name(self) -> str:
        return self.channel_username.strip().lstrip("@")

    @property
    def channel_ref(self) -> str:
        """Chat reference for getChatMember, always @-prefixed."""
        return f"@{self.channel_name}"

    @property
    def channel_link(self) -> str:
        return f"https://t.me/{self.channel_name}"

    @property
    def pick_tour_link(self) -> str:
        return self.pick_tour_url or self.channel_link

    @property
    def update_log_enabled(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
