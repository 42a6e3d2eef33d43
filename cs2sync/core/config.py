from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    database_url: str = "sqlite+aiosqlite:///./cs2_inventory.db"

    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # Game Coordinator inventory expansion (seconds)
    gc_inventory_timeout: float = 60.0
    gc_poll_interval: float = 0.5
    casket_throttle: float = 0.9
    casket_retries: int = 2
    casket_retry_delay: float = 1.2
    casket_limit: Optional[int] = None

    upsert_batch_size: int = 500

    # Skinport public API
    skinport_base_url: str = "https://api.skinport.com/v1"
    skinport_currency: str = "EUR"
    skinport_tradable: bool = True
    skinport_timeout: float = 60.0


settings = Settings()
