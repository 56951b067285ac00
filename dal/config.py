from dataclasses import dataclass

from core.config import Settings

REST_MODE = "postgres"


@dataclass(frozen=True)
class ClientConfig:
    """Data access configuration, fixed once at start-up."""

    api_mode: str = "supabase"
    api_url: str = "http://localhost:3001/api"
    timeout_ms: int = 15_000
    max_retries: int = 2
    retry_delay_ms: int = 1_000
    poll_interval_ms: int = 5_000
    admin_api_key: str = ""
    supabase_url: str = ""
    supabase_key: str = ""
    storage_bucket: str = "product-images"
    site_url: str = ""

    @property
    def is_rest_mode(self) -> bool:
        return self.api_mode == REST_MODE

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClientConfig":
        return cls(
            api_mode=settings.API_MODE,
            api_url=settings.API_URL.rstrip("/"),
            timeout_ms=settings.API_TIMEOUT_MS,
            max_retries=settings.API_MAX_RETRIES,
            retry_delay_ms=settings.API_RETRY_DELAY_MS,
            poll_interval_ms=settings.REALTIME_POLL_INTERVAL_MS,
            admin_api_key=settings.ADMIN_API_KEY,
            supabase_url=settings.SUPABASE_URL,
            supabase_key=settings.SUPABASE_KEY,
            storage_bucket=settings.SUPABASE_STORAGE_BUCKET,
            site_url=settings.SITE_URL,
        )
