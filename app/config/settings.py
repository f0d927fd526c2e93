from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""  # anon key; requests made with it are constrained by RLS
    supabase_service_role_key: Optional[str] = None  # Required for admin routes (bypasses RLS)

    # Google Maps
    google_maps_api_key: Optional[str] = None
    geocode_base_url: str = "https://maps.googleapis.com/maps/api/geocode/json"
    distance_matrix_base_url: str = "https://maps.googleapis.com/maps/api/distancematrix/json"
    geocode_timeout_seconds: float = 10.0
    geo_fresh_days: int = 30  # single geocode skips rows younger than this

    # Auth
    site_url: str = ""
    auth_base_url: str = ""
    auth_cookie_name: str = "sb-access-token"

    # App
    app_name: str = "gastroswipe-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def public_base_url(self) -> str:
        return (self.auth_base_url or self.site_url or "").rstrip("/")

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def missing(self, *fields: str) -> List[str]:
        """Env var names for the given fields that are unset or empty."""
        return [f.upper() for f in fields if not getattr(self, f, None)]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
