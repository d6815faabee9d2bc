"""Application configuration loaded from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All configuration is loaded from environment variables (or .env file)."""

    # --- App ---
    app_name: str = "NaariCare"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    environment: str = "development"  # development | staging | production

    # --- Supabase ---
    supabase_url: str
    supabase_db_url: str  # direct postgres connection string for asyncpg
    supabase_jwt_audience: str = "authenticated"
    supabase_jwks_url: str = ""  # defaults to {supabase_url}/auth/v1/.well-known/jwks.json

    # --- Cycle tracking ---
    cycle_history_limit: int = 12
    role_cache_ttl_seconds: int = 300

    # --- Remote ML scoring (optional) ---
    ml_api_url: str = ""  # empty → always use local predictions
    ml_timeout_seconds: float = 30.0

    # --- Health assistant ---
    ai_gateway_url: str = "https://ai.gateway.lovable.dev/v1/chat/completions"
    ai_gateway_api_key: str = ""
    ai_model: str = "google/gemini-2.5-flash"

    # --- CORS ---
    cors_origins: list[str] = ["http://localhost:5173"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def jwks_url(self) -> str:
        if self.supabase_jwks_url:
            return self.supabase_jwks_url
        return f"{self.supabase_url.rstrip('/')}/auth/v1/.well-known/jwks.json"


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
