"""
campus_wallet.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Describe where the wallet backend lives and which endpoint paths it exposes.
- Describe the portal route surface used by the login flow and route guards.
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Portal settings:
    - Strict env-driven configuration (prefix `CW_`)
    - Defaults safe for local dev
    - Single settings object injected across layers
    """

    model_config = SettingsConfigDict(env_prefix="CW_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "campus-wallet-portal"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8081

    # Wallet REST backend (black box consumed over HTTP)
    backend_base_url: str = "http://localhost:3000/api"
    backend_timeout_seconds: float = Field(default=30.0, gt=0)
    login_path: str = "/login"
    forgot_pin_path: str = "/login/forgot-pin"
    reset_pin_path: str = "/login/reset-pin"
    event_logs_path: str = "/admin/event-logs"
    maintenance_status_path: str = "/admin/sysad/maintenance-status"
    maintenance_check_enabled: bool = True

    # Persisted identity storage (survives portal restarts)
    storage_url: str = "sqlite+aiosqlite:///./portal_session.db"

    # Recovery flow
    otp_resend_cooldown_seconds: int = Field(default=60, ge=1)

    # Route surface
    login_route: str = "/login"
    user_landing_route: str = "/user-dashboard"
    change_pin_route: str = "/change-pin"
    activation_route: str = "/activate"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# The role -> landing route map is a closed constant in `guards.landing`, not
# configuration: adding a role must be a code change that the type checker sees.
