import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="DDMS_", extra="ignore")

    api_base_url: str = "https://backend-production-a53c.up.railway.app"
    request_timeout: float = 30.0

    session_timeout_ms: int = 15 * 60 * 1000
    session_warning_ms: int = 2 * 60 * 1000
    session_countdown_ms: int = 1000
    session_file: str = ""

    login_path: str = "/login"
    super_admin_role: str = "SUPER_ADMIN"

    log_level: str = "INFO"
    log_json: bool = False
    # Level for the httpx/httpcore loggers; they log every request at INFO.
    http_log_level: str = "WARNING"


settings = Settings()
