from pydantic import Field
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str
    host: str
    port: int
    debug: bool
    jwt_secret: str = Field(min_length=1)  # HS256 signing key for bearer tokens, required at startup
    cors_origins: list[str] = []
    frontend_url: str  # URL of the frontend application, used in email links
    # SMTP settings (optional, sending fails while smtp_host is unset)
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_sender: str = "GlobeTrotter <noreply@globetrotter.app>"
    smtp_start_tls: bool = True
    # Background maintenance jobs
    maintenance_enabled: bool = True
    session_cleanup_interval: int = 6 * 60 * 60  # seconds between stale-session sweeps
    trip_status_interval: int = 60 * 60  # seconds between trip status updates

    model_config = {
        "env_file": [".env"],
        "env_prefix": "GLOBETROTTER_",
        "extra": "ignore",
    }
