"""
Configuration loaded from environment variables. Fail-fast on invalid values.
"""

from typing import Literal

from pydantic_settings import BaseSettings
from pydantic import Field


class Config(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "frozen": True, "extra": "ignore"}

    # Credentials (required both to send requests and to sign them with --dry-run)
    tencentcloud_secret_id: str = Field(default="", description="API secret id")
    tencentcloud_secret_key: str = Field(default="", description="API secret key")
    # Session token for temporary credentials
    tencentcloud_session_token: str = ""
    tencentcloud_region: str = "ap-shanghai"

    # Signing + transport
    sign_method: Literal["HmacSHA1", "HmacSHA256", "TC3-HMAC-SHA256"] = "TC3-HMAC-SHA256"
    req_method: Literal["GET", "POST"] = "POST"
    protocol: str = "https://"
    # Overrides the service's default host (e.g. a regional endpoint)
    endpoint: str = ""
    req_timeout_sec: float = Field(default=60.0, gt=0, le=600)

    log_level: str = "INFO"


def load_config() -> Config:
    """Load and validate config from environment. Raises on invalid fields."""
    return Config()
