"""
Widget configuration.

Loads KVKK widget environment variables only.

Environment variables must be prefixed with:
    KVKK_

Example:
    KVKK_API_BASE_URL=https://cari.example.com/api/cari
    KVKK_API_KEY=...
"""

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # --------------------
    # Consent record service
    # --------------------
    API_BASE_URL: str = Field(
        default="https://37.9.200.138:1002/api/cari",
        description="Base URL of the cari directory service",
        min_length=1,
    )
    API_KEY: str = Field(
        default="",
        description="Access key embedded in every request path",
    )
    REQUEST_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        gt=0,
        description="Upper bound for a single lookup/create/update call",
    )
    VERIFY_TLS: bool = True

    # --------------------
    # UI
    # --------------------
    PORT: int = 8080

    model_config = ConfigDict(
        env_file=".env",
        env_prefix="KVKK_",
        extra="ignore",
    )


settings = Settings()
