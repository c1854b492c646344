"""
Centralized configuration management for the renderer service.

Pydantic v2 settings management: values come from the environment (or a
local .env file), are validated once at startup, and are immutable for the
lifetime of the process. Credentials are held as SecretStr so they never
appear in logs or reprs.
"""

from functools import lru_cache
from typing import Annotated, Optional

from pydantic import AnyHttpUrl, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# -------------------------------------------------------------------------
# Reusable Type Aliases
# -------------------------------------------------------------------------

EnvRequired = Annotated[
    str,
    Field(min_length=1),
]

SensitiveEnv = Annotated[
    SecretStr,
    Field(description="Sensitive credential, redacted from logs"),
]


# -------------------------------------------------------------------------
# Settings Model
# -------------------------------------------------------------------------

class Settings(BaseSettings):
    """
    Application settings parsed from the environment.

    Fails fast at startup if the Google service account or the config
    spreadsheet is not configured.
    """

    # ---------------------------------------------------------------------
    # Google service account
    # ---------------------------------------------------------------------

    google_client_email: EnvRequired
    google_private_key: SensitiveEnv

    # ---------------------------------------------------------------------
    # Template configuration source
    # ---------------------------------------------------------------------

    sheets_spreadsheet_id: EnvRequired

    config_ttl_seconds: Annotated[
        float,
        Field(
            default=60.0,
            ge=0,
            description="How long a loaded config snapshot is served from memory",
        ),
    ]

    # ---------------------------------------------------------------------
    # Inbound API gate
    # ---------------------------------------------------------------------

    render_api_key: Annotated[
        Optional[SecretStr],
        Field(
            default=None,
            description="When set, /v1 routes require a matching x-api-key header",
        ),
    ]

    # ---------------------------------------------------------------------
    # Zendesk Sell
    # ---------------------------------------------------------------------

    sell_pat: Annotated[
        Optional[SecretStr],
        Field(default=None, description="Zendesk Sell personal access token"),
    ]

    sell_base_url: Annotated[
        Optional[AnyHttpUrl],
        Field(default=None, description="Zendesk Sell API base URL"),
    ]

    http_timeout_seconds: Annotated[
        float,
        Field(default=30.0, gt=0),
    ]

    # ---------------------------------------------------------------------
    # Google Drive
    # ---------------------------------------------------------------------

    drive_root_folder_id: Annotated[
        Optional[str],
        Field(
            default=None,
            description="Default parent for /v1/drive/folder/ensure",
        ),
    ]

    copy_poll_attempts: Annotated[
        int,
        Field(
            default=6,
            ge=1,
            le=20,
            description="Visibility checks after copying a template document",
        ),
    ]

    copy_poll_max_wait_seconds: Annotated[
        float,
        Field(
            default=8.0,
            gt=0,
            description="Upper bound for a single backoff interval",
        ),
    ]

    # ---------------------------------------------------------------------
    # Process
    # ---------------------------------------------------------------------

    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: Annotated[int, Field(default=3000, ge=1, le=65535)]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
    )

    @field_validator("google_private_key", mode="before")
    @classmethod
    def expand_escaped_newlines(cls, v):
        # Keys pasted into a single env line carry literal "\n" sequences.
        if isinstance(v, str):
            return v.replace("\\n", "\n")
        return v

    @field_validator(
        "render_api_key",
        "sell_pat",
        "sell_base_url",
        "drive_root_folder_id",
        mode="before",
    )
    @classmethod
    def blank_as_unset(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def sell_api_base(self) -> Optional[str]:
        if self.sell_base_url is None:
            return None
        return str(self.sell_base_url).rstrip("/")


# -------------------------------------------------------------------------
# Settings Provider
# -------------------------------------------------------------------------

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Process-wide settings singleton.
    """
    return Settings()  # singleton within process
