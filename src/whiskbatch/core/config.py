"""Configuration management for the Whisk Batch Generator.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the WHISK_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (WHISK_* prefix)
2. .env file in the project root
3. Default values defined in WhiskConfig

Example .env file:
    WHISK_REDIS_URL=redis://localhost:6379/0
    WHISK_SERVER_PORT=8000
    WHISK_API_BASE_URL=http://127.0.0.1:8000
    WHISK_REQUEST_DELAY_MS=1500

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
Entry points read from it; the core classes never do, they receive the values
they need through their constructors so tests can build them freely.

Usage Example
-------------
    from whiskbatch.core.config import config

    print(config.generation_url)
    print(config.redis_url or "in-memory session store")

Upstream Endpoints
------------------
- identity_url: exchanges the browser session cookie for an access token
  (``GET``, returns ``access_token`` and ``expires``)
- generation_url: text-to-image endpoint (``POST``, bearer authenticated)

Session Store
-------------
When ``redis_url`` is unset the upstream session is cached in process memory.
Set it to share one cached session between several server processes.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Aspect ratio identifiers understood by the generation endpoint, mapped to
# the labels shown in the UI.
ASPECT_RATIOS = {
    "IMAGE_ASPECT_RATIO_LANDSCAPE": "Horizontal (16:9)",
    "IMAGE_ASPECT_RATIO_PORTRAIT": "Vertical (9:16)",
    "IMAGE_ASPECT_RATIO_SQUARE": "Square (1:1)",
}

DEFAULT_ASPECT_RATIO = "IMAGE_ASPECT_RATIO_LANDSCAPE"

MIN_REQUEST_DELAY_MS = 100
MAX_REQUEST_DELAY_MS = 5000
DEFAULT_REQUEST_DELAY_MS = 1000


class WhiskConfig(BaseSettings):
    """Main configuration for the Whisk Batch Generator.

    Values are loaded from environment variables with the WHISK_ prefix,
    with fallback to defaults defined here.

    Attributes
    ----------
    Upstream Settings:
        identity_url : str
            Session exchange endpoint (cookie in, access token out)
        generation_url : str
            Image generation endpoint
        session_cookie_name : str
            Cookie name the credential is presented under
        image_model : str
            Model identifier sent with every generation request
        default_aspect_ratio : str
            Aspect ratio used when a request does not name one

    Session Cache Settings:
        redis_url : str | None
            Redis connection URL; in-memory store when unset
        session_key : str
            Store key holding the serialized session record
        expiry_lookahead_seconds : int
            Sessions expiring within this window are treated as expired

    Server Settings:
        server_host : str
            Bind address for the API server
        server_port : int
            Port for the API server (1024-65535)

    UI Settings:
        api_base_url : str
            Base URL the UI uses to reach the API server
        request_delay_ms : int
            Default pause between batch tasks (100-5000 ms)
        outputs_dir : Path
            Directory downloaded images are written to
        gradio_server_name : str
            Gradio bind address
        gradio_server_port : int
            Gradio port (1024-65535)
        gradio_share : bool
            Create public gradio.live link (keep False for local-only)

    Notes
    -----
    - outputs_dir is created automatically if it doesn't exist
    - To modify config, set environment variables and restart the application
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="WHISK_",
        case_sensitive=False,
    )

    # Upstream endpoints
    identity_url: str = Field(
        default="https://labs.google/fx/api/auth/session",
        description="Session exchange endpoint",
    )
    generation_url: str = Field(
        default="https://aisandbox-pa.googleapis.com/v1/whisk:generateImage",
        description="Image generation endpoint",
    )
    session_cookie_name: str = Field(
        default="__Secure-next-auth.session-token",
        description="Cookie name used to present the credential to the identity endpoint",
    )
    image_model: str = Field(
        default="IMAGEN_3_5",
        description="Image model identifier sent to the generation endpoint",
    )
    default_aspect_ratio: str = Field(
        default=DEFAULT_ASPECT_RATIO,
        description="Aspect ratio used when a request omits one",
    )

    # Session cache
    redis_url: str | None = Field(
        default=None,
        description="Redis URL for the shared session store (in-memory when unset)",
    )
    session_key: str = Field(
        default="whisk:session",
        description="Store key holding the cached upstream session",
    )
    expiry_lookahead_seconds: int = Field(
        default=300,
        description="Treat sessions expiring within this many seconds as expired",
        ge=0,
    )

    # API server
    server_host: str = Field(
        default="0.0.0.0",
        description="API server bind address",
    )
    server_port: int = Field(
        default=8000,
        description="API server port",
        ge=1024,
        le=65535,
    )

    # UI
    api_base_url: str = Field(
        default="http://127.0.0.1:8000",
        description="Base URL the UI posts generation requests to",
    )
    request_delay_ms: int = Field(
        default=DEFAULT_REQUEST_DELAY_MS,
        description="Default pause between batch tasks in milliseconds",
        ge=MIN_REQUEST_DELAY_MS,
        le=MAX_REQUEST_DELAY_MS,
    )
    outputs_dir: Path = Field(
        default=Path("outputs"),
        description="Directory to write downloaded images to",
    )
    gradio_server_name: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    gradio_server_port: int = Field(
        default=7860,
        description="Server port",
        ge=1024,
        le=65535,
    )
    gradio_share: bool = Field(
        default=False,
        description="Create public gradio.live link (keep False for local-only)",
    )

    log_level: str = Field(
        default="INFO",
        description="Root logging level for the entry points",
    )

    def __init__(self, **kwargs):
        """Initialize configuration and create the outputs directory.

        Args:
            **kwargs: Configuration overrides (typically from environment variables)
        """
        super().__init__(**kwargs)

        self.outputs_dir.mkdir(parents=True, exist_ok=True)


# Global configuration instance
# Loads values from environment variables (WHISK_* prefix) and .env file.
config = WhiskConfig()
