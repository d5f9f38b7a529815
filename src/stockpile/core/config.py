"""Configuration management for the Stockpile inventory service.

Configuration is handled by Pydantic Settings.  Values can be passed
directly (the ``stockpile`` CLI does this from its required flags) or loaded
from environment variables with the ``STOCKPILE_`` prefix.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Explicit keyword arguments (CLI flags)
2. Environment variables (STOCKPILE_* prefix)
3. .env file in the working directory
4. Default values defined in StockpileConfig

Example .env file:
    STOCKPILE_HOST=127.0.0.1
    STOCKPILE_PORT=8000
    STOCKPILE_CACHE_DIR=./cache

Required Settings
-----------------
``host``, ``port`` and ``cache_dir`` have no defaults.  Constructing a
config without them raises :class:`pydantic.ValidationError`, which the
CLI surfaces as a startup error.

Unlike the blob directory, the configuration object never touches the file
system; the cache directory is created by
:class:`~stockpile.core.blob_store.BlobStore` at service startup.
"""

from pathlib import Path
from typing import Literal, get_args

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Bundled HTML form pages live next to the package sources.
DEFAULT_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

# Upload ceiling for a single photo.
DEFAULT_MAX_PHOTO_BYTES = 10 * 1024 * 1024

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LOG_LEVELS = get_args(LogLevel)


class StockpileConfig(BaseSettings):
    """Startup configuration for the Stockpile service.

    Attributes
    ----------
    Server:
        host : str
            Listen address for uvicorn.
        port : int
            Listen port (1-65535).

    Storage:
        cache_dir : Path
            Blob root directory; photo files are written here.
        max_photo_bytes : int
            Largest accepted photo payload in bytes.

    Presentation:
        templates_dir : Path
            Directory containing ``RegisterForm.html`` and
            ``SearchForm.html``.

    Logging:
        log_level : str
            Root log level passed to :func:`logging.basicConfig`; one of
            the standard level names.

    Notes
    -----
    - The configuration is read once at startup and never reloaded.
    - See the module docstring for the environment variable names.

    Examples
    --------
        >>> cfg = StockpileConfig(host="127.0.0.1", port=8000, cache_dir="cache")
        >>> cfg.max_photo_bytes
        10485760
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="STOCKPILE_",
        case_sensitive=False,
    )

    # Server settings
    host: str = Field(
        ...,
        description="Listen address (e.g. 127.0.0.1 or 0.0.0.0)",
    )
    port: int = Field(
        ...,
        description="Listen port",
        ge=1,
        le=65535,
    )

    # Storage settings
    cache_dir: Path = Field(
        ...,
        description="Directory where uploaded photos are stored",
    )
    max_photo_bytes: int = Field(
        default=DEFAULT_MAX_PHOTO_BYTES,
        description="Maximum accepted photo size in bytes",
        ge=1,
    )

    # Static form pages
    templates_dir: Path = Field(
        default=DEFAULT_TEMPLATES_DIR,
        description="Directory holding RegisterForm.html and SearchForm.html",
    )

    # Logging
    log_level: LogLevel = Field(
        default="INFO",
        description="Log level for the root logger",
    )
