"""
Server configuration.

Settings come from the command line, falling back to environment variables
(optionally loaded from a .env file) and finally to built-in defaults.
"""

import os
import random
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from core.errors import ConfigError
from core.registry import normalize_prefix

# Load environment variables
load_dotenv()

DEFAULT_BIND = os.getenv("PSHARE_BIND", "0.0.0.0")
DEFAULT_PORT = os.getenv("PSHARE_PORT")
DEFAULT_PREFIX = os.getenv("PSHARE_PREFIX")
DEFAULT_SSL_CERT = os.getenv("PSHARE_SSL_CERT")
DEFAULT_SSL_KEY = os.getenv("PSHARE_SSL_KEY")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
METRICS_PORT = os.getenv("METRICS_PORT")

# random ports stay above the privileged range and below the usual ephemeral one
RANDOM_PORT_MIN = 0x400
RANDOM_PORT_SPAN = 0x7bff


class ServerSettings(BaseModel):
    """Validated settings for one server instance."""
    files: List[str] = Field(min_length=1, description="Files to share, in index order")
    bind: str = Field(default="0.0.0.0", description="Address to bind to")
    port: int = Field(gt=0, lt=0xffff, description="Port to listen on")
    prefix: Optional[str] = Field(default=None, description="Required URL prefix")
    ssl: bool = False
    ssl_cert: Optional[str] = None
    ssl_key: Optional[str] = None
    qrcode: bool = True
    upnp: bool = True
    log_level: str = "INFO"
    metrics_port: Optional[int] = Field(default=None, gt=0, lt=0x10000)

    @field_validator("prefix")
    @classmethod
    def validate_prefix(cls, v):
        return normalize_prefix(v)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level {v}")
        return v

    @property
    def scheme(self) -> str:
        return "https" if self.ssl else "http"


def parse_port(text: str) -> int:
    """
    Parse a port number given on the command line or in the environment.

    Args:
        text: Port as text; 0x and 0o prefixes are accepted

    Returns:
        int: Port number in the range 1..65534

    Raises:
        ConfigError: If the value is not a usable port
    """
    try:
        port = int(text, 0)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid port number: {text}")
    if not 0 < port < 0xffff:
        raise ConfigError(f"Invalid port number: {text}")
    return port


def random_port() -> int:
    """Pick a random port between 0x400 and 0x7fff."""
    return random.randrange(RANDOM_PORT_MIN, RANDOM_PORT_MIN + RANDOM_PORT_SPAN)


def build_settings(files: List[str], port: Optional[str] = None, **kwargs) -> ServerSettings:
    """
    Build and validate settings.

    Args:
        files: Files to share
        port: Port as text, None to use PSHARE_PORT or a random port
        **kwargs: Remaining ServerSettings fields; None values use the defaults

    Returns:
        ServerSettings: Validated settings

    Raises:
        ConfigError: If any setting is invalid
    """
    if not files:
        raise ConfigError("No files to share")

    if port is None:
        port = DEFAULT_PORT
    values = {
        "files": list(files),
        "port": parse_port(port) if port else random_port(),
        "bind": DEFAULT_BIND,
        "prefix": DEFAULT_PREFIX,
        "ssl_cert": DEFAULT_SSL_CERT,
        "ssl_key": DEFAULT_SSL_KEY,
        "log_level": LOG_LEVEL,
        "metrics_port": parse_port(METRICS_PORT) if METRICS_PORT else None,
    }
    values.update({k: v for k, v in kwargs.items() if v is not None})

    try:
        return ServerSettings(**values)
    except ValidationError as e:
        raise ConfigError(str(e)) from e
