"""Runtime settings read from environment variables."""

from __future__ import annotations

import os

from pydantic import BaseModel

from .core.clients.postman import API_BASE, DEFAULT_TIMEOUT

TRANSPORTS = ("stdio", "sse", "streamable-http")


class Settings(BaseModel):
    api_key: str
    shared_secret: str = ""
    api_base: str = API_BASE
    timeout_seconds: float = DEFAULT_TIMEOUT
    transport: str = "stdio"
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Build Settings from the environment. A missing API key is fatal."""
    api_key = os.environ.get("POSTMAN_API_KEY", "")
    if not api_key:
        raise ValueError("POSTMAN_API_KEY environment variable is required. Generate one at https://postman.co/settings/me/api-keys")

    transport = os.environ.get("MCP_TRANSPORT", "stdio")
    if transport not in TRANSPORTS:
        raise ValueError(f"Invalid MCP_TRANSPORT: {transport}. Use one of {', '.join(TRANSPORTS)}")

    return Settings(
        api_key=api_key,
        shared_secret=os.environ.get("SHARED_SECRET", ""),
        api_base=os.environ.get("POSTMAN_API_BASE", API_BASE),
        timeout_seconds=float(os.environ.get("POSTMAN_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT))),
        transport=transport,
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )
