from __future__ import annotations

import os
from dataclasses import dataclass

from cd_mcp.application.connection_service import DEFAULT_PRICE_TIMEOUT
from cd_mcp.infrastructure.cd_client import BASE_URL, DEFAULT_TIMEOUT

DEFAULT_SEARCH_TIMEOUT = 30.0  # seconds, whole search_connections call


@dataclass(frozen=True)
class Settings:
    """Process configuration, read once from the environment at startup."""

    host: str = "0.0.0.0"
    port: int = 3001
    log_level: str = "INFO"
    api_base_url: str = BASE_URL
    http_timeout: float = DEFAULT_TIMEOUT
    search_timeout: float = DEFAULT_SEARCH_TIMEOUT
    price_timeout: float = DEFAULT_PRICE_TIMEOUT

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            host=os.environ.get("HOST", "0.0.0.0"),
            port=int(os.environ.get("PORT", "3001")),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            api_base_url=os.environ.get("CD_API_BASE_URL", BASE_URL),
            http_timeout=float(os.environ.get("CD_HTTP_TIMEOUT", DEFAULT_TIMEOUT)),
            search_timeout=float(os.environ.get("CD_SEARCH_TIMEOUT", DEFAULT_SEARCH_TIMEOUT)),
            price_timeout=float(os.environ.get("CD_PRICE_TIMEOUT", DEFAULT_PRICE_TIMEOUT)),
        )
