#!/usr/bin/env python3
"""Czech Railways MCP Server — repository root entry point.

Usage:
    uv run server.py           # HTTP mode (default)
    uv run server.py --stdio   # stdio mode for Claude Desktop
"""
from __future__ import annotations

import logging
import sys

import uvicorn
from starlette.middleware.cors import CORSMiddleware

from cd_mcp.mcp import create_mcp_app
from cd_mcp.settings import Settings

settings = Settings.from_env()

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    # stdout carries the protocol in stdio mode
    stream=sys.stderr,
)

if __name__ == "__main__":
    mcp = create_mcp_app(settings)
    if "--stdio" in sys.argv:
        # Claude Desktop mode
        mcp.run(transport="stdio")
    else:
        # HTTP mode with CORS
        app = mcp.streamable_http_app()
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )
        logging.getLogger(__name__).info(
            "Czech Railways MCP Server listening on http://%s:%s/mcp", settings.host, settings.port
        )
        uvicorn.run(app, host=settings.host, port=settings.port)
