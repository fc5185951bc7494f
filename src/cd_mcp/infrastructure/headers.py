from __future__ import annotations

from typing import Any

# Client identity the ČD mobile API expects in every request body
APP_ID = "{A6AB5B3E-8A7E-4E84-9DC8-801561CE886F}"
USER_DESC = "294|34|MCP-Client|^|mcp-cd-server|en|US|440|1080|2154|1.0.0"
LANG_EN = 1

_USER_AGENT = "okhttp/4.9.3"


def make_headers() -> dict[str, str]:
    """Return the headers of the Android app's HTTP stack, which the API expects."""
    return {
        "Accept": "application/json",
        "Content-Type": "application/json",
        "User-Agent": _USER_AGENT,
    }


def client_identity() -> dict[str, Any]:
    """Return the language and app-identity fields shared by every request body."""
    return {"iLang": LANG_EN, "sAppID": APP_ID, "sUserDesc": USER_DESC}
