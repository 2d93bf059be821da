"""Helpers shared by the HTTP adapters that talk to the storefront backend.

Backend error bodies come in two shapes:

- ``{"message": "..."}`` from the order, cart and payment controllers
- ``{"error": {"message": "..."}}`` from the gateway's REST API
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx


def extract_error_message(response: httpx.Response) -> str:
    """Pull a human-readable message out of an error response.

    Falls back to the raw text, truncated, when the body is not JSON.
    """
    try:
        body = response.json()
    except ValueError:
        text = response.text or ""
        return text[:300] or f"Request failed with status {response.status_code}"

    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message:
            return message
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error

    return f"Request failed with status {response.status_code}"
