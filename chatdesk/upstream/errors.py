from __future__ import annotations

from typing import Any, Mapping

import httpx


class UpstreamError(RuntimeError):
    """Failure talking to an upstream API (network error, timeout or HTTP >= 400)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        payload: Any = None,
        timeout: bool = False,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload
        self.timeout = timeout

    def __str__(self) -> str:
        prefix = f"[{self.status_code}] " if self.status_code is not None else ""
        return f"{prefix}{super().__str__()}"

    @property
    def message(self) -> str:
        return super().__str__()

    def details(self) -> Any:
        """Upstream diagnostic payload, falling back to the message."""

        return self.payload if self.payload not in (None, "", {}) else self.message


def decode_payload(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def extract_error_message(payload: Any, default: str) -> str:
    if isinstance(payload, Mapping):
        for key in ("error", "description", "message", "detail"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, Mapping):
                nested = value.get("message") or value.get("title")
                if isinstance(nested, str) and nested:
                    return nested
    if isinstance(payload, str) and payload:
        return payload
    return default
