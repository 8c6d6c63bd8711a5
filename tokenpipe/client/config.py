from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import DEFAULT_CSRF_HEADER, HTTP_TIMEOUT_SECONDS, REFRESH_TIMEOUT_SECONDS

HTTP_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"})


def _default_headers() -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }


class ClientConfig(BaseModel):
    """Configuration of one request pipeline instance.

    Attributes:
        base_url: Prefix for relative request targets.
        timeout: Default per-request timeout in seconds.
        default_headers: Headers sent with every request.
        refresh_endpoint: Target of the access token refresh exchange.
        refresh_method: HTTP method of the refresh exchange.
        refresh_timeout: Timeout of the refresh exchanges in seconds.
        csrf_refresh_endpoint: Target returning a fresh CSRF token. Without
            it 403/419 answers are plain ``AUTH_DENIED`` failures.
        csrf_refresh_method: HTTP method of the CSRF exchange.
        csrf_header_name: Header carrying the CSRF token on requests (and,
            as a fallback, on the CSRF exchange response).
        csrf_token_field: Body field holding the token in the CSRF response.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    base_url: str | None = None
    timeout: float = Field(default=HTTP_TIMEOUT_SECONDS, gt=0)
    default_headers: dict[str, str] = Field(default_factory=_default_headers)
    refresh_endpoint: str | None = None
    refresh_method: str = "POST"
    refresh_timeout: float = Field(default=REFRESH_TIMEOUT_SECONDS, gt=0)
    csrf_refresh_endpoint: str | None = None
    csrf_refresh_method: str = "GET"
    csrf_header_name: str = Field(default=DEFAULT_CSRF_HEADER, min_length=1)
    csrf_token_field: str = Field(default="csrf_token", min_length=1)

    @field_validator("base_url", "refresh_endpoint", "csrf_refresh_endpoint", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Treat empty / whitespace-only strings as "not configured"."""
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str | None) -> str | None:
        return v.rstrip("/") if v else v

    @field_validator("refresh_method", "csrf_refresh_method", mode="before")
    @classmethod
    def normalize_method(cls, v: Any) -> str:
        if not isinstance(v, str):
            raise ValueError("method must be a string")
        method = v.strip().upper()
        if method not in HTTP_METHODS:
            raise ValueError(f"unsupported HTTP method: {v}")
        return method

    @property
    def csrf_refresh_configured(self) -> bool:
        return self.csrf_refresh_endpoint is not None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> ClientConfig:
        """Build a config from environment variables.

        Reads ``API_BASE_URL``, ``HTTP_TIMEOUT`` (milliseconds),
        ``TOKENPIPE_REFRESH_ENDPOINT`` and ``TOKENPIPE_CSRF_ENDPOINT``.
        Keyword overrides win over the environment.
        """
        env = os.environ if environ is None else environ
        data: dict[str, Any] = {}
        if env.get("API_BASE_URL"):
            data["base_url"] = env["API_BASE_URL"]
        if env.get("HTTP_TIMEOUT"):
            try:
                data["timeout"] = int(env["HTTP_TIMEOUT"]) / 1000
            except ValueError:
                print(
                    f"Warning: Invalid integer value for HTTP_TIMEOUT='{env['HTTP_TIMEOUT']}', using default"
                )
        if env.get("TOKENPIPE_REFRESH_ENDPOINT"):
            data["refresh_endpoint"] = env["TOKENPIPE_REFRESH_ENDPOINT"]
        if env.get("TOKENPIPE_CSRF_ENDPOINT"):
            data["csrf_refresh_endpoint"] = env["TOKENPIPE_CSRF_ENDPOINT"]
        data.update(overrides)
        return cls(**data)
