"""aiohttp-backed transport.

Maps aiohttp outcomes onto the transport contract: 2xx answers become
``TransportResponse``; non-2xx answers, timeouts and connection failures raise
``TransportError``.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import aiohttp

from ..constants import HTTP_TIMEOUT_SECONDS
from ..errors.internal import TransportError
from .base import NETWORK_CODE, TIMEOUT_CODE, TransportRequest, TransportResponse

APPLICATION_JSON = "application/json"
TEXTUAL_TYPES = frozenset(
    {APPLICATION_JSON, "application/xml", "application/x-www-form-urlencoded", "application/javascript"}
)


def _is_textual(content_type: str) -> bool:
    # A missing Content-Type is decoded optimistically
    return (
        not content_type
        or content_type.startswith("text/")
        or content_type in TEXTUAL_TYPES
        or content_type.endswith(("+json", "+xml"))
    )


class AiohttpTransport:
    """Execute requests with an ``aiohttp.ClientSession``.

    A session passed in is borrowed and never closed here. Without one, a
    session is created lazily on first use (inside the running loop) and
    closed by ``close()``.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession | None = None,
        *,
        default_timeout: float = HTTP_TIMEOUT_SECONDS,
    ) -> None:
        self._session = session
        self._owns_session = session is None
        self.default_timeout = default_timeout

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            if not self._owns_session:
                raise RuntimeError("Borrowed aiohttp session is closed")
            self._session = aiohttp.ClientSession()
            logging.debug("🌐 Created aiohttp session for transport")
        return self._session

    async def execute(self, request: TransportRequest) -> TransportResponse:
        """Execute ``request`` and return the decoded response.

        Raises:
            TransportError: On non-2xx status (``response`` set), timeout
                (``code=ECONNABORTED``) or connection failure (``code=ERR_NETWORK``).
        """
        session = self._get_session()
        timeout = aiohttp.ClientTimeout(total=request.timeout or self.default_timeout)
        kwargs: dict[str, Any] = {
            "headers": dict(request.headers),
            "timeout": timeout,
        }
        if request.params:
            kwargs["params"] = dict(request.params)
        if request.body is not None:
            kwargs["json"] = request.body
        try:
            async with session.request(request.method, request.url, **kwargs) as resp:
                data = await self._read_body(resp)
                response = TransportResponse(
                    status=resp.status,
                    data=data,
                    headers=dict(resp.headers),
                    status_text=resp.reason or "",
                )
        except TimeoutError as e:
            logging.debug(f"⏱️ Request timeout {request.method} {request.url}")
            raise TransportError(
                "Request timeout", code=TIMEOUT_CODE, cause=e
            ) from e
        except aiohttp.ClientError as e:
            logging.debug(
                f"💥 Network error {request.method} {request.url} type={type(e).__name__}"
            )
            raise TransportError(
                f"Network error: {e}", code=NETWORK_CODE, cause=e
            ) from e

        logging.debug(
            f"HTTP response: status={response.status} method={request.method} url={request.url}"
        )
        if not response.ok:
            raise TransportError(
                f"Request failed with status code {response.status}", response=response
            )
        return response

    @staticmethod
    async def _read_body(resp: aiohttp.ClientResponse) -> Any:
        """Decode the response body.

        JSON is parsed, textual types are returned as ``str`` and anything
        else, including text that fails to decode, as the raw ``bytes``.
        """
        if resp.status == 204:
            # 204 No Content has no body, so don't try to parse JSON
            return None
        raw = await resp.read()
        if not raw:
            return None
        content_type = resp.headers.get("Content-Type", "").split(";", 1)[0].strip().lower()
        if not _is_textual(content_type):
            return raw
        try:
            text = raw.decode(resp.charset or "utf-8")
        except (UnicodeDecodeError, LookupError):
            logging.debug(f"Undecodable {content_type} body ({len(raw)} bytes), keeping bytes")
            return raw
        if content_type == APPLICATION_JSON or content_type.endswith("+json"):
            try:
                return json.loads(text)
            except ValueError:
                return text
        return text

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None if self._owns_session else self._session

    async def __aenter__(self) -> AiohttpTransport:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
