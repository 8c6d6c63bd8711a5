"""
Tests for the ApiService data-only facade.
"""

import pytest

from tests.fixtures.transport_fixtures import (
    BASE_URL,
    REFRESH_PATH,
    FakeTransport,
    bearer_guard,
    respond,
)
from tokenpipe.client.config import ClientConfig
from tokenpipe.client.pipeline import RequestPipeline
from tokenpipe.client.service import ApiService
from tokenpipe.client.types import RequestOverrides
from tokenpipe.errors.internal import ClassifiedError, ErrorKind


class TestApiService:
    """Test class for ApiService delegation."""

    def setup_method(self):
        self.transport = FakeTransport()
        self.pipeline = RequestPipeline(
            ClientConfig(base_url=BASE_URL, refresh_endpoint=REFRESH_PATH),
            transport=self.transport,
        )
        self.service = ApiService(self.pipeline)

    @pytest.mark.asyncio
    async def test_methods_return_response_data(self):
        for method in ("GET", "POST", "PUT", "PATCH", "DELETE"):
            self.transport.route(method, "/users/1", lambda r, m=method: respond(200, {"method": m}))

        assert await self.service.get("/users/1") == {"method": "GET"}
        assert await self.service.post("/users/1", {"a": 1}) == {"method": "POST"}
        assert await self.service.put("/users/1", {"a": 1}) == {"method": "PUT"}
        assert await self.service.patch("/users/1", {"a": 1}) == {"method": "PATCH"}
        assert await self.service.delete("/users/1") == {"method": "DELETE"}

    @pytest.mark.asyncio
    async def test_overrides_are_forwarded(self):
        self.transport.route("GET", "/users", lambda r: respond(200, []))

        await self.service.get("/users", RequestOverrides(params={"q": "ann"}))

        assert self.transport.calls[0].params == {"q": "ann"}

    @pytest.mark.asyncio
    async def test_token_refresh_is_transparent(self):
        self.transport.route("GET", "/me", bearer_guard("T2", {"name": "ann"}))
        self.transport.route("POST", REFRESH_PATH, lambda r: respond(200, {"access_token": "T2"}))
        self.service.set_auth_tokens("T1", "R1")

        assert await self.service.get("/me") == {"name": "ann"}
        assert self.service.get_auth_token() == "T2"

    @pytest.mark.asyncio
    async def test_failures_propagate(self):
        self.transport.route("GET", "/down", lambda r: respond(502))

        with pytest.raises(ClassifiedError) as exc_info:
            await self.service.get("/down")

        assert exc_info.value.kind is ErrorKind.SERVER_TRANSIENT
        assert self.service.is_error_retryable(exc_info.value)
        assert not self.service.is_error_retryable(ValueError("x"))
