"""Data-only facade over a ``RequestPipeline``."""

from __future__ import annotations

from typing import Any

from .pipeline import RequestPipeline
from .types import RequestOverrides


class ApiService:
    """Thin layer for business code that only cares about response bodies.

    Every call returns ``response.data``; failures propagate unchanged as
    ``ClassifiedError``.
    """

    def __init__(self, pipeline: RequestPipeline) -> None:
        self.pipeline = pipeline

    async def get(self, target: str, overrides: RequestOverrides | None = None) -> Any:
        response = await self.pipeline.get(target, overrides)
        return response.data

    async def post(
        self, target: str, payload: Any = None, overrides: RequestOverrides | None = None
    ) -> Any:
        response = await self.pipeline.post(target, payload, overrides)
        return response.data

    async def put(
        self, target: str, payload: Any = None, overrides: RequestOverrides | None = None
    ) -> Any:
        response = await self.pipeline.put(target, payload, overrides)
        return response.data

    async def patch(
        self, target: str, payload: Any = None, overrides: RequestOverrides | None = None
    ) -> Any:
        response = await self.pipeline.patch(target, payload, overrides)
        return response.data

    async def delete(self, target: str, overrides: RequestOverrides | None = None) -> Any:
        response = await self.pipeline.delete(target, overrides)
        return response.data

    def set_auth_tokens(self, access_token: str | None, refresh_token: str | None = None) -> None:
        self.pipeline.set_auth_tokens(access_token, refresh_token)

    def get_auth_token(self) -> str | None:
        return self.pipeline.get_auth_token()

    def is_error_retryable(self, error: object) -> bool:
        return self.pipeline.is_retryable(error)
