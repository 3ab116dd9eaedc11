"""FastAPI dependency injection and request helpers."""

import asyncio
from collections.abc import Awaitable
from typing import Any, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError

from compatibility_api.config import Settings
from compatibility_api.logging import logger
from compatibility_api.services.ebay import EbayMetadataClient

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

DISCONNECT_POLL_SECONDS = 0.25


class InvalidBodyError(ValueError):
    """The request body is not JSON or does not match the expected schema."""


class ClientDisconnectedError(Exception):
    """The caller went away before the upstream calls finished."""


async def get_app_settings(request: Request) -> Settings:
    """Dependency for the settings the app was created with."""
    return request.app.state.settings


async def get_ebay_client(request: Request) -> EbayMetadataClient:
    """Dependency for the shared eBay client created in the app lifespan."""
    return request.app.state.ebay_client


async def parse_body(request: Request, model: type[M]) -> M:
    """Read and validate the JSON body.

    Handlers call this after the credential check so that a missing token
    wins over a malformed body.
    """
    try:
        payload: Any = await request.json()
    except ValueError as e:
        raise InvalidBodyError("Request body must be valid JSON") from e
    if not isinstance(payload, dict):
        raise InvalidBodyError("Request body must be a JSON object")
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) or "body" for err in e.errors())
        raise InvalidBodyError(f"Invalid or missing field(s): {fields}") from e


async def run_until_disconnected(request: Request, work: Awaitable[T]) -> T:
    """Await ``work`` but cancel it if the inbound client disconnects first."""
    task = asyncio.ensure_future(work)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL_SECONDS)
            if done:
                return task.result()
            if await request.is_disconnected():
                logger.warning(f"Client disconnected, cancelling upstream calls for {request.url.path}")
                task.cancel()
                raise ClientDisconnectedError(request.url.path)
    finally:
        if not task.done():
            task.cancel()
