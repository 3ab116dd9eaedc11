"""Shared fixtures: settings without .env, and an eBay double on httpx.MockTransport."""

import json
from typing import Callable

import httpx
import pytest

from compatibility_api.config import Settings
from compatibility_api.services.ebay import EbayMetadataClient

TOKEN = "test-token"


def make_settings(**overrides) -> Settings:
    values = {"EBAY_AUTH_TOKEN": TOKEN}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def record(**props: str) -> dict:
    """Build one upstream compatibility entry from keyword properties."""
    return {
        "compatibilityDetails": [
            {"propertyName": name, "propertyValue": value} for name, value in props.items()
        ]
    }


def filter_value(body: dict, name: str) -> str | None:
    for f in body.get("propertyFilters") or []:
        if f.get("propertyName") == name:
            return f.get("propertyValue")
    return None


class FakeEbay:
    """Records every outbound request and answers through a handler."""

    def __init__(self, handler: Callable[[dict, httpx.Request], httpx.Response]):
        self.handler = handler
        self.requests: list[httpx.Request] = []

    @property
    def bodies(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(json.loads(request.content), request)

    def client(self, settings: Settings) -> EbayMetadataClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(self))
        return EbayMetadataClient(settings, http_client=http)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def empty_ebay() -> FakeEbay:
    return FakeEbay(lambda body, req: httpx.Response(200, json={"compatibilities": []}))
