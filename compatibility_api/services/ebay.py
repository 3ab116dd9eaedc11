"""Async client for the eBay Sell Metadata compatibility endpoints.

Authentication is a static bearer token plus the marketplace header.
Nothing is retried: every failure is logged and surfaced as UpstreamError.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from compatibility_api.config import Settings
from compatibility_api.logging import log_external_call, log_upstream_failure
from compatibility_api.models.compatibility import (
    CompatibilityRecord,
    MultiCompatibilityResponse,
    PropertyFilter,
    PropertyValuesResponse,
)
from compatibility_api.services.normalizer import LookupPlan


class MissingCredentialError(Exception):
    """The server has no eBay bearer token configured."""


class UpstreamError(Exception):
    """Non-2xx answer, network failure, timeout or unreadable body from eBay."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        body: Any = None,
    ) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)


@dataclass
class UpstreamRequest:
    url: str
    headers: dict[str, str]
    json: dict[str, Any]
    method: str = "POST"


@dataclass
class BranchOutcome:
    """Settled result of one upstream call: records on success, error otherwise."""

    filters: list[PropertyFilter]
    records: list[CompatibilityRecord] = field(default_factory=list)
    error: Optional[UpstreamError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class EbayMetadataClient:
    """Async client for the eBay compatibility metadata API."""

    def __init__(
        self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None
    ) -> None:
        self.settings = settings
        self.client = http_client or httpx.AsyncClient(timeout=settings.request_timeout)

    def headers(self) -> dict[str, str]:
        if not self.settings.credential_configured:
            raise MissingCredentialError("eBay token is not configured")
        return {
            "Authorization": f"Bearer {self.settings.ebay_auth_token}",
            "Accept": "application/json",
            "Content-Type": "application/json",
            "X-EBAY-C-MARKETPLACE-ID": self.settings.ebay_marketplace_id,
        }

    # ------------------------------------------------------------------
    # Request descriptors
    # ------------------------------------------------------------------

    def build_compatibility_requests(self, plan: LookupPlan) -> list[UpstreamRequest]:
        """One request per plan branch, in issue order."""
        headers = self.headers()
        return [
            UpstreamRequest(
                url=self.settings.multi_compatibility_url,
                headers=headers,
                json={
                    "categoryId": plan.category_id,
                    "propertyFilters": [f.to_upstream() for f in branch],
                    "propertyNames": plan.property_names,
                },
            )
            for branch in plan.branches()
        ]

    def build_property_values_request(
        self,
        property_name: str,
        filters: list[PropertyFilter],
        category_id: Optional[str] = None,
    ) -> UpstreamRequest:
        return UpstreamRequest(
            url=self.settings.property_values_url,
            headers=self.headers(),
            json={
                "categoryId": category_id or self.settings.default_category_id,
                "propertyFilters": [f.to_upstream() for f in filters],
                "propertyName": property_name,
            },
        )

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    async def send(self, request: UpstreamRequest, operation: str) -> dict[str, Any]:
        """Issue one request and return the decoded JSON object."""
        start = time.time()
        try:
            resp = await self.client.request(
                request.method, request.url, headers=request.headers, json=request.json
            )
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            body = _response_body(e.response)
            log_upstream_failure(operation, status_code=e.response.status_code, body=body)
            log_external_call("ebay", operation, False, (time.time() - start) * 1000)
            raise UpstreamError(
                f"eBay returned {e.response.status_code}",
                status_code=e.response.status_code,
                body=body,
            ) from e
        except httpx.HTTPError as e:
            log_upstream_failure(operation, message=str(e) or type(e).__name__)
            log_external_call("ebay", operation, False, (time.time() - start) * 1000)
            raise UpstreamError(f"eBay request failed: {e}") from e
        except ValueError as e:
            log_upstream_failure(operation, message=f"invalid JSON: {e}")
            raise UpstreamError("eBay returned an invalid JSON body") from e

        if not isinstance(data, dict):
            log_upstream_failure(operation, message="response body is not a JSON object")
            raise UpstreamError("eBay returned an unexpected body")

        log_external_call("ebay", operation, True, (time.time() - start) * 1000)
        return data

    async def _fetch_branch(
        self, request: UpstreamRequest, filters: list[PropertyFilter]
    ) -> BranchOutcome:
        data = await self.send(request, "get_multi_compatibility_property_values")
        try:
            parsed = MultiCompatibilityResponse.model_validate(data)
        except ValidationError as e:
            log_upstream_failure("get_multi_compatibility_property_values", message=str(e))
            raise UpstreamError("eBay returned malformed compatibilities") from e
        return BranchOutcome(filters=filters, records=parsed.compatibilities)

    async def get_compatibilities(self, plan: LookupPlan) -> list[BranchOutcome]:
        """Run every branch of the plan concurrently and wait for all to settle.

        Outcomes come back in issue order. A failing branch never cancels its
        siblings; it is returned with ``error`` set.
        """
        requests = self.build_compatibility_requests(plan)
        branches = plan.branches()
        results = await asyncio.gather(
            *(self._fetch_branch(req, flt) for req, flt in zip(requests, branches)),
            return_exceptions=True,
        )

        outcomes: list[BranchOutcome] = []
        for filters, result in zip(branches, results):
            if isinstance(result, UpstreamError):
                outcomes.append(BranchOutcome(filters=filters, error=result))
            elif isinstance(result, BaseException):
                raise result
            else:
                outcomes.append(result)
        return outcomes

    async def get_property_values(
        self,
        property_name: str,
        filters: list[PropertyFilter],
        category_id: Optional[str] = None,
    ) -> list[Any]:
        """Enumerate the values of one property, e.g. every Make for a Year."""
        request = self.build_property_values_request(property_name, filters, category_id)
        data = await self.send(request, f"get_compatibility_property_values:{property_name}")
        try:
            return PropertyValuesResponse.model_validate(data).propertyValues
        except ValidationError as e:
            log_upstream_failure("get_compatibility_property_values", message=str(e))
            raise UpstreamError("eBay returned malformed property values") from e

    async def close(self) -> None:
        await self.client.aclose()


def _response_body(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text
