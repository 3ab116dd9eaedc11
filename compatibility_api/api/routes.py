"""FastAPI route definitions for the compatibility proxy."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import HTMLResponse

from compatibility_api.api.deps import (
    ClientDisconnectedError,
    InvalidBodyError,
    get_app_settings,
    get_ebay_client,
    parse_body,
    run_until_disconnected,
)
from compatibility_api.config import Settings
from compatibility_api.logging import log_error, logger
from compatibility_api.models.compatibility import (
    CompatibilityRequest,
    MakesRequest,
    ModelsRequest,
    PropertyFilter,
)
from compatibility_api.services.ebay import EbayMetadataClient, UpstreamError
from compatibility_api.services.normalizer import LookupMode, normalize
from compatibility_api.services.renderer import (
    error_fragment,
    merge_outcomes,
    render_table,
)

router = APIRouter()

SettingsDep = Annotated[Settings, Depends(get_app_settings)]
EbayDep = Annotated[EbayMetadataClient, Depends(get_ebay_client)]

AUTH_ERROR = "Authentication Error: Server is missing required eBay credentials."
UPSTREAM_ERROR = "Failed to retrieve data from the eBay API. Please try again later."

# Status logged when the caller hangs up (nginx convention, never actually sent)
CLIENT_CLOSED_REQUEST = 499


def _credential_missing(settings: Settings) -> bool:
    if settings.credential_configured:
        return False
    log_error("eBay token is not configured in environment variables")
    return True


# ---------------------------------------------------------------------------
# Compatibility table (HTML)
# ---------------------------------------------------------------------------


@router.post("/get-compatibilities", response_class=HTMLResponse)
async def get_compatibilities(request: Request, settings: SettingsDep, ebay: EbayDep):
    """Proxy a compatibility lookup to eBay and return an HTML table fragment.

    Several values for the fan-out property (``Year``) issue one upstream
    call per value; the results are concatenated in the order the values
    were given.
    """
    if _credential_missing(settings):
        return HTMLResponse(error_fragment(AUTH_ERROR), status_code=401)

    try:
        body = await parse_body(request, CompatibilityRequest)
    except InvalidBodyError as e:
        return HTMLResponse(error_fragment(str(e)), status_code=400)

    plan = normalize(
        body.propertyFilters,
        body.propertyNames,
        body.categoryId,
        default_category_id=settings.default_category_id,
        fan_out_property=settings.fan_out_property,
    )
    if plan.mode is LookupMode.FAN_OUT:
        logger.info(
            f"Fanning out {len(plan.fan_out_values)} lookups on {plan.fan_out_property}"
        )

    try:
        outcomes = await run_until_disconnected(request, ebay.get_compatibilities(plan))
        merged = merge_outcomes(outcomes)
    except ClientDisconnectedError:
        return Response(status_code=CLIENT_CLOSED_REQUEST)
    except UpstreamError as e:
        log_error("All upstream lookups failed", branches=len(plan.branches()), reason=e)
        return HTMLResponse(error_fragment(UPSTREAM_ERROR), status_code=502)

    headers = {}
    if merged.failed_branches:
        logger.warning(
            f"Dropped {merged.failed_branches} of {len(outcomes)} failed upstream branches"
        )
        headers["X-Upstream-Failed-Branches"] = str(merged.failed_branches)

    return HTMLResponse(
        render_table(merged, plan.group, settings.columns),
        headers=headers,
    )


# ---------------------------------------------------------------------------
# Makes / Models (JSON)
# ---------------------------------------------------------------------------


async def _property_values(
    request: Request,
    ebay: EbayMetadataClient,
    property_name: str,
    filters: list[PropertyFilter],
) -> list:
    try:
        return await run_until_disconnected(
            request, ebay.get_property_values(property_name, filters)
        )
    except UpstreamError as e:
        log_error("Property value lookup failed", property=property_name, reason=e)
        raise HTTPException(status_code=502, detail=UPSTREAM_ERROR)
    except ClientDisconnectedError:
        raise HTTPException(status_code=CLIENT_CLOSED_REQUEST, detail="Client closed request")


@router.post("/get-makes")
async def get_makes(request: Request, settings: SettingsDep, ebay: EbayDep):
    """List eBay makes for a year."""
    if _credential_missing(settings):
        raise HTTPException(status_code=401, detail=AUTH_ERROR)
    try:
        body = await parse_body(request, MakesRequest)
    except InvalidBodyError as e:
        raise HTTPException(status_code=400, detail=str(e))

    makes = await _property_values(
        request,
        ebay,
        "Make",
        [PropertyFilter(propertyName="Year", propertyValue=body.year)],
    )
    return {"makes": makes}


@router.post("/get-models")
async def get_models(request: Request, settings: SettingsDep, ebay: EbayDep):
    """List eBay models for a year and make."""
    if _credential_missing(settings):
        raise HTTPException(status_code=401, detail=AUTH_ERROR)
    try:
        body = await parse_body(request, ModelsRequest)
    except InvalidBodyError as e:
        raise HTTPException(status_code=400, detail=str(e))

    models = await _property_values(
        request,
        ebay,
        "Model",
        [
            PropertyFilter(propertyName="Year", propertyValue=body.year),
            PropertyFilter(propertyName="Make", propertyValue=body.make),
        ],
    )
    return {"models": models}
