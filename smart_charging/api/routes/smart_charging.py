from fastapi import APIRouter, Depends, HTTPException
from smart_charging.api.dependencies import get_smart_charging, get_storage
from smart_charging.core.exceptions import (
    ConfigurationError, NotFoundError, SmartChargingError, UpstreamError, ValidationError
)
from smart_charging.database.repositories import SqlSmartChargingStorage
from smart_charging.models.api import SmartChargingRun, SmartChargingRunResponse
from smart_charging.models.settings import OptimizerSettings
from smart_charging.services.smart_charging import SmartChargingProvider
from typing import Optional
import logging

router = APIRouter(tags=["Smart Charging"])
logger = logging.getLogger(__name__)


ERROR_STATUS_CODES = {
    NotFoundError: 404,
    ValidationError: 422,
    UpstreamError: 502,
    ConfigurationError: 500,
}


def to_http_exception(error: SmartChargingError) -> HTTPException:
    return HTTPException(
        status_code=ERROR_STATUS_CODES.get(type(error), 500),
        detail={"error": str(error), "type": type(error).__name__}
    )


@router.post("/sites/{site_id}/smart-charging", response_model=SmartChargingRunResponse)
async def run_smart_charging(
        site_id: str,
        request: Optional[SmartChargingRun] = None,
        service: SmartChargingProvider[OptimizerSettings] = Depends(get_smart_charging),
        storage: SqlSmartChargingStorage = Depends(get_storage)
):
    """
    POST /sites/{site_id}/smart-charging
    Build the charging profiles of the site and store them
    """
    try:
        charging_profiles = await service.build_charging_profiles(
            site_id, excluded_charging_stations=request.excludedChargingStations if request else None)
        await storage.save_charging_profiles(charging_profiles)
    except SmartChargingError as e:
        logger.error(f"Smart charging failed for site {site_id}: {e}", exc_info=True)
        raise to_http_exception(e)

    logger.info(f"Site {site_id}: {len(charging_profiles)} charging profiles built")
    return SmartChargingRunResponse(siteId=site_id, chargingProfiles=charging_profiles)


@router.post("/smart-charging/check-connection")
async def check_connection(
        service: SmartChargingProvider[OptimizerSettings] = Depends(get_smart_charging)
):
    """
    POST /smart-charging/check-connection
    Send a request for an empty dummy site to the optimizer
    """
    try:
        await service.check_connection()
    except SmartChargingError as e:
        logger.error(f"Optimizer connection check failed: {e}", exc_info=True)
        raise to_http_exception(e)
    return {"status": "ok"}


@router.get("/sites/{site_id}/charging-profiles")
async def get_charging_profiles(
        site_id: str,
        storage: SqlSmartChargingStorage = Depends(get_storage)
):
    """
    GET /sites/{site_id}/charging-profiles
    Charging profiles currently stored for the stations of the site
    """
    site = await storage.get_site(site_id)
    if not site:
        raise HTTPException(status_code=404, detail=f"Site {site_id} not found")
    charging_profiles = await storage.get_site_charging_profiles(site_id)
    return {
        "siteId": site_id,
        "count": len(charging_profiles),
        "chargingProfiles": [p.model_dump(mode="json", by_alias=True) for p in charging_profiles]
    }
