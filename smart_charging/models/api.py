from pydantic import BaseModel, Field
from typing import List

from smart_charging.models.charging_profile import ChargingProfile


class SmartChargingRun(BaseModel):
    excludedChargingStations: List[str] = Field(
        default_factory=list, description="Charging stations to leave out of this cycle only")


class SmartChargingRunResponse(BaseModel):
    siteId: str
    chargingProfiles: List[ChargingProfile] = []
