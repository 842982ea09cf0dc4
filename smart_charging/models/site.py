from pydantic import BaseModel, Field
from typing import List, Optional

from smart_charging.models.charging_station import ChargingStation


class Site(BaseModel):
    """Site (zone) de recharge alimenté par un même raccordement"""
    id: str
    name: str = ""
    maximum_power: Optional[float] = Field(None, description="Site connection limit in W")
    voltage: Optional[float] = Field(None, description="Grid voltage in V")
    number_of_phases: Optional[int] = Field(None, description="1 or 3")
    charging_stations: Optional[List[ChargingStation]] = None

    class Config:
        from_attributes = True
