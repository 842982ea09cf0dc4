from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from enum import Enum


class ChargingProfileKindType(str, Enum):
    ABSOLUTE = "Absolute"
    RECURRING = "Recurring"
    RELATIVE = "Relative"


class ChargingProfilePurposeType(str, Enum):
    CHARGE_POINT_MAX_PROFILE = "ChargePointMaxProfile"
    TX_DEFAULT_PROFILE = "TxDefaultProfile"
    TX_PROFILE = "TxProfile"


class ChargingRateUnitType(str, Enum):
    WATT = "W"
    AMPERE = "A"


# Niveau de la pile OCPP réservé au smart charging
SMART_CHARGING_STACK_LEVEL = 2


class ChargingSchedulePeriod(BaseModel):
    startPeriod: int = Field(..., description="Offset from startSchedule in seconds")
    limit: float = Field(..., description="Current limit in A")
    numberPhases: Optional[int] = None


class ChargingSchedule(BaseModel):
    startSchedule: datetime
    duration: int = Field(..., description="Total duration in seconds")
    chargingRateUnit: ChargingRateUnitType = ChargingRateUnitType.AMPERE
    chargingSchedulePeriod: List[ChargingSchedulePeriod] = []


class Profile(BaseModel):
    chargingProfileId: int
    chargingProfileKind: ChargingProfileKindType = ChargingProfileKindType.ABSOLUTE
    chargingProfilePurpose: ChargingProfilePurposeType = ChargingProfilePurposeType.TX_PROFILE
    transactionId: Optional[int] = None
    stackLevel: int = SMART_CHARGING_STACK_LEVEL
    chargingSchedule: ChargingSchedule


class ChargingProfile(BaseModel):
    """Profil de charge OCPP pour un connecteur"""
    charging_station_id: str = Field(..., alias="chargingStationID")
    connector_id: int = Field(..., alias="connectorID")
    charge_point_id: Optional[int] = Field(None, alias="chargePointID")
    profile: Profile

    class Config:
        from_attributes = True
        populate_by_name = True
