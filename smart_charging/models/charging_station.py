from pydantic import BaseModel, Field
from typing import List, Optional
from enum import Enum


class ChargePointStatus(str, Enum):
    """Statuts OCPP d'un connecteur"""
    AVAILABLE = "Available"
    PREPARING = "Preparing"
    CHARGING = "Charging"
    OCCUPIED = "Occupied"
    SUSPENDED_EVSE = "SuspendedEVSE"
    SUSPENDED_EV = "SuspendedEV"
    FINISHING = "Finishing"
    RESERVED = "Reserved"
    UNAVAILABLE = "Unavailable"
    FAULTED = "Faulted"


class CurrentType(str, Enum):
    AC = "AC"
    DC = "DC"


class Connector(BaseModel):
    connector_id: int = Field(..., description="Numéro du connecteur (1, 2, etc.)")
    status: ChargePointStatus = ChargePointStatus.AVAILABLE
    current_type: Optional[CurrentType] = None
    amperage: Optional[float] = Field(None, description="Total amperage, used when no charge point is attached")
    number_of_connected_phase: Optional[int] = None
    charge_point_id: Optional[int] = None
    current_transaction_id: Optional[int] = None

    class Config:
        from_attributes = True


class ChargePoint(BaseModel):
    """Unité de puissance pouvant desservir plusieurs connecteurs"""
    charge_point_id: int
    connector_ids: List[int] = []
    current_type: Optional[CurrentType] = None
    amperage: Optional[float] = Field(None, description="Total amperage of the charge point in A")
    number_of_connected_phase: Optional[int] = None
    voltage: Optional[float] = None
    efficiency: Optional[float] = Field(None, description="AC/DC conversion efficiency in %")
    share_power_to_all_connectors: bool = False
    cannot_charge_in_parallel: bool = False
    exclude_from_power_limitation: bool = False

    class Config:
        from_attributes = True


class ChargingStation(BaseModel):
    id: str = Field(..., description="ID de la borne (charge box ID)")
    site_id: Optional[str] = None
    maximum_power: float = Field(0.0, description="Max power of the whole station in W")
    voltage: Optional[float] = None
    current_type: Optional[CurrentType] = None
    exclude_from_smart_charging: bool = False
    connectors: List[Connector] = []
    charge_points: List[ChargePoint] = []

    class Config:
        from_attributes = True
