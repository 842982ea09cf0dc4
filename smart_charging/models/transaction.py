from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class PhasesUsed(BaseModel):
    """Phases réellement utilisées, remontées par les meter values"""
    cs_phase1: bool = False
    cs_phase2: bool = False
    cs_phase3: bool = False

    def count(self) -> int:
        return sum(1 for used in (self.cs_phase1, self.cs_phase2, self.cs_phase3) if used)


class Transaction(BaseModel):
    id: int
    charging_station_id: str
    connector_id: int
    timestamp: datetime = Field(..., description="Start of the transaction")

    # Mesures
    current_total_consumption_wh: float = 0.0
    current_instant_amps: float = 0.0
    current_instant_watts_dc: float = 0.0
    phases_used: Optional[PhasesUsed] = None

    car_id: Optional[str] = None

    class Config:
        from_attributes = True
