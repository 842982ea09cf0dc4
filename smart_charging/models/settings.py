from pydantic import BaseModel, Field
from typing import Optional


class OptimizerSettings(BaseModel):
    """Configuration du service d'optimisation externe"""
    optimizerUrl: Optional[str] = Field(None, description="Optimizer endpoint (https://...)")
    user: Optional[str] = None
    password: Optional[str] = None
    timeoutSeconds: float = Field(30.0, description="HTTP timeout of the optimizer call in seconds")

    stickyLimitation: bool = Field(True, description="Do not re-grant capacity a car is not using")
    limitBufferAC: float = Field(0.0, ge=0, description="Buffer added to AC consumption in %")
    limitBufferDC: float = Field(0.0, ge=0, description="Buffer added to DC consumption in %")

    dcDefaultEfficiencyPercent: float = Field(80.0, gt=0, le=100,
                                              description="AC/DC efficiency used when the charge point has none")
    minCurrentPerPhase: float = Field(6.0, ge=0, description="Minimum charging current per phase in A")
    defaultScheduleMaxPeriods: int = Field(20, ge=1,
                                           description="Max schedule periods when the station does not report it")
