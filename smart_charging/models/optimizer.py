from pydantic import BaseModel, Field
from typing import List, Literal, Union


# Requête vers l'optimiseur

class OptimizerChargingStationFuse(BaseModel):
    """Feuille de l'arbre : un connecteur (une "charging station" pour l'optimiseur)"""
    type_: Literal["ChargingStation"] = Field("ChargingStation", alias="@type")
    id: int
    fusePhase1: float
    fusePhase2: float
    fusePhase3: float
    phase1Connected: bool = True
    phase2Connected: bool = False
    phase3Connected: bool = False

    class Config:
        populate_by_name = True


class OptimizerFuse(BaseModel):
    """Noeud interne de l'arbre (site ou borne)"""
    type_: Literal["Fuse"] = Field("Fuse", alias="@type")
    id: int
    fusePhase1: float
    fusePhase2: float
    fusePhase3: float
    phase1Connected: bool = True
    phase2Connected: bool = False
    phase3Connected: bool = False
    children: List[Union["OptimizerFuse", OptimizerChargingStationFuse]] = []

    class Config:
        populate_by_name = True


OptimizerFuse.model_rebuild()


class OptimizerFuseTree(BaseModel):
    rootFuse: OptimizerFuse


class OptimizerCar(BaseModel):
    id: int
    name: str = Field(..., description="chargingStationID~connectorID")
    carType: str = "BEV"
    canLoadPhase1: int = 1
    canLoadPhase2: int = 1
    canLoadPhase3: int = 1
    timestampArrival: int = Field(0, description="Seconds since local midnight")
    maxCapacity: float = Field(..., description="Battery capacity in Ah")
    minLoadingState: float = Field(..., description="Target battery level in Ah")
    startCapacity: float = Field(..., description="Energy already charged in Ah")
    minCurrent: float
    minCurrentPerPhase: float
    maxCurrent: float
    maxCurrentPerPhase: float
    suspendable: bool = True
    immediateStart: bool = False
    canUseVariablePower: bool = True


class OptimizerCarConnectorAssignment(BaseModel):
    carID: int
    chargingStationID: int = Field(..., description="ID of the connector leaf in the fuse tree")


class OptimizerEvent(BaseModel):
    eventType: str = "Reoptimize"


class OptimizerState(BaseModel):
    fuseTree: OptimizerFuseTree
    cars: List[OptimizerCar] = []
    carAssignments: List[OptimizerCarConnectorAssignment] = []
    currentTimeSeconds: int = 0


class OptimizerRequest(BaseModel):
    event: OptimizerEvent = OptimizerEvent()
    state: OptimizerState

    def to_payload(self) -> dict:
        """Sérialiser au format JSON attendu par l'optimiseur"""
        return self.model_dump(mode="json", by_alias=True)


# Réponse de l'optimiseur

class OptimizerCarResult(BaseModel):
    name: str
    currentPlan: List[float] = Field(..., description="Current per phase for each 15 min slot since midnight")


class OptimizerResult(BaseModel):
    cars: List[OptimizerCarResult] = []
