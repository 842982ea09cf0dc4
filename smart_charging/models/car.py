from pydantic import BaseModel, Field
from typing import Literal, Optional, Union


class CarConverter(BaseModel):
    """Chargeur embarqué (AC) du véhicule"""
    amperage_per_phase: Optional[float] = None
    number_of_phases: Optional[int] = None

    class Config:
        from_attributes = True


class CarCatalog(BaseModel):
    """Caractéristiques constructeur du modèle de véhicule"""
    id: Optional[int] = None
    vehicle_make: Optional[str] = None
    vehicle_model: Optional[str] = None
    fast_charge_power_max: Optional[float] = Field(None, description="DC fast charge power in kW")
    battery_capacity_full: Optional[float] = Field(None, description="Battery capacity in kWh")

    class Config:
        from_attributes = True


class Car(BaseModel):
    id: str
    converter: Optional[CarConverter] = None
    car_catalog: Optional[CarCatalog] = None

    class Config:
        from_attributes = True


# Variantes de surcharge du modèle de véhicule "safe"

class GenericVehicle(BaseModel):
    kind: Literal["generic"] = "generic"
    battery_capacity_full: Optional[float] = None


class ACConverterVehicle(BaseModel):
    kind: Literal["ac_converter"] = "ac_converter"
    amperage_per_phase: float
    battery_capacity_full: Optional[float] = None


class DCCatalogVehicle(BaseModel):
    kind: Literal["dc_catalog"] = "dc_catalog"
    fast_charge_power_max: float = Field(..., description="DC fast charge power in kW")
    battery_capacity_full: Optional[float] = None


VehicleOverride = Union[GenericVehicle, ACConverterVehicle, DCCatalogVehicle]
