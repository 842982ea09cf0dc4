"""
Fonctions de lecture sur les bornes, points de charge et connecteurs.

Le point de charge (charge point) est la source de vérité pour l'ampérage,
le nombre de phases, la tension et le rendement ; les valeurs portées par le
connecteur ne servent que lorsqu'aucun point de charge n'y est rattaché.
"""
from typing import List, Optional

from smart_charging.models.charging_station import (
    ChargePoint, ChargePointStatus, ChargingStation, Connector, CurrentType
)

CURRENT_LIMIT_DECIMALS = 3

# Statuts comptés comme "en charge" pour le partage de puissance
CHARGING_STATUSES = (
    ChargePointStatus.CHARGING,
    ChargePointStatus.SUSPENDED_EV,
    ChargePointStatus.SUSPENDED_EVSE,
    ChargePointStatus.OCCUPIED,
)

# Statuts des connecteurs pilotés par le smart charging
SMART_CHARGING_STATUSES = (
    ChargePointStatus.CHARGING,
    ChargePointStatus.SUSPENDED_EVSE,
)


def round_to(value: float, decimals: int = CURRENT_LIMIT_DECIMALS) -> float:
    return round(value, decimals)


# Borne

def get_connector(station: ChargingStation, connector_id: int) -> Optional[Connector]:
    return next((c for c in station.connectors if c.connector_id == connector_id), None)


def get_charge_point(station: ChargingStation, charge_point_id: Optional[int]) -> Optional[ChargePoint]:
    if charge_point_id is None:
        return None
    return next((cp for cp in station.charge_points if cp.charge_point_id == charge_point_id), None)


def get_station_voltage(station: ChargingStation, default: Optional[float] = None) -> Optional[float]:
    """Tension de la borne, sinon celle du premier point de charge qui la déclare"""
    if station.voltage:
        return station.voltage
    for charge_point in station.charge_points:
        if charge_point.voltage:
            return charge_point.voltage
    return default


def smart_charging_connectors(station: ChargingStation) -> List[Connector]:
    return [c for c in station.connectors if c.status in SMART_CHARGING_STATUSES]


# Connecteur

def connector_charge_point(station: ChargingStation, connector: Connector) -> Optional[ChargePoint]:
    return get_charge_point(station, connector.charge_point_id)


def is_connector_charging(connector: Connector) -> bool:
    return connector.status in CHARGING_STATUSES


def get_current_type(station: ChargingStation, connector: Connector) -> CurrentType:
    charge_point = connector_charge_point(station, connector)
    if charge_point and charge_point.current_type:
        return charge_point.current_type
    if connector.current_type:
        return connector.current_type
    return station.current_type or CurrentType.AC


def get_number_of_connected_phases(station: ChargingStation, connector: Connector) -> Optional[int]:
    charge_point = connector_charge_point(station, connector)
    if charge_point:
        return charge_point.number_of_connected_phase
    return connector.number_of_connected_phase


def get_amperage(station: ChargingStation, connector: Connector) -> Optional[float]:
    """Ampérage total (toutes phases) disponible sur le connecteur"""
    charge_point = connector_charge_point(station, connector)
    if charge_point:
        return charge_point.amperage
    return connector.amperage


def get_amperage_per_phase(station: ChargingStation, connector: Connector) -> Optional[float]:
    amperage = get_amperage(station, connector)
    phases = get_number_of_connected_phases(station, connector)
    if not amperage or not phases:
        return None
    return amperage / phases


def get_efficiency_percent(station: ChargingStation, connector: Connector, default: float) -> float:
    charge_point = connector_charge_point(station, connector)
    if charge_point and charge_point.efficiency and charge_point.efficiency > 0:
        return charge_point.efficiency
    return default


def convert_watt_to_amp(watts: float, voltage: float) -> float:
    return watts / voltage


# Point de charge

def count_charging_connectors(station: ChargingStation, charge_point: ChargePoint) -> int:
    count = 0
    for connector_id in charge_point.connector_ids:
        connector = get_connector(station, connector_id)
        if connector and is_connector_charging(connector):
            count += 1
    return count


def primary_charging_connector_id(station: ChargingStation, charge_point: ChargePoint) -> Optional[int]:
    """Premier connecteur en charge dans l'ordre déclaré par le point de charge"""
    for connector_id in charge_point.connector_ids:
        connector = get_connector(station, connector_id)
        if connector and is_connector_charging(connector):
            return connector_id
    return None
