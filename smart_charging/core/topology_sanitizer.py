from typing import Iterable, Optional, Set
import logging

from smart_charging.core.exceptions import ValidationError
from smart_charging.core.station_lookup import connector_charge_point, get_station_voltage
from smart_charging.models.site import Site

logger = logging.getLogger(__name__)


def check_site_is_valid(site: Site):
    """Vérifier les préconditions électriques du site"""
    if not site.maximum_power:
        raise ValidationError(f"Maximum Power property is not set for Site '{site.name}'")
    if not site.voltage:
        raise ValidationError(f"Voltage property is not set for Site '{site.name}'")
    if not site.number_of_phases:
        raise ValidationError(f"Number of phases property is not set for Site '{site.name}'")
    if site.charging_stations is None:
        raise ValidationError(f"No Charging Stations found in Site '{site.name}'")


def check_site_has_stations(site: Site):
    if not site.charging_stations:
        raise ValidationError(f"No Charging Stations left in Site '{site.name}' after sanitization")


def adjust_site_limitation(site: Site, excluded_charging_stations: Optional[Iterable[str]] = None) -> Site:
    """
    Retirer du site ce qui ne peut pas être limité et réduire sa capacité

    - Borne exclue du smart charging : retirée, sa puissance max est déduite
    - Point de charge exclu de la limitation : ses connecteurs sont retirés,
      son ampérage est déduit une seule fois
    - Borne sans connecteur restant : retirée

    Le site est modifié en place (copie propre au cycle).
    """
    excluded: Set[str] = set(excluded_charging_stations or [])
    initial_site_max_amps = site.maximum_power / site.voltage
    site_max_amps = initial_site_max_amps

    remaining_stations = []
    for station in site.charging_stations or []:
        station_voltage = get_station_voltage(station, default=site.voltage)

        if station.exclude_from_smart_charging or station.id in excluded:
            site_max_amps -= station.maximum_power / station_voltage
            logger.debug(f"{site.name} > Charging Station {station.id} excluded from smart charging")
            continue

        processed_charge_point_ids: Set[int] = set()
        remaining_connectors = []
        for connector in station.connectors:
            charge_point = connector_charge_point(station, connector)
            if charge_point and charge_point.exclude_from_power_limitation:
                if charge_point.charge_point_id not in processed_charge_point_ids:
                    site_max_amps -= charge_point.amperage or 0
                    processed_charge_point_ids.add(charge_point.charge_point_id)
                continue
            remaining_connectors.append(connector)
        station.connectors = remaining_connectors

        if station.connectors:
            remaining_stations.append(station)

    site.charging_stations = remaining_stations

    if site_max_amps < 0:
        site_max_amps = 0

    if site_max_amps != initial_site_max_amps:
        new_maximum_power = site_max_amps * site.voltage
        logger.info(f"{site.name} > limit of {site.maximum_power} W has been lowered to "
                    f"{round(new_maximum_power)} W due to unsupported charging stations currently being used")
        site.maximum_power = new_maximum_power

    return site
