from dataclasses import dataclass, field
from typing import List, Tuple
import logging

from smart_charging.core.exceptions import ValidationError
from smart_charging.core.station_lookup import (
    connector_charge_point,
    count_charging_connectors,
    get_amperage,
    get_current_type,
    get_efficiency_percent,
    get_number_of_connected_phases,
    primary_charging_connector_id,
    smart_charging_connectors,
)
from smart_charging.models.charging_station import ChargingStation, Connector, CurrentType
from smart_charging.models.optimizer import OptimizerChargingStationFuse, OptimizerFuse
from smart_charging.models.settings import OptimizerSettings
from smart_charging.models.site import Site

logger = logging.getLogger(__name__)


@dataclass
class FuseTreeLeaf:
    """Correspondance feuille de l'arbre <-> connecteur (et voiture de même ID)"""
    fuse_id: int
    station: ChargingStation
    connector: Connector


@dataclass
class FuseTree:
    root: OptimizerFuse
    leaves: List[FuseTreeLeaf] = field(default_factory=list)


class FuseTreeBuilder:
    """
    Construction de l'arbre de fusibles : site -> bornes -> connecteurs

    Les IDs sont attribués par un compteur unique, racine = 0, en profondeur
    d'abord : la borne prend l'ID suivant, puis chacun de ses connecteurs.
    Les capacités sont exprimées en ampères par phase côté réseau.
    """

    def __init__(self, site: Site, settings: OptimizerSettings):
        self.site = site
        self.settings = settings
        self._next_fuse_id = 0

    def next_fuse_id(self) -> int:
        fuse_id = self._next_fuse_id
        self._next_fuse_id += 1
        return fuse_id

    def build(self) -> FuseTree:
        tree = FuseTree(root=self.build_root_fuse())

        for station in self.site.charging_stations or []:
            connectors = smart_charging_connectors(station)
            if not connectors:
                continue

            station_fuse_id = self.next_fuse_id()
            connector_fuses = []
            for connector in connectors:
                connector_fuse = self.build_connector_fuse(self.next_fuse_id(), station, connector)
                connector_fuses.append(connector_fuse)
                tree.leaves.append(FuseTreeLeaf(connector_fuse.id, station, connector))

            tree.root.children.append(self.build_station_fuse(station_fuse_id, connector_fuses))

        logger.debug(f"{self.site.name} > Fuse tree built with {len(tree.root.children)} charging stations "
                     f"and {len(tree.leaves)} connectors")
        return tree

    def build_root_fuse(self) -> OptimizerFuse:
        three_phased = self.site.number_of_phases > 1
        site_max_amps_per_phase = self.site.maximum_power / self.site.voltage / self.site.number_of_phases
        return OptimizerFuse(
            id=self.next_fuse_id(),
            fusePhase1=site_max_amps_per_phase,
            fusePhase2=site_max_amps_per_phase if three_phased else 0,
            fusePhase3=site_max_amps_per_phase if three_phased else 0,
            phase1Connected=True,
            phase2Connected=three_phased,
            phase3Connected=three_phased,
            children=[],
        )

    def build_connector_fuse(self, fuse_id: int, station: ChargingStation,
                             connector: Connector) -> OptimizerChargingStationFuse:
        """Feuille du connecteur, vue par l'optimiseur comme une "charging station" """
        number_of_phases, total_amps = self.get_connector_phases_and_amps(station, connector)
        amps_per_phase = total_amps / number_of_phases

        # Consommation réelle côté réseau pour le DC
        if get_current_type(station, connector) == CurrentType.DC:
            efficiency = get_efficiency_percent(station, connector, self.settings.dcDefaultEfficiencyPercent)
            amps_per_phase /= efficiency / 100

        three_phased = number_of_phases > 1
        return OptimizerChargingStationFuse(
            id=fuse_id,
            fusePhase1=amps_per_phase,
            fusePhase2=amps_per_phase if three_phased else 0,
            fusePhase3=amps_per_phase if three_phased else 0,
            phase1Connected=True,
            phase2Connected=three_phased,
            phase3Connected=three_phased,
        )

    def build_station_fuse(self, fuse_id: int,
                           connector_fuses: List[OptimizerChargingStationFuse]) -> OptimizerFuse:
        sum_phase1 = sum(f.fusePhase1 for f in connector_fuses)
        sum_phase2 = sum(f.fusePhase2 for f in connector_fuses)
        sum_phase3 = sum(f.fusePhase3 for f in connector_fuses)
        return OptimizerFuse(
            id=fuse_id,
            fusePhase1=sum_phase1,
            fusePhase2=sum_phase2,
            fusePhase3=sum_phase3,
            phase1Connected=True,
            phase2Connected=sum_phase2 > 0,
            phase3Connected=sum_phase3 > 0,
            children=connector_fuses,
        )

    def get_connector_phases_and_amps(self, station: ChargingStation, connector: Connector) -> Tuple[int, float]:
        """
        Nombre de phases et ampérage total utilisable par le connecteur

        Partage de puissance : l'ampérage est divisé par le nombre de connecteurs
        du point de charge en activité. Charge non parallèle : seul le premier
        connecteur en activité garde sa puissance.
        """
        number_of_phases = get_number_of_connected_phases(station, connector)
        total_amps = get_amperage(station, connector)

        if not number_of_phases:
            raise ValidationError(
                f"{self.site.name} > Cannot get the number of phases of connector ID '{connector.connector_id}'",
                source=station.id)
        if not total_amps:
            raise ValidationError(
                f"{self.site.name} > Cannot get the amperage of connector ID '{connector.connector_id}'",
                source=station.id)

        charge_point = connector_charge_point(station, connector)
        if charge_point and (charge_point.share_power_to_all_connectors or charge_point.cannot_charge_in_parallel):
            connectors_charging = count_charging_connectors(station, charge_point)
            if connectors_charging >= 1:
                if charge_point.share_power_to_all_connectors:
                    total_amps /= connectors_charging
                if (charge_point.cannot_charge_in_parallel and connectors_charging > 1 and
                        primary_charging_connector_id(station, charge_point) != connector.connector_id):
                    total_amps = 0

        return number_of_phases, total_amps
