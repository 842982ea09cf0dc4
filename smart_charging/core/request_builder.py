from typing import Iterable, Optional
import logging

from smart_charging.core.car_builder import CarModelBuilder
from smart_charging.core.context import BuildContext
from smart_charging.core.exceptions import NotFoundError, ValidationError
from smart_charging.core.fuse_tree import FuseTreeBuilder
from smart_charging.core.storage import SmartChargingStorage
from smart_charging.core.topology_sanitizer import (
    adjust_site_limitation,
    check_site_has_stations,
    check_site_is_valid,
)
from smart_charging.models.car import Car
from smart_charging.models.charging_station import ChargingStation, Connector
from smart_charging.models.optimizer import (
    OptimizerCarConnectorAssignment,
    OptimizerEvent,
    OptimizerFuseTree,
    OptimizerRequest,
    OptimizerState,
)
from smart_charging.models.settings import OptimizerSettings
from smart_charging.models.site import Site
from smart_charging.models.transaction import Transaction

logger = logging.getLogger(__name__)


class OptimizerRequestBuilder:
    """
    Assemblage de la requête de l'optimiseur pour un site

    Chaque voiture prend l'ID de la feuille de l'arbre dont elle dépend.
    Les lectures (transaction puis véhicule) sont faites une à une, dans
    l'ordre des connecteurs.
    """

    def __init__(self, storage: SmartChargingStorage, settings: OptimizerSettings):
        self.storage = storage
        self.settings = settings

    async def build_request(self, site: Site, context: BuildContext,
                            excluded_charging_stations: Optional[Iterable[str]] = None) -> OptimizerRequest:
        check_site_is_valid(site)
        # Site sans borne active : aucune voiture, pas d'erreur
        had_charging_stations = bool(site.charging_stations)
        adjust_site_limitation(site, excluded_charging_stations)
        if had_charging_stations:
            check_site_has_stations(site)

        fuse_tree = FuseTreeBuilder(site, self.settings).build()
        car_builder = CarModelBuilder(site, self.settings)

        cars = []
        car_assignments = []
        for leaf in fuse_tree.leaves:
            transaction = await self.get_transaction(site, leaf.station, leaf.connector)
            vehicle = await self.get_vehicle(site, leaf.station, transaction)
            cars.append(car_builder.build_car(leaf.fuse_id, leaf.station, leaf.connector,
                                              transaction, vehicle, context))
            # C'est un connecteur, mais pour l'optimiseur c'est une "charging station"
            car_assignments.append(OptimizerCarConnectorAssignment(
                carID=leaf.fuse_id,
                chargingStationID=leaf.fuse_id,
            ))

        logger.debug(f"{site.name} > Optimizer request built with {len(cars)} cars")
        return OptimizerRequest(
            event=OptimizerEvent(eventType="Reoptimize"),
            state=OptimizerState(
                fuseTree=OptimizerFuseTree(rootFuse=fuse_tree.root),
                cars=cars,
                carAssignments=car_assignments,
                currentTimeSeconds=context.current_time_seconds,
            ),
        )

    def build_empty_request(self, site: Site, context: BuildContext) -> OptimizerRequest:
        """Requête sans borne, utilisée pour tester la connexion"""
        check_site_is_valid(site)
        root_fuse = FuseTreeBuilder(site, self.settings).build_root_fuse()
        return OptimizerRequest(
            event=OptimizerEvent(eventType="Reoptimize"),
            state=OptimizerState(
                fuseTree=OptimizerFuseTree(rootFuse=root_fuse),
                currentTimeSeconds=context.current_time_seconds,
            ),
        )

    async def get_transaction(self, site: Site, station: ChargingStation, connector: Connector) -> Transaction:
        if not connector.current_transaction_id:
            raise ValidationError(
                f"{site.name} > No active transaction on connector ID '{connector.connector_id}'",
                source=station.id)
        transaction = await self.storage.get_transaction(connector.current_transaction_id)
        if not transaction:
            raise NotFoundError(
                f"{site.name} > Active transaction ID '{connector.current_transaction_id}' "
                f"on connector ID '{connector.connector_id}' not found",
                source=station.id)
        return transaction

    async def get_vehicle(self, site: Site, station: ChargingStation, transaction: Transaction) -> Optional[Car]:
        if not transaction.car_id:
            return None
        car = await self.storage.get_car(transaction.car_id)
        if not car:
            raise NotFoundError(
                f"{site.name} > Car ID '{transaction.car_id}' of transaction ID '{transaction.id}' not found",
                source=station.id)
        return car
