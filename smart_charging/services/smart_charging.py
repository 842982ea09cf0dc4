from datetime import datetime
from typing import Iterable, List, Optional, Protocol, TypeVar, runtime_checkable
import logging

import pydantic

from smart_charging.core.context import BuildContext
from smart_charging.core.exceptions import NotFoundError, UpstreamError
from smart_charging.core.plan_translator import PlanTranslator
from smart_charging.core.request_builder import OptimizerRequestBuilder
from smart_charging.core.storage import SmartChargingStorage
from smart_charging.models.charging_profile import ChargingProfile
from smart_charging.models.optimizer import OptimizerResult
from smart_charging.models.settings import OptimizerSettings
from smart_charging.models.site import Site
from smart_charging.services.optimizer_client import OptimizerClient

logger = logging.getLogger(__name__)

SettingsT = TypeVar("SettingsT", covariant=True)


@runtime_checkable
class SmartChargingProvider(Protocol[SettingsT]):
    """Fournisseur de smart charging, paramétré par son type de configuration"""

    @property
    def settings(self) -> SettingsT:
        ...

    async def check_connection(self):
        ...

    async def build_charging_profiles(self, site_id: str,
                                      excluded_charging_stations: Optional[Iterable[str]] = None,
                                      now: Optional[datetime] = None) -> List[ChargingProfile]:
        ...


class OptimizerSmartCharging:
    """
    Smart charging délégué à l'optimiseur externe

    Responsabilités:
    - Construire la requête (arbre de fusibles + voitures) à partir du site
    - Appeler l'optimiseur (un seul appel, sans retry)
    - Traduire le plan reçu en profils de charge OCPP
    """

    def __init__(self, settings: OptimizerSettings, storage: SmartChargingStorage,
                 client: Optional[OptimizerClient] = None):
        self._settings = settings
        self.storage = storage
        self.client = client or OptimizerClient(settings)
        self.request_builder = OptimizerRequestBuilder(storage, settings)

    @property
    def settings(self) -> OptimizerSettings:
        return self._settings

    async def check_connection(self):
        """Envoyer une requête sur un site fictif sans borne"""
        site = Site(id="check-connection", name="Dummy Site", maximum_power=10000,
                    voltage=230, number_of_phases=3, charging_stations=[])
        request = self.request_builder.build_empty_request(site, BuildContext.at())
        self.client.check_configuration()
        try:
            await self.client.call(request.to_payload())
        except UpstreamError as e:
            raise UpstreamError(f"{site.name} > Smart Charging optimizer responded with '{e}'") from e
        logger.info("Smart Charging optimizer connection checked successfully")

    async def build_charging_profiles(self, site_id: str,
                                      excluded_charging_stations: Optional[Iterable[str]] = None,
                                      now: Optional[datetime] = None) -> List[ChargingProfile]:
        site = await self.load_site(site_id)
        self.client.check_configuration()

        previous_charging_profiles = []
        if self.settings.stickyLimitation:
            previous_charging_profiles = await self.storage.get_charging_profiles(
                [station.id for station in site.charging_stations])
        context = BuildContext.at(now, previous_charging_profiles)

        request = await self.request_builder.build_request(site, context, excluded_charging_stations)
        if not request.state.cars:
            logger.debug(f"{site.name} > No car connected so no need to call the Smart Charging optimizer")
            return []

        logger.info(f"{site.name} > Calling the Smart Charging optimizer with {len(request.state.cars)} cars...")
        response = await self.client.call(request.to_payload())
        try:
            optimizer_result = OptimizerResult.model_validate(response)
        except pydantic.ValidationError as e:
            raise UpstreamError(f"{site.name} > Unexpected Smart Charging optimizer response: {e}") from e
        logger.debug(f"{site.name} > Smart Charging optimizer returned {len(optimizer_result.cars)} plans")

        translator = PlanTranslator(self.storage, site, self.settings)
        return await translator.build_charging_profiles(optimizer_result, context)

    async def load_site(self, site_id: str) -> Site:
        """Site et bornes lus pour ce cycle uniquement"""
        site = await self.storage.get_site(site_id)
        if not site:
            raise NotFoundError(f"Site '{site_id}' not found")
        site = site.model_copy(deep=True)
        site.charging_stations = [
            station.model_copy(deep=True) for station in await self.storage.get_charging_stations(site_id)
        ]
        return site
