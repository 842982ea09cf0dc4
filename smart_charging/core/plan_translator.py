from typing import List, Tuple
import logging

from smart_charging.core.context import SLOT_SECONDS, BuildContext
from smart_charging.core.exceptions import NotFoundError, ValidationError
from smart_charging.core.station_lookup import (
    connector_charge_point,
    get_connector,
    get_current_type,
    get_efficiency_percent,
    get_number_of_connected_phases,
    round_to,
)
from smart_charging.core.storage import CHARGING_SCHEDULE_MAX_PERIODS_KEY, SmartChargingStorage
from smart_charging.models.charging_profile import (
    SMART_CHARGING_STACK_LEVEL,
    ChargingProfile,
    ChargingProfileKindType,
    ChargingProfilePurposeType,
    ChargingRateUnitType,
    ChargingSchedule,
    ChargingSchedulePeriod,
    Profile,
)
from smart_charging.models.charging_station import ChargingStation, Connector, CurrentType
from smart_charging.models.optimizer import OptimizerCarResult, OptimizerResult
from smart_charging.models.settings import OptimizerSettings
from smart_charging.models.site import Site

logger = logging.getLogger(__name__)

# Nombre de périodes toujours émises, même à 0 A (45 min d'anticipation)
MIN_SCHEDULE_PERIODS = 3


def parse_car_name(name: str) -> Tuple[str, int]:
    """Décoder le nom 'chargingStationID~connectorID' d'une voiture"""
    charging_station_id, separator, connector_id = name.rpartition("~")
    if not separator or not charging_station_id:
        raise ValidationError(f"Invalid car name '{name}' in optimizer response")
    try:
        return charging_station_id, int(connector_id)
    except ValueError:
        raise ValidationError(f"Invalid connector ID in car name '{name}'") from None


class PlanTranslator:
    """
    Conversion du plan de l'optimiseur (courant par phase, par créneau de
    15 minutes depuis minuit) en profils de charge OCPP par connecteur
    """

    def __init__(self, storage: SmartChargingStorage, site: Site, settings: OptimizerSettings):
        self.storage = storage
        self.site = site
        self.settings = settings

    async def build_charging_profiles(self, optimizer_result: OptimizerResult,
                                      context: BuildContext) -> List[ChargingProfile]:
        charging_profiles = []
        for car in optimizer_result.cars:
            charging_profiles.append(await self.build_charging_profile(car, context))
        logger.info(f"{self.site.name} > {len(charging_profiles)} charging profiles built")
        return charging_profiles

    async def build_charging_profile(self, car: OptimizerCarResult, context: BuildContext) -> ChargingProfile:
        charging_station_id, connector_id = parse_car_name(car.name)

        station = await self.storage.get_charging_station(charging_station_id)
        if not station:
            raise NotFoundError(f"{self.site.name} > Charging Station not found", source=charging_station_id)
        connector = get_connector(station, connector_id)
        if not connector:
            raise NotFoundError(f"{self.site.name} > Connector ID '{connector_id}' not found",
                                source=charging_station_id)
        number_of_phases = get_number_of_connected_phases(station, connector)
        if not number_of_phases:
            raise ValidationError(
                f"{self.site.name} > Cannot get the number of phases of connector ID '{connector_id}'",
                source=charging_station_id)

        max_periods = await self.get_schedule_max_periods(charging_station_id)
        schedule = self.build_charging_schedule(car.currentPlan, station, connector, number_of_phases,
                                                max_periods, context)

        charge_point = connector_charge_point(station, connector)
        return ChargingProfile(
            charging_station_id=charging_station_id,
            connector_id=connector_id,
            charge_point_id=charge_point.charge_point_id if charge_point else None,
            profile=Profile(
                chargingProfileId=connector_id,
                chargingProfileKind=ChargingProfileKindType.ABSOLUTE,
                # Profil limité à la transaction en cours
                chargingProfilePurpose=ChargingProfilePurposeType.TX_PROFILE,
                transactionId=connector.current_transaction_id,
                stackLevel=SMART_CHARGING_STACK_LEVEL,
                chargingSchedule=schedule,
            ),
        )

    async def get_schedule_max_periods(self, charging_station_id: str) -> int:
        value = await self.storage.get_station_setting(charging_station_id, CHARGING_SCHEDULE_MAX_PERIODS_KEY)
        try:
            max_periods = int(value)
        except (TypeError, ValueError):
            return self.settings.defaultScheduleMaxPeriods
        return max_periods if max_periods > 0 else self.settings.defaultScheduleMaxPeriods

    def build_charging_schedule(self, current_plan: List[float], station: ChargingStation, connector: Connector,
                                number_of_phases: int, max_periods: int, context: BuildContext) -> ChargingSchedule:
        """
        Parcourir le plan à partir du créneau courant

        Arrêt au nombre max de périodes, à la fin du plan, ou au premier
        créneau à 0 une fois les 3 premières périodes émises.
        """
        periods: List[ChargingSchedulePeriod] = []
        slot = context.current_slot
        while (len(periods) < max_periods and slot < len(current_plan)
               and (current_plan[slot] > 0 or len(periods) < MIN_SCHEDULE_PERIODS)):
            periods.append(ChargingSchedulePeriod(
                startPeriod=len(periods) * SLOT_SECONDS,
                limit=self.calculate_car_consumption(station, connector, number_of_phases, current_plan[slot]),
            ))
            slot += 1

        return ChargingSchedule(
            startSchedule=context.schedule_start,
            duration=len(periods) * SLOT_SECONDS,
            chargingRateUnit=ChargingRateUnitType.AMPERE,
            chargingSchedulePeriod=periods,
        )

    def calculate_car_consumption(self, station: ChargingStation, connector: Connector,
                                  number_of_phases: int, current_limit: float) -> float:
        """Courant côté véhicule, après les pertes de conversion de la borne en DC"""
        if get_current_type(station, connector) == CurrentType.DC:
            efficiency = get_efficiency_percent(station, connector, self.settings.dcDefaultEfficiencyPercent)
            return round_to(current_limit * efficiency / 100 * number_of_phases)
        return round_to(current_limit * number_of_phases)
