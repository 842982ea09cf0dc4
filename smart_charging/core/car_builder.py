from typing import Optional
import logging

from smart_charging.core.context import BuildContext, align_to
from smart_charging.core.exceptions import ValidationError
from smart_charging.core.station_lookup import (
    convert_watt_to_amp,
    get_amperage_per_phase,
    get_current_type,
    get_efficiency_percent,
    get_number_of_connected_phases,
    get_station_voltage,
    round_to,
)
from smart_charging.core.sticky_limitation import (
    exceeds_previous_limit,
    find_previous_charging_profile,
    get_current_profile_limit,
    with_buffer,
)
from smart_charging.models.car import (
    ACConverterVehicle, Car, DCCatalogVehicle, GenericVehicle, VehicleOverride
)
from smart_charging.models.charging_station import ChargingStation, Connector, CurrentType
from smart_charging.models.optimizer import OptimizerCar
from smart_charging.models.settings import OptimizerSettings
from smart_charging.models.site import Site
from smart_charging.models.transaction import Transaction

logger = logging.getLogger(__name__)

# Batterie supposée quand le véhicule est inconnu (kWh)
DEFAULT_BATTERY_CAPACITY_KWH = 100
# Niveau de batterie visé en fin de charge
TARGET_LOADING_STATE_RATIO = 0.5
# Tolérance de décalage d'horloge sur l'heure d'arrivée (s)
ARRIVAL_TOLERANCE_SECONDS = 30


def resolve_vehicle_override(station: ChargingStation, connector: Connector,
                             car: Optional[Car]) -> VehicleOverride:
    """
    Déterminer quelle surcharge du véhicule s'applique sur ce connecteur

    La limite du chargeur embarqué n'est utilisée que sur les bornes AC
    triphasées : la capacité par phase varie en monophasé.
    """
    if car is None:
        return GenericVehicle()

    battery_capacity_full = None
    if car.car_catalog and car.car_catalog.battery_capacity_full and car.car_catalog.battery_capacity_full > 0:
        battery_capacity_full = car.car_catalog.battery_capacity_full

    current_type = get_current_type(station, connector)
    if current_type == CurrentType.AC and get_number_of_connected_phases(station, connector) == 3:
        if car.converter and car.converter.amperage_per_phase and car.converter.amperage_per_phase > 0:
            return ACConverterVehicle(amperage_per_phase=car.converter.amperage_per_phase,
                                      battery_capacity_full=battery_capacity_full)
    elif current_type == CurrentType.DC:
        if car.car_catalog and car.car_catalog.fast_charge_power_max and car.car_catalog.fast_charge_power_max > 0:
            return DCCatalogVehicle(fast_charge_power_max=car.car_catalog.fast_charge_power_max,
                                    battery_capacity_full=battery_capacity_full)
    return GenericVehicle(battery_capacity_full=battery_capacity_full)


class CarModelBuilder:
    """
    Construction du modèle de voiture envoyé à l'optimiseur pour une session

    Étapes:
    1. Voiture "safe" déduite du connecteur
    2. Surcharge par les données du véhicule (chargeur embarqué, catalogue)
    3. Surcharge par les données temps réel (phases utilisées, sticky limitation)
    4. Conversion en consommation réseau pour le DC
    """

    def __init__(self, site: Site, settings: OptimizerSettings):
        self.site = site
        self.settings = settings

    def build_car(self, fuse_id: int, station: ChargingStation, connector: Connector,
                  transaction: Transaction, vehicle: Optional[Car], context: BuildContext) -> OptimizerCar:
        voltage = get_station_voltage(station, default=self.site.voltage)
        car = self.build_safe_car(fuse_id, station, connector, transaction, voltage, context)

        override = resolve_vehicle_override(station, connector, vehicle)
        self.apply_vehicle_override(car, override, voltage)

        self.override_car_with_runtime_data(car, station, connector, transaction, voltage, context)

        if get_current_type(station, connector) == CurrentType.DC:
            efficiency = get_efficiency_percent(station, connector, self.settings.dcDefaultEfficiencyPercent)
            car.maxCurrentPerPhase = round_to(car.maxCurrentPerPhase / (efficiency / 100))
            car.maxCurrent = round_to(car.maxCurrentPerPhase * 3)

        logger.debug(f"{self.site.name} > Car {car.name} built: maxCurrent={car.maxCurrent}A, "
                     f"maxCurrentPerPhase={car.maxCurrentPerPhase}A ({override.kind})")
        return car

    def build_safe_car(self, fuse_id: int, station: ChargingStation, connector: Connector,
                       transaction: Transaction, voltage: float, context: BuildContext) -> OptimizerCar:
        max_connector_amps_per_phase = get_amperage_per_phase(station, connector)
        if not max_connector_amps_per_phase:
            raise ValidationError(
                f"{self.site.name} > Cannot get the amperage per phase of connector ID '{connector.connector_id}'",
                source=station.id)

        min_current_per_phase = self.settings.minCurrentPerPhase
        max_capacity = DEFAULT_BATTERY_CAPACITY_KWH * 1000 / voltage
        return OptimizerCar(
            id=fuse_id,
            name=f"{station.id}~{connector.connector_id}",
            canLoadPhase1=1,
            canLoadPhase2=1,
            canLoadPhase3=1,
            timestampArrival=self.get_arrival_timestamp(transaction, context),
            carType="BEV",
            maxCapacity=max_capacity,
            minLoadingState=max_capacity * TARGET_LOADING_STATE_RATIO,
            startCapacity=transaction.current_total_consumption_wh / voltage,
            minCurrent=min_current_per_phase * 3,
            minCurrentPerPhase=min_current_per_phase,
            maxCurrent=round_to(max_connector_amps_per_phase * 3),
            maxCurrentPerPhase=round_to(max_connector_amps_per_phase),
            suspendable=True,
            immediateStart=False,
            canUseVariablePower=True,
        )

    @staticmethod
    def get_arrival_timestamp(transaction: Transaction, context: BuildContext) -> int:
        """
        Arrivée en secondes depuis minuit

        Une arrivée de la veille ou trop loin dans le futur est ramenée à 0,
        une arrivée à peine dans le futur (décalage d'horloge) à maintenant.
        """
        started_at = align_to(transaction.timestamp, context.now)
        arrival = int((started_at - context.midnight).total_seconds())
        current_time_seconds = context.current_time_seconds
        if 0 <= arrival <= current_time_seconds:
            return arrival
        if current_time_seconds < arrival <= current_time_seconds + ARRIVAL_TOLERANCE_SECONDS:
            return current_time_seconds
        return 0

    @staticmethod
    def apply_vehicle_override(car: OptimizerCar, override: VehicleOverride, voltage: float):
        if isinstance(override, ACConverterVehicle):
            car.maxCurrentPerPhase = override.amperage_per_phase
            car.maxCurrent = round_to(override.amperage_per_phase * 3)
        elif isinstance(override, DCCatalogVehicle):
            max_dc_current = convert_watt_to_amp(override.fast_charge_power_max * 1000, voltage)
            car.maxCurrentPerPhase = round_to(max_dc_current / 3)
            car.maxCurrent = round_to(car.maxCurrentPerPhase * 3)

        if override.battery_capacity_full:
            car.maxCapacity = override.battery_capacity_full * 1000 / voltage
            car.minLoadingState = car.maxCapacity * TARGET_LOADING_STATE_RATIO

    def override_car_with_runtime_data(self, car: OptimizerCar, station: ChargingStation, connector: Connector,
                                       transaction: Transaction, voltage: float, context: BuildContext):
        """Corriger la voiture avec les meter values de la session"""
        if transaction.phases_used:
            phases_in_progress = transaction.phases_used.count()
            if phases_in_progress == 0:
                return
            if self.settings.stickyLimitation:
                self._apply_ac_sticky_limitation(car, station, connector, transaction, phases_in_progress, context)
            car.canLoadPhase1 = 1 if transaction.phases_used.cs_phase1 else 0
            car.canLoadPhase2 = 1 if transaction.phases_used.cs_phase2 else 0
            car.canLoadPhase3 = 1 if transaction.phases_used.cs_phase3 else 0
            car.minCurrent = round_to(car.minCurrentPerPhase * phases_in_progress)
            car.maxCurrent = round_to(car.maxCurrentPerPhase * phases_in_progress)
        elif (get_current_type(station, connector) == CurrentType.DC
              and transaction.current_instant_watts_dc > 0 and self.settings.stickyLimitation):
            self._apply_dc_sticky_limitation(car, transaction, voltage, context)

    def _previous_limit(self, transaction: Transaction, context: BuildContext) -> Optional[float]:
        previous_profile = find_previous_charging_profile(context.previous_charging_profiles, transaction)
        if previous_profile is None:
            return None
        return get_current_profile_limit(previous_profile, context.now)

    def _apply_ac_sticky_limitation(self, car: OptimizerCar, station: ChargingStation, connector: Connector,
                                    transaction: Transaction, phases_in_progress: int, context: BuildContext):
        buffer_percent = self.settings.limitBufferAC
        current_amps_per_phase = transaction.current_instant_amps / phases_in_progress

        previous_limit = self._previous_limit(transaction, context)
        if previous_limit is not None:
            # Limite nulle ou profil expiré : le véhicule doit pouvoir remonter
            if previous_limit < 1:
                return
            station_phases = get_number_of_connected_phases(station, connector) or 3
            if exceeds_previous_limit(previous_limit / station_phases, current_amps_per_phase,
                                      buffer_percent, car.maxCurrentPerPhase):
                logger.debug(f"{self.site.name} > Car {car.name} is increasing its consumption")
                return

        if transaction.current_instant_amps > 0:
            car.maxCurrentPerPhase = round_to(with_buffer(current_amps_per_phase, buffer_percent))
        else:
            car.maxCurrentPerPhase = car.minCurrentPerPhase

    def _apply_dc_sticky_limitation(self, car: OptimizerCar, transaction: Transaction,
                                    voltage: float, context: BuildContext):
        buffer_percent = self.settings.limitBufferDC
        current_amps = convert_watt_to_amp(transaction.current_instant_watts_dc, voltage)

        previous_limit = self._previous_limit(transaction, context)
        if previous_limit is not None:
            if previous_limit < 1:
                return
            if exceeds_previous_limit(previous_limit, current_amps, buffer_percent, car.maxCurrent):
                logger.debug(f"{self.site.name} > Car {car.name} is increasing its consumption")
                return

        car.maxCurrentPerPhase = round_to(with_buffer(current_amps, buffer_percent) / 3)
        car.maxCurrent = round_to(car.maxCurrentPerPhase * 3)
