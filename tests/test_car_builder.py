from datetime import timedelta

import pytest

from smart_charging.core.car_builder import CarModelBuilder, resolve_vehicle_override
from smart_charging.core.context import BuildContext
from smart_charging.core.exceptions import ValidationError
from smart_charging.models.car import ACConverterVehicle, DCCatalogVehicle, GenericVehicle

from factories import (
    NOW,
    make_car,
    make_connector,
    make_dc_station,
    make_previous_profile,
    make_settings,
    make_site,
    make_station,
    make_transaction,
)


def build_car(station, transaction, vehicle=None, previous_profiles=None, fuse_id=2, **settings):
    site = make_site([station], maximum_power=100000)
    builder = CarModelBuilder(site, make_settings(**settings))
    context = BuildContext.at(NOW, previous_profiles)
    return builder.build_car(fuse_id, station, station.connectors[0], transaction, vehicle, context)


def test_safe_car_for_unknown_vehicle():
    """
    Connecteur AC 3 x 32 A, pas de véhicule ni de mesure de phases
    """
    car = build_car(make_station(amperage=96, phases=3),
                    make_transaction(current_total_consumption_wh=2300))

    assert car.id == 2
    assert car.name == "CS_AC_01~1"
    assert car.maxCurrentPerPhase == 32
    assert car.maxCurrent == 96
    assert car.minCurrentPerPhase == 6
    assert car.minCurrent == 18
    assert (car.canLoadPhase1, car.canLoadPhase2, car.canLoadPhase3) == (1, 1, 1)
    assert car.maxCapacity == pytest.approx(100000 / 230)
    assert car.minLoadingState == pytest.approx(car.maxCapacity / 2)
    assert car.startCapacity == pytest.approx(10)
    assert car.suspendable is True
    assert car.immediateStart is False

    print(f"✓ Car {car.name}: {car.maxCurrentPerPhase} A/phase, {car.maxCurrent} A total")


def test_ac_converter_limits_the_car():
    car = build_car(make_station(), make_transaction(car_id="CAR_01"),
                    vehicle=make_car(amperage_per_phase=16))

    assert car.maxCurrentPerPhase == 16
    assert car.maxCurrent == 48


def test_ac_converter_is_ignored_on_single_phase_station():
    station = make_station(amperage=32, phases=1)

    assert isinstance(resolve_vehicle_override(station, station.connectors[0], make_car(amperage_per_phase=16)),
                      GenericVehicle)
    car = build_car(station, make_transaction(), vehicle=make_car(amperage_per_phase=16))
    assert car.maxCurrentPerPhase == 32


def test_vehicle_override_variants():
    ac_station = make_station()
    dc_station = make_dc_station()

    assert isinstance(resolve_vehicle_override(ac_station, ac_station.connectors[0], None), GenericVehicle)
    assert isinstance(resolve_vehicle_override(ac_station, ac_station.connectors[0],
                                               make_car(amperage_per_phase=16)), ACConverterVehicle)
    assert isinstance(resolve_vehicle_override(dc_station, dc_station.connectors[0],
                                               make_car(fast_charge_power_max=50)), DCCatalogVehicle)
    # Catalogue sans puissance DC
    assert isinstance(resolve_vehicle_override(dc_station, dc_station.connectors[0], make_car()),
                      GenericVehicle)


def test_battery_capacity_from_catalog():
    car = build_car(make_station(), make_transaction(), vehicle=make_car(battery_capacity_full=60))

    assert car.maxCapacity == pytest.approx(60000 / 230)
    assert car.minLoadingState == pytest.approx(30000 / 230)


def test_dc_catalog_power_with_conversion_losses():
    """50 kW DC catalogue, rendement 90% : courant réseau = courant DC / 0.9"""
    station = make_dc_station(efficiency=90)
    car = build_car(station, make_transaction(2, station_id=station.id),
                    vehicle=make_car(fast_charge_power_max=50))

    dc_amps_per_phase = round(50000 / 230 / 3, 3)
    assert car.maxCurrentPerPhase == pytest.approx(dc_amps_per_phase / 0.9, abs=1e-3)
    assert car.maxCurrent == pytest.approx(car.maxCurrentPerPhase * 3, abs=1e-3)


def test_dc_car_is_converted_to_grid_consumption():
    station = make_dc_station(efficiency=90)
    car = build_car(station, make_transaction(2, station_id=station.id))

    assert car.maxCurrentPerPhase == pytest.approx(111.111)
    assert car.maxCurrent == pytest.approx(333.333)


def test_phases_in_use_restrict_the_car():
    car = build_car(make_station(), make_transaction(phases=[1], current_instant_amps=20),
                    stickyLimitation=False)

    assert (car.canLoadPhase1, car.canLoadPhase2, car.canLoadPhase3) == (1, 0, 0)
    assert car.minCurrent == 6
    assert car.maxCurrent == 32
    assert car.maxCurrentPerPhase == 32


def test_sticky_limitation_clamps_to_current_draw():
    """
    Limite précédente 32 A/phase (96 A sur 3 phases), buffer 10%,
    le véhicule consomme 20 A sur une phase : 20 * 1.1 = 22 A
    """
    car = build_car(make_station(), make_transaction(phases=[1], current_instant_amps=20),
                    previous_profiles=[make_previous_profile(96)])

    assert car.maxCurrentPerPhase == pytest.approx(22)
    assert car.maxCurrent == pytest.approx(22)
    assert car.maxCurrentPerPhase < 32, "Sticky limitation must not keep the hardware ceiling"


def test_sticky_limitation_lets_an_increasing_car_grow():
    """Limite précédente 15 A/phase déjà dépassée : le plafond matériel est gardé"""
    car = build_car(make_station(), make_transaction(phases=[1], current_instant_amps=20),
                    previous_profiles=[make_previous_profile(45)])

    assert car.maxCurrentPerPhase == 32
    assert car.maxCurrent == 32


def test_sticky_limitation_after_zero_limit():
    car = build_car(make_station(), make_transaction(phases=[1, 2, 3], current_instant_amps=0),
                    previous_profiles=[make_previous_profile(0)])

    assert car.maxCurrentPerPhase == 32


def test_sticky_limitation_without_consumption_falls_to_minimum():
    car = build_car(make_station(), make_transaction(phases=[1], current_instant_amps=0))

    assert car.maxCurrentPerPhase == 6
    assert car.maxCurrent == 6


def test_sticky_limitation_ignores_profile_of_another_session():
    car = build_car(make_station(), make_transaction(phases=[1, 2, 3], current_instant_amps=30),
                    previous_profiles=[make_previous_profile(96, transaction_id=99)])

    # Pas de profil précédent : consommation + buffer
    assert car.maxCurrentPerPhase == pytest.approx(11)
    assert car.maxCurrent == pytest.approx(33)


def test_dc_sticky_limitation():
    """23 kW DC à 230 V = 100 A, buffer 20% -> 120 A, puis pertes de conversion"""
    station = make_dc_station(efficiency=90)
    car = build_car(station, make_transaction(2, station_id=station.id, current_instant_watts_dc=23000))

    assert car.maxCurrentPerPhase == pytest.approx(40 / 0.9, abs=1e-3)
    assert car.maxCurrent == pytest.approx(120 / 0.9, abs=1e-2)


def build_dc_car_with_previous_limit(previous_limit, **profile_kwargs):
    """Borne DC 3 x 100 A à 90%, véhicule consommant 23 kW (100 A)"""
    station = make_dc_station(efficiency=90)
    transaction = make_transaction(2, station_id=station.id, current_instant_watts_dc=23000)
    previous_profile = make_previous_profile(previous_limit, transaction_id=2, station_id=station.id,
                                             **profile_kwargs)
    return build_car(station, transaction, previous_profiles=[previous_profile])


def test_dc_sticky_limitation_lets_an_increasing_car_grow():
    """Limite précédente 60 A au total, le véhicule en tire 100 : plafond matériel gardé"""
    car = build_dc_car_with_previous_limit(60)

    assert car.maxCurrentPerPhase == pytest.approx(111.111)
    assert car.maxCurrent == pytest.approx(333.333)


def test_dc_sticky_limitation_clamps_below_previous_limit():
    """Limite précédente 200 A, consommation 100 A : 100 * 1.2 = 120 A, puis pertes"""
    car = build_dc_car_with_previous_limit(200)

    assert car.maxCurrentPerPhase == pytest.approx(40 / 0.9, abs=1e-3)
    assert car.maxCurrent == pytest.approx(120 / 0.9, abs=1e-2)


@pytest.mark.parametrize("previous_limit, profile_kwargs", [
    (0, {}),
    (200, {"start": NOW - timedelta(hours=2), "duration": 3600}),
])
def test_dc_sticky_limitation_after_zero_or_expired_limit(previous_limit, profile_kwargs):
    car = build_dc_car_with_previous_limit(previous_limit, **profile_kwargs)

    assert car.maxCurrentPerPhase == pytest.approx(111.111)
    assert car.maxCurrent == pytest.approx(333.333)


def test_missing_connector_amperage_is_rejected():
    station = make_station(connectors=[make_connector(1, transaction_id=1, charge_point_id=None)])

    with pytest.raises(ValidationError):
        build_car(station, make_transaction())


@pytest.mark.parametrize("started_at, expected", [
    (NOW - timedelta(hours=1), 36420 - 3600),
    (NOW, 36420),
    (NOW + timedelta(seconds=10), 36420),
    (NOW + timedelta(minutes=2), 0),
    (NOW - timedelta(days=1), 0),
])
def test_arrival_timestamp(started_at, expected):
    context = BuildContext.at(NOW)

    assert CarModelBuilder.get_arrival_timestamp(make_transaction(timestamp=started_at), context) == expected
