import pytest

from smart_charging.core.exceptions import ConfigurationError, NotFoundError, UpstreamError, ValidationError
from smart_charging.models.charging_station import ChargePointStatus

from factories import (
    NOW,
    InMemoryStorage,
    make_connector,
    make_previous_profile,
    make_service,
    make_site,
    make_station,
    make_transaction,
)


def single_connector_storage(**kwargs):
    station = make_station(amperage=96, phases=3)
    return InMemoryStorage(site=make_site(), stations=[station], transactions=[make_transaction()], **kwargs)


def daily_plan(value):
    return [value] * 96


@pytest.mark.asyncio
async def test_single_connector_cycle():
    """
    Site 10 000 W / 230 V / 3 phases, une session sur un connecteur 3 x 32 A
    """
    storage = single_connector_storage()
    service, client = make_service(storage, response={"cars": [{"name": "CS_AC_01~1",
                                                                "currentPlan": daily_plan(14)}]})

    charging_profiles = await service.build_charging_profiles("SITE_LYON_01", now=NOW)

    assert len(client.payloads) == 1
    state = client.payloads[0]["state"]
    root = state["fuseTree"]["rootFuse"]
    assert root["@type"] == "Fuse"
    assert root["id"] == 0
    assert root["fusePhase1"] == pytest.approx(14.49, abs=0.01)
    leaf = root["children"][0]["children"][0]
    assert leaf["@type"] == "ChargingStation"
    assert leaf["fusePhase1"] == pytest.approx(32)

    assert len(state["cars"]) == 1
    car = state["cars"][0]
    assert car["maxCurrentPerPhase"] == 32
    assert car["maxCurrent"] == 96
    assert state["carAssignments"] == [{"carID": leaf["id"], "chargingStationID": leaf["id"]}]
    assert state["currentTimeSeconds"] == 36420
    assert client.payloads[0]["event"] == {"eventType": "Reoptimize"}

    assert len(charging_profiles) == 1
    limits = [p.limit for p in charging_profiles[0].profile.chargingSchedule.chargingSchedulePeriod]
    assert limits == [42] * 20

    print(f"✓ Root fuse {root['fusePhase1']:.2f} A/phase, car {car['maxCurrentPerPhase']}/{car['maxCurrent']} A")


@pytest.mark.asyncio
async def test_no_active_session_does_not_call_optimizer():
    idle_station = make_station(connectors=[make_connector(1, status=ChargePointStatus.AVAILABLE)])
    storage = InMemoryStorage(site=make_site(), stations=[idle_station])
    service, client = make_service(storage)

    assert await service.build_charging_profiles("SITE_LYON_01", now=NOW) == []
    assert client.payloads == []


@pytest.mark.asyncio
async def test_site_without_station_does_not_call_optimizer():
    storage = InMemoryStorage(site=make_site())
    service, client = make_service(storage)

    assert await service.build_charging_profiles("SITE_LYON_01", now=NOW) == []
    assert client.payloads == []


@pytest.mark.asyncio
async def test_every_station_excluded_is_rejected():
    storage = single_connector_storage()
    service, client = make_service(storage)

    with pytest.raises(ValidationError):
        await service.build_charging_profiles("SITE_LYON_01", excluded_charging_stations=["CS_AC_01"], now=NOW)
    assert client.payloads == []


@pytest.mark.asyncio
async def test_excluded_stations_do_not_alter_stored_site():
    storage = single_connector_storage()
    service, _ = make_service(storage)

    with pytest.raises(ValidationError):
        await service.build_charging_profiles("SITE_LYON_01", excluded_charging_stations=["CS_AC_01"], now=NOW)

    assert storage.sites["SITE_LYON_01"].maximum_power == 10000
    assert storage.stations["CS_AC_01"].connectors


@pytest.mark.asyncio
async def test_missing_configuration_aborts_before_any_call():
    storage = single_connector_storage()
    service, client = make_service(storage, optimizerUrl=None)

    with pytest.raises(ConfigurationError):
        await service.build_charging_profiles("SITE_LYON_01", now=NOW)
    assert client.payloads == []


@pytest.mark.asyncio
async def test_unknown_site():
    service, _ = make_service(InMemoryStorage())

    with pytest.raises(NotFoundError):
        await service.build_charging_profiles("SITE_UNKNOWN", now=NOW)


@pytest.mark.asyncio
async def test_connector_without_transaction_is_rejected():
    station = make_station(connectors=[make_connector(1, transaction_id=None)])
    service, client = make_service(InMemoryStorage(site=make_site(), stations=[station]))

    with pytest.raises(ValidationError):
        await service.build_charging_profiles("SITE_LYON_01", now=NOW)
    assert client.payloads == []


@pytest.mark.asyncio
async def test_missing_transaction_or_car_is_rejected():
    station = make_station()
    service, _ = make_service(InMemoryStorage(site=make_site(), stations=[station]))
    with pytest.raises(NotFoundError):
        await service.build_charging_profiles("SITE_LYON_01", now=NOW)

    storage = InMemoryStorage(site=make_site(), stations=[station],
                              transactions=[make_transaction(car_id="CAR_GHOST")])
    service, _ = make_service(storage)
    with pytest.raises(NotFoundError):
        await service.build_charging_profiles("SITE_LYON_01", now=NOW)


@pytest.mark.asyncio
async def test_upstream_error_is_surfaced():
    service, _ = make_service(single_connector_storage(),
                              error=UpstreamError("Smart Charging optimizer responded with status '500'"))

    with pytest.raises(UpstreamError):
        await service.build_charging_profiles("SITE_LYON_01", now=NOW)


@pytest.mark.asyncio
async def test_unexpected_optimizer_response():
    service, _ = make_service(single_connector_storage(), response={"cars": [{"name": "CS_AC_01~1"}]})

    with pytest.raises(UpstreamError):
        await service.build_charging_profiles("SITE_LYON_01", now=NOW)


@pytest.mark.asyncio
async def test_previous_profiles_are_used_for_sticky_limitation():
    storage = InMemoryStorage(
        site=make_site(),
        stations=[make_station()],
        transactions=[make_transaction(phases=[1], current_instant_amps=20)],
        charging_profiles=[make_previous_profile(96)],
    )
    service, client = make_service(storage)

    await service.build_charging_profiles("SITE_LYON_01", now=NOW)

    car = client.payloads[0]["state"]["cars"][0]
    assert car["maxCurrentPerPhase"] == pytest.approx(22)
    assert car["canLoadPhase2"] == 0


@pytest.mark.asyncio
async def test_check_connection_sends_empty_site():
    service, client = make_service(InMemoryStorage())

    await service.check_connection()

    state = client.payloads[0]["state"]
    assert state["cars"] == []
    assert state["fuseTree"]["rootFuse"]["children"] == []
    assert state["fuseTree"]["rootFuse"]["fusePhase1"] == pytest.approx(10000 / 230 / 3)


@pytest.mark.asyncio
async def test_check_connection_reports_optimizer_failure():
    service, _ = make_service(InMemoryStorage(), error=UpstreamError("status '401'"))

    with pytest.raises(UpstreamError, match="Dummy Site"):
        await service.check_connection()


@pytest.mark.asyncio
async def test_check_connection_requires_configuration():
    service, client = make_service(InMemoryStorage(), password=None)

    with pytest.raises(ConfigurationError):
        await service.check_connection()
    assert client.payloads == []
