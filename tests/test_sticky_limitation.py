from datetime import timedelta

import pytest

from smart_charging.core.sticky_limitation import (
    damped_threshold,
    exceeds_previous_limit,
    find_previous_charging_profile,
    get_current_profile_limit,
    with_buffer,
)
from smart_charging.models.charging_profile import ChargingSchedulePeriod

from factories import NOW, make_previous_profile, make_transaction


def test_current_limit_follows_schedule_periods():
    profile = make_previous_profile(32, start=NOW - timedelta(minutes=20))
    profile.profile.chargingSchedule.chargingSchedulePeriod = [
        ChargingSchedulePeriod(startPeriod=0, limit=32),
        ChargingSchedulePeriod(startPeriod=900, limit=20),
        ChargingSchedulePeriod(startPeriod=1800, limit=10),
    ]

    assert get_current_profile_limit(profile, NOW) == 20
    assert get_current_profile_limit(profile, NOW - timedelta(minutes=10)) == 32
    assert get_current_profile_limit(profile, NOW + timedelta(minutes=15)) == 10


def test_expired_or_future_profile_has_no_limit():
    profile = make_previous_profile(32, start=NOW - timedelta(minutes=30), duration=900)

    assert get_current_profile_limit(profile, NOW) == -1
    assert get_current_profile_limit(profile, NOW - timedelta(hours=1)) == -1


def test_previous_profile_must_be_unique():
    transaction = make_transaction()
    profiles = [make_previous_profile(32), make_previous_profile(16)]

    assert find_previous_charging_profile(profiles, transaction) is None
    assert find_previous_charging_profile(profiles[:1], transaction) is profiles[0]
    assert find_previous_charging_profile([make_previous_profile(32, connector_id=2)], transaction) is None


def test_damped_threshold():
    # 22 A = 20 A + 10% : seuil 20 A élargi de 20% de l'écart
    assert damped_threshold(22, 10) == pytest.approx(20.4)


def test_exceeds_previous_limit():
    assert exceeds_previous_limit(22, 21, 10, 32) is True
    assert exceeds_previous_limit(22, 20, 10, 32) is False
    # Limite précédente déjà au plafond matériel
    assert exceeds_previous_limit(32, 31, 10, 32) is False


def test_with_buffer():
    assert with_buffer(20, 10) == pytest.approx(22)
    assert with_buffer(20, 0) == 20
