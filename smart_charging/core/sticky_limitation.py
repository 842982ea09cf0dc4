"""
Sticky limitation : ne pas redonner à un véhicule une capacité qu'il n'utilise pas.

Sans ce mécanisme, un véhicule qui réduit sa consommation se voit aussitôt
réattribuer la capacité libérée par l'optimiseur, et le cycle recommence.
"""
from datetime import datetime
from typing import List, Optional

from smart_charging.core.context import align_to
from smart_charging.models.charging_profile import ChargingProfile
from smart_charging.models.transaction import Transaction

# Part de l'écart limite/seuil tolérée comme fluctuation normale
NORMAL_FLUCTUATION_RATIO = 0.2


def find_previous_charging_profile(charging_profiles: List[ChargingProfile],
                                   transaction: Transaction) -> Optional[ChargingProfile]:
    """Profil déjà appliqué à cette session, s'il est unique"""
    matching = [
        charging_profile for charging_profile in charging_profiles
        if charging_profile.profile.transactionId == transaction.id
        and charging_profile.charging_station_id == transaction.charging_station_id
        and charging_profile.connector_id == transaction.connector_id
    ]
    if len(matching) == 1:
        return matching[0]
    return None


def get_current_profile_limit(charging_profile: ChargingProfile, now: datetime) -> float:
    """
    Limite totale (A) de la période du profil active à l'instant now

    Retourne -1 si le profil n'a pas commencé ou est expiré.
    """
    schedule = charging_profile.profile.chargingSchedule
    elapsed_seconds = (now - align_to(schedule.startSchedule, now)).total_seconds()
    if elapsed_seconds < 0 or elapsed_seconds >= schedule.duration:
        return -1

    current_limit = -1
    for period in schedule.chargingSchedulePeriod:
        if period.startPeriod > elapsed_seconds:
            break
        current_limit = period.limit
    return current_limit


def damped_threshold(previous_limit: float, buffer_percent: float) -> float:
    """
    Consommation du véhicule lors du dernier appel (limite sans le buffer),
    élargie de 20% de l'écart pour absorber les fluctuations normales
    """
    threshold = previous_limit / (1 + buffer_percent / 100)
    normal_fluctuation = (previous_limit - threshold) * NORMAL_FLUCTUATION_RATIO
    return threshold + normal_fluctuation


def exceeds_previous_limit(previous_limit: float, current_consumption: float,
                           buffer_percent: float, max_current: float) -> bool:
    """
    Le véhicule dépasse le seuil amorti alors que sa limite était bridée.

    Les trois valeurs doivent être dans la même unité (par phase en AC,
    total en DC).
    """
    threshold = damped_threshold(previous_limit, buffer_percent)
    return threshold < current_consumption and previous_limit < max_current


def with_buffer(current: float, buffer_percent: float) -> float:
    return current * (1 + buffer_percent / 100)
