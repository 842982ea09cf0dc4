from typing import Iterable, List, Optional, Protocol

from smart_charging.models.car import Car
from smart_charging.models.charging_profile import ChargingProfile
from smart_charging.models.charging_station import ChargingStation
from smart_charging.models.site import Site
from smart_charging.models.transaction import Transaction

# Paramètre OCPP de la borne donnant le nombre max de périodes d'un profil
CHARGING_SCHEDULE_MAX_PERIODS_KEY = "ChargingScheduleMaxPeriods"


class SmartChargingStorage(Protocol):
    """Lectures (et écriture des profils) dont le smart charging a besoin"""

    async def get_site(self, site_id: str) -> Optional[Site]:
        ...

    async def get_charging_stations(self, site_id: str) -> List[ChargingStation]:
        ...

    async def get_charging_station(self, charging_station_id: str) -> Optional[ChargingStation]:
        ...

    async def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        ...

    async def get_car(self, car_id: str) -> Optional[Car]:
        ...

    async def get_charging_profiles(self, charging_station_ids: Iterable[str]) -> List[ChargingProfile]:
        ...

    async def get_station_setting(self, charging_station_id: str, key: str) -> Optional[str]:
        ...

    async def save_charging_profiles(self, charging_profiles: List[ChargingProfile]):
        ...
