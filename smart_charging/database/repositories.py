from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, delete
from sqlalchemy.orm import selectinload
from smart_charging.database.models import (
    Site, ChargingStation, Connector, Transaction, Car, ChargingProfile, StationSetting
)
from smart_charging.core.station_lookup import SMART_CHARGING_STATUSES
from smart_charging.models import car as car_models
from smart_charging.models import charging_profile as profile_models
from smart_charging.models import charging_station as station_models
from smart_charging.models import site as site_models
from smart_charging.models import transaction as transaction_models
from typing import Iterable, List, Optional
import logging

logger = logging.getLogger(__name__)


class SiteRepository:
    """Repository pour les sites"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, site_id: str) -> Optional[Site]:
        result = await self.db.execute(select(Site).where(Site.id == site_id))
        return result.scalar_one_or_none()


class ChargingStationRepository:
    """Repository pour les bornes, chargées avec connecteurs et points de charge"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, charging_station_id: str) -> Optional[ChargingStation]:
        result = await self.db.execute(
            select(ChargingStation)
            .where(ChargingStation.id == charging_station_id)
            .options(
                selectinload(ChargingStation.connectors),
                selectinload(ChargingStation.charge_points)
            )
        )
        return result.scalar_one_or_none()

    async def get_by_site(self, site_id: str) -> List[ChargingStation]:
        """Récupérer les bornes d'un site ayant au moins un connecteur en charge"""
        result = await self.db.execute(
            select(ChargingStation)
            .where(
                and_(
                    ChargingStation.site_id == site_id,
                    ChargingStation.connectors.any(
                        Connector.status.in_(SMART_CHARGING_STATUSES)
                    )
                )
            )
            .options(
                selectinload(ChargingStation.connectors),
                selectinload(ChargingStation.charge_points)
            )
            .order_by(ChargingStation.id)
        )
        return list(result.scalars().all())

    async def get_ids_by_site(self, site_id: str) -> List[str]:
        result = await self.db.execute(
            select(ChargingStation.id).where(ChargingStation.site_id == site_id)
        )
        return list(result.scalars().all())


class TransactionRepository:
    """Repository pour les transactions"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, transaction_id: int) -> Optional[Transaction]:
        result = await self.db.execute(select(Transaction).where(Transaction.id == transaction_id))
        return result.scalar_one_or_none()


class CarRepository:
    """Repository pour les véhicules"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, car_id: str) -> Optional[Car]:
        result = await self.db.execute(
            select(Car)
            .where(Car.id == car_id)
            .options(selectinload(Car.car_catalog))
        )
        return result.scalar_one_or_none()


class ChargingProfileRepository:
    """Repository pour les profils de charge"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_charging_stations(self, charging_station_ids: Iterable[str]) -> List[ChargingProfile]:
        result = await self.db.execute(
            select(ChargingProfile)
            .where(ChargingProfile.charging_station_id.in_(list(charging_station_ids)))
            .order_by(ChargingProfile.charging_station_id, ChargingProfile.connector_id)
        )
        return list(result.scalars().all())

    async def replace(self, charging_station_id: str, connector_id: int,
                      charge_point_id: Optional[int], profile: dict) -> ChargingProfile:
        """Remplacer le profil d'un connecteur (sans commit)"""
        await self.db.execute(
            delete(ChargingProfile).where(
                and_(
                    ChargingProfile.charging_station_id == charging_station_id,
                    ChargingProfile.connector_id == connector_id
                )
            )
        )
        charging_profile = ChargingProfile(
            charging_station_id=charging_station_id,
            connector_id=connector_id,
            charge_point_id=charge_point_id,
            profile=profile
        )
        self.db.add(charging_profile)
        return charging_profile


class StationSettingRepository:
    """Repository pour les paramètres OCPP des bornes"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_value(self, charging_station_id: str, key: str) -> Optional[str]:
        result = await self.db.execute(
            select(StationSetting.value)
            .where(
                and_(
                    StationSetting.charging_station_id == charging_station_id,
                    StationSetting.key == key
                )
            )
        )
        return result.scalar_one_or_none()


class SqlSmartChargingStorage:
    """
    Accès base de données du smart charging

    Les lignes ORM sont converties en modèles pydantic détachés de la session.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.site_repo = SiteRepository(db)
        self.station_repo = ChargingStationRepository(db)
        self.transaction_repo = TransactionRepository(db)
        self.car_repo = CarRepository(db)
        self.profile_repo = ChargingProfileRepository(db)
        self.setting_repo = StationSettingRepository(db)

    async def get_site(self, site_id: str) -> Optional[site_models.Site]:
        site = await self.site_repo.get_by_id(site_id)
        return site_models.Site.model_validate(site) if site else None

    async def get_charging_stations(self, site_id: str) -> List[station_models.ChargingStation]:
        stations = await self.station_repo.get_by_site(site_id)
        return [station_models.ChargingStation.model_validate(station) for station in stations]

    async def get_charging_station(self, charging_station_id: str) -> Optional[station_models.ChargingStation]:
        station = await self.station_repo.get_by_id(charging_station_id)
        return station_models.ChargingStation.model_validate(station) if station else None

    async def get_transaction(self, transaction_id: int) -> Optional[transaction_models.Transaction]:
        transaction = await self.transaction_repo.get_by_id(transaction_id)
        return transaction_models.Transaction.model_validate(transaction) if transaction else None

    async def get_car(self, car_id: str) -> Optional[car_models.Car]:
        car = await self.car_repo.get_by_id(car_id)
        return car_models.Car.model_validate(car) if car else None

    async def get_charging_profiles(self, charging_station_ids: Iterable[str]) -> List[profile_models.ChargingProfile]:
        profiles = await self.profile_repo.get_by_charging_stations(charging_station_ids)
        return [profile_models.ChargingProfile.model_validate(profile) for profile in profiles]

    async def get_site_charging_profiles(self, site_id: str) -> List[profile_models.ChargingProfile]:
        charging_station_ids = await self.station_repo.get_ids_by_site(site_id)
        return await self.get_charging_profiles(charging_station_ids)

    async def get_station_setting(self, charging_station_id: str, key: str) -> Optional[str]:
        return await self.setting_repo.get_value(charging_station_id, key)

    async def save_charging_profiles(self, charging_profiles: List[profile_models.ChargingProfile]):
        for charging_profile in charging_profiles:
            await self.profile_repo.replace(
                charging_station_id=charging_profile.charging_station_id,
                connector_id=charging_profile.connector_id,
                charge_point_id=charging_profile.charge_point_id,
                profile=charging_profile.profile.model_dump(mode="json")
            )
        await self.db.commit()
        logger.info(f"{len(charging_profiles)} charging profiles saved")
