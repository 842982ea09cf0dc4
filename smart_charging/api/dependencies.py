from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession
from smart_charging.config import settings
from smart_charging.database.connection import get_db
from smart_charging.database.repositories import SqlSmartChargingStorage
from smart_charging.models.settings import OptimizerSettings
from smart_charging.services.smart_charging import OptimizerSmartCharging, SmartChargingProvider
import logging

logger = logging.getLogger(__name__)


async def get_storage(
        db: AsyncSession = Depends(get_db)
) -> SqlSmartChargingStorage:
    """Accès base de données pour la requête en cours"""
    return SqlSmartChargingStorage(db)


async def get_smart_charging(
        storage: SqlSmartChargingStorage = Depends(get_storage)
) -> SmartChargingProvider[OptimizerSettings]:
    """
    Dependency injection pour le fournisseur de smart charging
    La configuration est relue depuis les settings à chaque requête
    """
    return OptimizerSmartCharging(settings.optimizer_settings(), storage)
