from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.engine import make_url
from sqlalchemy.pool import StaticPool
from smart_charging.config import settings
import logging

logger = logging.getLogger(__name__)


def create_database_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Engine async selon le backend

    - PostgreSQL : pool dimensionné par les settings
    - SQLite en mémoire : une seule connexion partagée, sinon chaque
      connexion verrait une base vide
    """
    url = make_url(database_url)
    options = {"echo": echo, "pool_pre_ping": True}
    if url.get_backend_name() == "sqlite":
        if url.database in (None, "", ":memory:"):
            options["poolclass"] = StaticPool
    else:
        options["pool_size"] = settings.DATABASE_POOL_SIZE
        options["max_overflow"] = settings.DATABASE_MAX_OVERFLOW
    return create_async_engine(url, **options)


engine = create_database_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)

# Session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def get_db() -> AsyncSession:
    """
    Session de la requête en cours, annulée si la requête échoue
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def init_db():
    """
    Créer les tables manquantes (sites, bornes, sessions, profils...)
    """
    from smart_charging.database.models import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info(f"Database initialized ({len(Base.metadata.tables)} tables)")


async def close_db():
    await engine.dispose()
    logger.info("Database connections closed")
