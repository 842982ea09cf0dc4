from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from smart_charging.config import settings
from smart_charging.api.routes import smart_charging
from smart_charging.database.connection import init_db, close_db

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle events"""
    # Startup
    logger.info("=" * 60)
    logger.info(f"Starting {settings.API_TITLE}")
    logger.info("=" * 60)

    await init_db()
    logger.info("✓ Database initialized")

    if not settings.OPTIMIZER_URL:
        logger.warning("OPTIMIZER_URL is not set, smart charging cycles will fail")
    logger.info(f"✓ Sticky limitation: {settings.STICKY_LIMITATION} "
                f"(AC buffer {settings.LIMIT_BUFFER_AC}%, DC buffer {settings.LIMIT_BUFFER_DC}%)")

    yield

    # Shutdown
    logger.info("Shutting down...")
    await close_db()
    logger.info("✓ Shutdown complete")


app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(smart_charging.router, prefix=settings.API_PREFIX)


@app.get("/")
async def root():
    """Route racine"""
    return {
        "name": settings.API_TITLE,
        "version": settings.API_VERSION,
        "status": "running",
        "endpoints": {
            "docs": "/docs",
            "smart_charging": f"{settings.API_PREFIX}/sites/{{site_id}}/smart-charging",
            "check_connection": f"{settings.API_PREFIX}/smart-charging/check-connection"
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "optimizer_configured": bool(settings.OPTIMIZER_URL and settings.OPTIMIZER_USER
                                     and settings.OPTIMIZER_PASSWORD),
        "sticky_limitation": settings.STICKY_LIMITATION
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "smart_charging.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
