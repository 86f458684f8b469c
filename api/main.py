"""FastAPI application for the golf round-tracking API."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from google import genai

from api.logging_config import setup_logging
from api.settings import AppSettings
from database.connection import DatabasePool
from database.db_manager import DatabaseManager
from llm.advice import AdviceProvider, AdviceService, GeminiAdviceProvider, NullAdviceProvider
from services.errors import ServiceError
from services.round_lifecycle import RoundLifecycleService
from tracking.config import TrackingConfig
from tracking.location_ingest import LocationIngestService

logger = logging.getLogger(__name__)


def _default_advice_provider(settings: AppSettings) -> AdviceProvider:
    if settings.google_api_key:
        return GeminiAdviceProvider(genai.Client(api_key=settings.google_api_key))
    logger.info("GOOGLE_API_KEY not set; advice endpoint uses the null provider")
    return NullAdviceProvider()


def _wire_services(
    app: FastAPI,
    db_manager: DatabaseManager,
    tracking_config: TrackingConfig,
    advice_provider: AdviceProvider,
) -> None:
    app.state.db_manager = db_manager
    app.state.lifecycle = RoundLifecycleService(db_manager)
    app.state.ingest = LocationIngestService(db_manager, tracking_config)
    app.state.advice = AdviceService(db_manager, advice_provider)


async def _open_database(settings: AppSettings) -> DatabaseManager:
    if settings.storage == "memory":
        logger.warning("Using in-memory storage; data is lost on restart")
        manager = DatabaseManager.in_memory()
        if settings.courses_file:
            loaded = manager.courses.load_file(settings.courses_file)
            logger.info("Loaded %s courses from %s", len(loaded), settings.courses_file)
        return manager
    pool = DatabasePool()
    await pool.initialize(dsn=settings.database_url)
    if settings.apply_schema:
        await pool.apply_schema()
    return DatabaseManager.from_pool(pool)


def create_app(
    settings: Optional[AppSettings] = None,
    db_manager: Optional[DatabaseManager] = None,
    advice_provider: Optional[AdviceProvider] = None,
    tracking_config: Optional[TrackingConfig] = None,
) -> FastAPI:
    """Build the app. Passing ``db_manager`` wires services immediately (tests)."""
    settings = settings or AppSettings.from_env()
    tracking_config = tracking_config or TrackingConfig.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open storage on startup unless injected, close it on shutdown."""
        setup_logging(settings.log_dir, settings.log_level)
        if getattr(app.state, "db_manager", None) is None:
            manager = await _open_database(settings)
            _wire_services(
                app,
                manager,
                tracking_config,
                advice_provider or _default_advice_provider(settings),
            )
        logger.info("API started (storage=%s)", settings.storage)
        yield
        await app.state.db_manager.close()

    app = FastAPI(
        title="Golf Round Tracking API",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if db_manager is not None:
        _wire_services(
            app, db_manager, tracking_config, advice_provider or NullAdviceProvider()
        )

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        if exc.status_code >= 500:
            logger.error("Unhandled service error on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    from api.routers import advice, locations, rounds, stats
    app.include_router(rounds.router, prefix="/api/rounds", tags=["rounds"])
    app.include_router(locations.router, prefix="/api/rounds", tags=["locations"])
    app.include_router(advice.router, prefix="/api/rounds", tags=["advice"])
    app.include_router(stats.router, prefix="/api/statistics", tags=["statistics"])

    @app.get("/api/health")
    async def health(request: Request):
        manager = getattr(request.app.state, "db_manager", None)
        healthy = await manager.health_check() if manager is not None else False
        return {"status": "ok" if healthy else "degraded", "database": healthy}

    return app


app = create_app()
