from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import sessionmaker
from catalog_loader.loader import ensure_catalog
from flightsearch.config import settings
from flightsearch.database import SessionLocal, engine as default_engine, init_db
from flightsearch.services.airport_catalog import AirportCatalog
from flightsearch.services.favorites_store import FavoritesStore
from flightsearch.services.flight_view_model import FlightSearchViewModel
from flightsearch.services.preferences_store import UserPreferencesRepository
import logging

# Configure basic logging
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


def create_app(engine=None, preferences_path: Optional[str] = None, debounce_seconds: Optional[float] = None) -> FastAPI:
    """
    Build the application. Defaults come from settings; tests pass their own
    engine and preferences file.
    """
    if engine is None:
        engine, session_factory = default_engine, SessionLocal
    else:
        session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db(engine)
        db = session_factory()
        try:
            # A missing or corrupt dataset is fatal: CatalogLoadError aborts startup
            ensure_catalog(db)
        finally:
            db.close()

        catalog = AirportCatalog(session_factory)
        favorites_store = FavoritesStore(session_factory)
        preferences = UserPreferencesRepository(preferences_path)
        view_model = FlightSearchViewModel(catalog, favorites_store, preferences, debounce_seconds)
        await view_model.start()

        app.state.session_factory = session_factory
        app.state.catalog = catalog
        app.state.favorites_store = favorites_store
        app.state.view_model = view_model
        try:
            yield
        finally:
            await view_model.close()
            logger.info("View model stopped")

    app = FastAPI(
        title=settings.app_name,
        description="Airport search, route destinations and favorite routes",
        version="1.0.0",
        lifespan=lifespan,
    )

    origins = ["*"]
    if settings.env == "production" and settings.cors_origins:
        origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]

    logger.info(f"CORS origins: {origins}")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from flightsearch.routers import airports, favorites, session, system
    app.include_router(airports.router)
    app.include_router(favorites.router)
    app.include_router(session.router)
    app.include_router(system.router)

    @app.get("/health")
    def health_check():
        """
        Basic health check endpoint to verify service is running.
        """
        return {"status": "ok", "environment": settings.env}

    return app


app = create_app()
