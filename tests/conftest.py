import pytest
from sqlalchemy.orm import sessionmaker

from catalog_loader.loader import upsert_airports
from flightsearch.database import build_engine, init_db
from flightsearch.services.airport_catalog import AirportCatalog
from flightsearch.services.favorites_store import FavoritesStore
from flightsearch.services.flight_view_model import FlightSearchViewModel
from flightsearch.services.preferences_store import UserPreferencesRepository

# Busiest first. "par" matches CDG and ORY by name ("Paris") and SPA by name ("Spartanburg").
SAMPLE_AIRPORTS = [
    {"id": 1, "iata_code": "ATL", "name": "Hartsfield-Jackson Atlanta International Airport", "passengers": 104653451},
    {"id": 2, "iata_code": "LAX", "name": "Los Angeles International Airport", "passengers": 75050875},
    {"id": 3, "iata_code": "CDG", "name": "Paris Charles de Gaulle Airport", "passengers": 67421316},
    {"id": 4, "iata_code": "JFK", "name": "John F. Kennedy International Airport", "passengers": 62464560},
    {"id": 5, "iata_code": "ORY", "name": "Paris Orly Airport", "passengers": 33120685},
    {"id": 6, "iata_code": "PRG", "name": "Vaclav Havel Airport Prague", "passengers": 13800000},
    {"id": 7, "iata_code": "SPA", "name": "Spartanburg Downtown Memorial Airport", "passengers": 1000},
]


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'flight_search_test.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def seeded_session_factory(session_factory):
    db = session_factory()
    try:
        upsert_airports(db, [dict(airport) for airport in SAMPLE_AIRPORTS])
    finally:
        db.close()
    return session_factory


@pytest.fixture
def catalog(seeded_session_factory):
    return AirportCatalog(seeded_session_factory)


@pytest.fixture
def favorites_store(seeded_session_factory):
    return FavoritesStore(seeded_session_factory)


@pytest.fixture
def preferences_path(tmp_path):
    return tmp_path / "prefs" / "flight_search_preferences.json"


@pytest.fixture
def preferences(preferences_path):
    return UserPreferencesRepository(preferences_path)


@pytest.fixture
def make_view_model(catalog, favorites_store, preferences):
    """Build a view model over the shared test stores; call inside the event loop test body."""
    def factory(**overrides):
        kwargs = {
            "catalog": catalog,
            "favorites_store": favorites_store,
            "preferences": preferences,
            "debounce_seconds": 0,
        }
        kwargs.update(overrides)
        return FlightSearchViewModel(**kwargs)
    return factory
