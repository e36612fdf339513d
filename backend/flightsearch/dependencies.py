from fastapi import Request

from flightsearch.services.airport_catalog import AirportCatalog
from flightsearch.services.favorites_store import FavoritesStore
from flightsearch.services.flight_view_model import FlightSearchViewModel


def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()

def get_catalog(request: Request) -> AirportCatalog:
    return request.app.state.catalog

def get_favorites_store(request: Request) -> FavoritesStore:
    return request.app.state.favorites_store

def get_view_model(request: Request) -> FlightSearchViewModel:
    return request.app.state.view_model
