from flightsearch.services.value_stream import ValueStream, Subscription
from flightsearch.services.airport_catalog import AirportCatalog, contains_pattern
from flightsearch.services.favorites_store import FavoritesStore
from flightsearch.services.preferences_store import UserPreferencesRepository
from flightsearch.services.flight_view_model import FlightSearchViewModel, resolve_screen

__all__ = [
    "ValueStream",
    "Subscription",
    "AirportCatalog",
    "contains_pattern",
    "FavoritesStore",
    "UserPreferencesRepository",
    "FlightSearchViewModel",
    "resolve_screen",
]
