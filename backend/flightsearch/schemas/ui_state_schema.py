from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from flightsearch.schemas.airport_schema import AirportItem
from flightsearch.schemas.favorite_schema import FavoriteFlight


class Screen(str, Enum):
    FAVORITES = "favorites"
    SUGGESTIONS = "suggestions"
    DESTINATIONS = "destinations"


class FlightSearchUiState(BaseModel):
    search_query: str = ""
    selected_airport: Optional[AirportItem] = None
    screen: Screen = Screen.FAVORITES
    suggestions: List[AirportItem] = []
    destinations: List[AirportItem] = []
    favorites: List[FavoriteFlight] = []
    # Destinations of the selected departure that are stored as favorites
    favorite_destination_codes: List[str] = []

    model_config = ConfigDict(frozen=True)


class SearchQueryRequest(BaseModel):
    query: str = ""
