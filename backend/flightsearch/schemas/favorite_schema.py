from pydantic import BaseModel, ConfigDict, Field, field_validator

from flightsearch.schemas.airport_schema import AirportItem


class FavoriteItem(BaseModel):
    id: int
    departure_code: str
    destination_code: str

    model_config = ConfigDict(from_attributes=True, frozen=True)


class FavoriteFlight(BaseModel):
    """A favorite with both endpoints resolved against the catalog."""
    id: int
    departure_airport: AirportItem
    destination_airport: AirportItem

    model_config = ConfigDict(frozen=True)


class FavoriteRouteRequest(BaseModel):
    departure_code: str = Field(..., min_length=3, max_length=3, description="IATA Airport Code, 3 chars.")
    destination_code: str = Field(..., min_length=3, max_length=3, description="IATA Airport Code, 3 chars.")

    @field_validator("departure_code", "destination_code")
    def normalize_iata(cls, v):
        v = v.strip().upper()
        if not v.isalpha():
            raise ValueError("IATA code must be exactly 3 letters.")
        return v
