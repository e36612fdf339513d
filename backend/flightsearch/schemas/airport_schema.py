from pydantic import BaseModel, ConfigDict, Field, field_validator


class AirportItem(BaseModel):
    """Immutable airport snapshot detached from any database session."""
    id: int
    iata_code: str = Field(..., min_length=3, max_length=3)
    name: str
    passengers: int

    model_config = ConfigDict(from_attributes=True, frozen=True)


class SelectAirportRequest(BaseModel):
    iata_code: str = Field(..., min_length=3, max_length=3, description="IATA Airport Code, 3 chars.")

    @field_validator("iata_code")
    def normalize_iata(cls, v):
        v = v.strip().upper()
        if not v.isalpha():
            raise ValueError("IATA code must be exactly 3 letters.")
        return v
