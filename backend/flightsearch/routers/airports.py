from fastapi import APIRouter, Depends, HTTPException
from typing import List

from flightsearch.dependencies import get_catalog
from flightsearch.schemas.airport_schema import AirportItem
from flightsearch.services.airport_catalog import AirportCatalog, contains_pattern

router = APIRouter(
    prefix="/airports",
    tags=["airports"]
)

@router.get("", response_model=List[AirportItem])
async def search_airports(q: str = "", catalog: AirportCatalog = Depends(get_catalog)):
    """
    Airports whose IATA code or name contains `q` (case-insensitive), busiest first.
    A blank query matches nothing.
    """
    if not q.strip():
        return []
    return await catalog.search_airports(contains_pattern(q.strip()))

@router.get("/{iata_code}", response_model=AirportItem)
async def get_airport(iata_code: str, catalog: AirportCatalog = Depends(get_catalog)):
    airport = await catalog.get_airport_by_code(iata_code.strip().upper())
    if airport is None:
        raise HTTPException(status_code=404, detail=f"Unknown airport code: {iata_code}")
    return airport
