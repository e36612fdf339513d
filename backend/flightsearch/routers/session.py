import logging

from fastapi import APIRouter, Depends, HTTPException

from flightsearch.dependencies import get_catalog, get_view_model
from flightsearch.schemas.airport_schema import AirportItem, SelectAirportRequest
from flightsearch.schemas.favorite_schema import FavoriteRouteRequest
from flightsearch.schemas.ui_state_schema import FlightSearchUiState, SearchQueryRequest
from flightsearch.services.airport_catalog import AirportCatalog
from flightsearch.services.flight_view_model import FlightSearchViewModel

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/session",
    tags=["session"]
)

# Intents return immediately with the state as it is right now; pass
# `wait=true` to get the state after pending lookups and writes settle.

async def _current_state(view_model: FlightSearchViewModel, wait: bool) -> FlightSearchUiState:
    if wait:
        await view_model.drain()
    return view_model.ui_state.value

async def _resolve_airport(catalog: AirportCatalog, iata_code: str) -> AirportItem:
    airport = await catalog.get_airport_by_code(iata_code)
    if airport is None:
        logger.error(f"Invalid airport code: {iata_code}")
        raise HTTPException(status_code=404, detail=f"Unknown airport code: {iata_code}")
    return airport

@router.get("", response_model=FlightSearchUiState)
async def get_session_state(wait: bool = False, view_model: FlightSearchViewModel = Depends(get_view_model)):
    return await _current_state(view_model, wait)

@router.post("/query", response_model=FlightSearchUiState)
async def change_query(
    request: SearchQueryRequest,
    wait: bool = False,
    view_model: FlightSearchViewModel = Depends(get_view_model),
):
    view_model.on_query_changed(request.query)
    return await _current_state(view_model, wait)

@router.post("/select", response_model=FlightSearchUiState)
async def select_departure(
    request: SelectAirportRequest,
    wait: bool = False,
    view_model: FlightSearchViewModel = Depends(get_view_model),
    catalog: AirportCatalog = Depends(get_catalog),
):
    airport = await _resolve_airport(catalog, request.iata_code)
    view_model.on_airport_selected(airport)
    return await _current_state(view_model, wait)

@router.post("/clear", response_model=FlightSearchUiState)
async def clear_session(wait: bool = False, view_model: FlightSearchViewModel = Depends(get_view_model)):
    view_model.on_clear()
    return await _current_state(view_model, wait)

@router.post("/favorites/toggle", response_model=FlightSearchUiState)
async def toggle_favorite(
    request: FavoriteRouteRequest,
    wait: bool = False,
    view_model: FlightSearchViewModel = Depends(get_view_model),
    catalog: AirportCatalog = Depends(get_catalog),
):
    if request.departure_code == request.destination_code:
        raise HTTPException(status_code=400, detail="Departure and destination cannot be the same")
    departure = await _resolve_airport(catalog, request.departure_code)
    destination = await _resolve_airport(catalog, request.destination_code)
    view_model.on_toggle_favorite(departure, destination)
    return await _current_state(view_model, wait)

@router.get("/favorites/check")
async def check_favorite(
    departure_code: str,
    destination_code: str,
    view_model: FlightSearchViewModel = Depends(get_view_model),
):
    departure_code = departure_code.strip().upper()
    destination_code = destination_code.strip().upper()
    return {
        "departure_code": departure_code,
        "destination_code": destination_code,
        "is_favorite": view_model.is_favorite(departure_code, destination_code),
    }

@router.delete("/favorites/{favorite_id}", response_model=FlightSearchUiState)
async def remove_favorite(
    favorite_id: int,
    wait: bool = False,
    view_model: FlightSearchViewModel = Depends(get_view_model),
):
    view_model.on_remove_favorite(favorite_id)
    return await _current_state(view_model, wait)
