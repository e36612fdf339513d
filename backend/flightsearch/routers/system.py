from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import func, select
from flightsearch.dependencies import get_db
from flightsearch.models.airport import Airport
from flightsearch.models.favorite import Favorite

router = APIRouter(prefix="/system-health", tags=["System"])

@router.get("")
def get_system_health(db: Session = Depends(get_db)):
    total_airports = db.execute(select(func.count(Airport.id))).scalar() or 0
    total_favorites = db.execute(select(func.count(Favorite.id))).scalar() or 0
    busiest = db.execute(
        select(Airport).order_by(Airport.passengers.desc(), Airport.id.asc()).limit(1)
    ).scalar_one_or_none()

    return {
        "total_airports": total_airports,
        "total_favorites": total_favorites,
        "busiest_airport": busiest.iata_code if busiest else None,
    }
