from fastapi import APIRouter, Depends
from typing import List

from flightsearch.dependencies import get_favorites_store
from flightsearch.schemas.favorite_schema import FavoriteItem
from flightsearch.services.favorites_store import FavoritesStore

router = APIRouter(prefix="/favorites", tags=["favorites"])

@router.get("", response_model=List[FavoriteItem])
async def list_favorites(store: FavoritesStore = Depends(get_favorites_store)):
    """Stored favorite rows, including ones whose airports are no longer in the catalog."""
    return await store.refresh()
