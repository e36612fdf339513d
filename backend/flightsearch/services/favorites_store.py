import asyncio
import logging
import threading
from typing import Any, Callable, List, Optional, Tuple

from sqlalchemy import delete, select
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.orm import Session, sessionmaker

from flightsearch.database import SessionLocal
from flightsearch.models.favorite import Favorite
from flightsearch.schemas.favorite_schema import FavoriteItem
from flightsearch.services.value_stream import Subscription, ValueStream

logger = logging.getLogger(__name__)


class FavoritesStore:
    """
    Mutable set of (departure, destination) route pairs.

    Writes run one at a time in a worker thread. Each write reloads the table
    under the same lock and the resulting snapshot (ordered by insertion) is
    emitted on the favorites stream. Snapshots carry a version so a slow
    thread can never publish an older table state over a newer one.
    """

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self._session_factory = session_factory
        self._write_lock = threading.Lock()
        self._version = 0
        self._published_version = 0
        self._favorites: ValueStream[List[FavoriteItem]] = ValueStream(name="favorites")

    async def list_favorites(self) -> Subscription[List[FavoriteItem]]:
        """Subscribe to favorites snapshots, starting with the current one."""
        if not self._favorites.has_value:
            await self.refresh()
        return self._favorites.subscribe()

    def get_favorites(self) -> List[FavoriteItem]:
        return self._favorites.value if self._favorites.has_value else []

    async def refresh(self) -> List[FavoriteItem]:
        _, snapshot = await self._run(None)
        return snapshot

    async def add_favorite(self, departure_code: str, destination_code: str):
        """Insert the pair, replacing an existing row for the same pair."""
        await self._run(self._insert_pair, departure_code, destination_code)

    async def remove_favorite(self, departure_code: str, destination_code: str) -> bool:
        """Delete the pair. Returns False if it was not stored."""
        removed, _ = await self._run(self._delete_pair, departure_code, destination_code)
        return removed

    async def remove_favorite_by_id(self, favorite_id: int) -> bool:
        removed, _ = await self._run(self._delete_id, favorite_id)
        return removed

    async def toggle_favorite(self, departure_code: str, destination_code: str) -> bool:
        """
        Remove the pair if stored, insert it otherwise, as one serialized step
        against the table itself. Returns the new membership.
        """
        is_favorite, _ = await self._run(self._toggle_pair, departure_code, destination_code)
        logger.info(f"Favorite {departure_code}->{destination_code} {'added' if is_favorite else 'removed'}")
        return is_favorite

    async def _run(self, operation: Optional[Callable[..., Any]], *args) -> Tuple[Any, List[FavoriteItem]]:
        result, version, snapshot = await asyncio.to_thread(self._execute, operation, *args)
        # Back on the event loop: only newer table states reach subscribers
        if version > self._published_version:
            self._published_version = version
            self._favorites.emit(snapshot)
        return result, snapshot

    def _execute(self, operation: Optional[Callable[..., Any]], *args):
        with self._write_lock:
            with self._session_factory() as db:
                result = None
                if operation is not None:
                    try:
                        result = operation(db, *args)
                        db.commit()
                    except Exception:
                        db.rollback()
                        raise
                rows = db.execute(select(Favorite).order_by(Favorite.id.asc())).scalars().all()
                snapshot = [FavoriteItem.model_validate(row) for row in rows]
            self._version += 1
            return result, self._version, snapshot

    @staticmethod
    def _insert_pair(db: Session, departure_code: str, destination_code: str) -> None:
        stmt = insert(Favorite).values(departure_code=departure_code, destination_code=destination_code)
        # A conflict on uq_departure_destination replaces the old row
        db.execute(stmt.prefix_with("OR REPLACE"))

    @staticmethod
    def _delete_pair(db: Session, departure_code: str, destination_code: str) -> bool:
        stmt = delete(Favorite).where(
            Favorite.departure_code == departure_code,
            Favorite.destination_code == destination_code,
        )
        return db.execute(stmt).rowcount > 0

    @staticmethod
    def _delete_id(db: Session, favorite_id: int) -> bool:
        return db.execute(delete(Favorite).where(Favorite.id == favorite_id)).rowcount > 0

    @classmethod
    def _toggle_pair(cls, db: Session, departure_code: str, destination_code: str) -> bool:
        if cls._delete_pair(db, departure_code, destination_code):
            return False
        cls._insert_pair(db, departure_code, destination_code)
        return True
