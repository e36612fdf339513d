import asyncio
import logging
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import sessionmaker

from flightsearch.database import SessionLocal
from flightsearch.models.airport import Airport
from flightsearch.schemas.airport_schema import AirportItem

logger = logging.getLogger(__name__)

LIKE_ESCAPE = "\\"


def contains_pattern(text: str) -> str:
    """LIKE pattern matching `text` as a literal substring."""
    for char in (LIKE_ESCAPE, "%", "_"):
        text = text.replace(char, LIKE_ESCAPE + char)
    return f"%{text}%"


class AirportCatalog:
    """
    Read-only accessor over the bundled airport relation.

    Every query runs in a worker thread with its own short-lived session and
    returns detached AirportItem snapshots, so callers on the event loop never
    block and never hold ORM state.
    """

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self._session_factory = session_factory

    async def search_airports(self, pattern: str) -> List[AirportItem]:
        """
        Case-insensitive LIKE match against IATA code or name, busiest first.

        `pattern` is used verbatim, so callers add their own `%` wildcards
        (e.g. '%par%'). A backslash escapes a literal `%` or `_`; see
        contains_pattern.
        """
        return await asyncio.to_thread(self._search_airports, pattern)

    async def get_all_airports(self) -> List[AirportItem]:
        return await asyncio.to_thread(self._get_all_airports)

    async def get_airport_by_code(self, iata_code: str) -> Optional[AirportItem]:
        return await asyncio.to_thread(self._get_airport_by_code, iata_code)

    def _search_airports(self, pattern: str) -> List[AirportItem]:
        stmt = (
            select(Airport)
            .where(
                or_(
                    Airport.iata_code.ilike(pattern, escape=LIKE_ESCAPE),
                    Airport.name.ilike(pattern, escape=LIKE_ESCAPE),
                )
            )
            .order_by(Airport.passengers.desc(), Airport.id.asc())
        )
        with self._session_factory() as db:
            rows = db.execute(stmt).scalars().all()
            results = [AirportItem.model_validate(row) for row in rows]
        logger.debug(f"Search {pattern!r} matched {len(results)} airports")
        return results

    def _get_all_airports(self) -> List[AirportItem]:
        stmt = select(Airport).order_by(Airport.passengers.desc(), Airport.id.asc())
        with self._session_factory() as db:
            return [AirportItem.model_validate(row) for row in db.execute(stmt).scalars().all()]

    def _get_airport_by_code(self, iata_code: str) -> Optional[AirportItem]:
        with self._session_factory() as db:
            row = db.execute(select(Airport).where(Airport.iata_code == iata_code)).scalar_one_or_none()
            return AirportItem.model_validate(row) if row else None
