import asyncio
import logging
import os
from pathlib import Path
from typing import Union

from pydantic import BaseModel, ValidationError

from flightsearch.config import settings
from flightsearch.services.value_stream import Subscription, ValueStream

logger = logging.getLogger(__name__)


class UserPreferences(BaseModel):
    search_query: str = ""


class UserPreferencesRepository:
    """
    Durable key/value preferences kept in a small JSON document.

    Only `search_query` is recognized. Read failures degrade to an empty
    query and write failures are logged and dropped, callers never see them.
    """

    def __init__(self, path: Union[str, Path, None] = None):
        self._path = Path(path or settings.preferences_path)
        self._write_lock = asyncio.Lock()
        self._search_query: ValueStream[str] = ValueStream(name="search_query")

    async def load(self) -> str:
        """Read the persisted query and publish it."""
        query = await asyncio.to_thread(self._read_query)
        self._search_query.emit(query)
        return query

    async def observe_query(self) -> Subscription[str]:
        """Subscribe to the persisted query, starting with the stored value."""
        if not self._search_query.has_value:
            await self.load()
        return self._search_query.subscribe()

    async def save_search_query(self, query: str) -> None:
        # asyncio.Lock is FIFO, so writes land in call order
        async with self._write_lock:
            try:
                await asyncio.to_thread(self._write_query, query)
            except OSError as e:
                logger.error(f"Failed to persist search query to {self._path}: {e}")
                return
        self._search_query.emit(query)

    def _read_query(self) -> str:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return ""
        except OSError as e:
            logger.error(f"Error reading preferences from {self._path}: {e}")
            return ""
        except UnicodeDecodeError as e:
            logger.warning(f"Ignoring undecodable preferences file {self._path}: {e}")
            return ""

        try:
            return UserPreferences.model_validate_json(raw).search_query
        except ValidationError as e:
            logger.warning(f"Ignoring corrupt preferences file {self._path}: {e}")
            return ""

    def _write_query(self, query: str) -> None:
        payload = UserPreferences(search_query=query).model_dump_json()
        self._path.parent.mkdir(parents=True, exist_ok=True)
        # Write-then-rename keeps the old document until the new one is complete
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        tmp_path.write_text(payload, encoding="utf-8")
        os.replace(tmp_path, self._path)
