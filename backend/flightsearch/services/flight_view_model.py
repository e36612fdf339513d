"""
Flight search view model.

Single owner of what the user sees. It combines the persisted search query,
the selected departure airport, the favorites snapshot and catalog lookups
into one FlightSearchUiState, and exposes the user intents that change them.

All state lives on the event loop thread. Intents are plain (non-async)
methods: they update local state immediately and hand store or catalog work
to background tasks. A task result is applied only if the input that
triggered it is still the current one (generation counters), so a slow
lookup can never overwrite the answer to a newer question.
"""
import asyncio
import logging
from typing import Awaitable, Dict, List, Optional, Set

from flightsearch.config import settings
from flightsearch.schemas.airport_schema import AirportItem
from flightsearch.schemas.favorite_schema import FavoriteFlight, FavoriteItem
from flightsearch.schemas.ui_state_schema import FlightSearchUiState, Screen
from flightsearch.services.airport_catalog import AirportCatalog, contains_pattern
from flightsearch.services.favorites_store import FavoritesStore
from flightsearch.services.preferences_store import UserPreferencesRepository
from flightsearch.services.value_stream import Subscription, ValueStream

logger = logging.getLogger(__name__)


def resolve_screen(search_query: str, selected_airport: Optional[AirportItem]) -> Screen:
    """Which list the user sees, decided only by the query and the selection."""
    if selected_airport is not None:
        return Screen.DESTINATIONS
    if not search_query.strip():
        return Screen.FAVORITES
    return Screen.SUGGESTIONS


class FlightSearchViewModel:

    def __init__(
        self,
        catalog: AirportCatalog,
        favorites_store: FavoritesStore,
        preferences: UserPreferencesRepository,
        debounce_seconds: Optional[float] = None,
    ):
        self._catalog = catalog
        self._favorites_store = favorites_store
        self._preferences = preferences
        if debounce_seconds is None:
            debounce_seconds = settings.search_debounce_ms / 1000
        self._debounce_seconds = debounce_seconds

        self._search_query = ""
        self._selected_airport: Optional[AirportItem] = None
        self._suggestions: List[AirportItem] = []
        self._destinations: List[AirportItem] = []
        self._favorites: List[FavoriteItem] = []
        self._favorite_flights: List[FavoriteFlight] = []

        self._search_generation = 0
        self._destinations_generation = 0
        self._last_searched_query: Optional[str] = None
        self._query_edited = False

        self._tasks: Set[asyncio.Task] = set()
        self._collectors: List[asyncio.Task] = []
        self._subscriptions: List[Subscription] = []
        self._collecting = 0

        self.ui_state: ValueStream[FlightSearchUiState] = ValueStream(FlightSearchUiState(), name="ui_state")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def start(self):
        """Subscribe to the stores and apply their first emissions."""
        query_updates = await self._preferences.observe_query()
        favorites_updates = await self._favorites_store.list_favorites()
        self._subscriptions = [query_updates, favorites_updates]

        loop = asyncio.get_running_loop()
        self._collectors = [
            loop.create_task(self._restore_search_query(query_updates)),
            loop.create_task(self._collect_favorites(favorites_updates)),
        ]
        await self.drain()
        logger.info(f"View model started with query {self._search_query!r} and {len(self._favorites)} favorites")

    async def drain(self):
        """Wait until every in-flight intent and store emission has been applied."""
        while True:
            pending = [task for task in self._tasks if not task.done()]
            if pending:
                await asyncio.gather(*pending)
                continue
            if self._collecting or any(sub.backlog for sub in self._subscriptions):
                await asyncio.sleep(0.001)
                continue
            return

    async def close(self):
        await self.drain()
        for subscription in self._subscriptions:
            subscription.close()
        for task in self._collectors:
            task.cancel()
        await asyncio.gather(*self._collectors, return_exceptions=True)
        self._collectors = []
        self._subscriptions = []

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------
    @property
    def search_query(self) -> str:
        return self._search_query

    @property
    def selected_airport(self) -> Optional[AirportItem]:
        return self._selected_airport

    @property
    def suggestions(self) -> List[AirportItem]:
        return list(self._suggestions)

    @property
    def destinations(self) -> List[AirportItem]:
        return list(self._destinations)

    @property
    def favorite_flights(self) -> List[FavoriteFlight]:
        return list(self._favorite_flights)

    @property
    def screen(self) -> Screen:
        return resolve_screen(self._search_query, self._selected_airport)

    def is_favorite(self, departure_code: str, destination_code: str) -> bool:
        return any(
            fav.departure_code == departure_code and fav.destination_code == destination_code
            for fav in self._favorites
        )

    @property
    def favorite_destination_codes(self) -> List[str]:
        if self._selected_airport is None:
            return []
        departure_code = self._selected_airport.iata_code
        return sorted({fav.destination_code for fav in self._favorites if fav.departure_code == departure_code})

    # ------------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------------
    def on_query_changed(self, new_query: str):
        self._query_edited = True
        self._search_query = new_query
        self._clear_selection()
        self._schedule_search(new_query)
        self._publish()
        self._spawn(self._preferences.save_search_query(new_query), "save search query")

    def on_airport_selected(self, airport: AirportItem):
        self._selected_airport = airport
        self._destinations_generation += 1
        self._destinations = []
        self._publish()
        self._spawn(self._load_destinations(self._destinations_generation, airport), "load destinations")

    def on_clear(self):
        self._query_edited = True
        self._search_query = ""
        self._clear_selection()
        self._schedule_search("")
        self._publish()
        self._spawn(self._preferences.save_search_query(""), "save search query")

    def on_toggle_favorite(self, departure_airport: AirportItem, destination_airport: AirportItem):
        # Membership is decided by the store inside its own serialized write
        self._spawn(
            self._favorites_store.toggle_favorite(departure_airport.iata_code, destination_airport.iata_code),
            "toggle favorite",
        )

    def on_remove_favorite(self, favorite_id: int):
        self._spawn(self._favorites_store.remove_favorite_by_id(favorite_id), "remove favorite")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _clear_selection(self):
        self._selected_airport = None
        self._destinations_generation += 1
        self._destinations = []

    def _schedule_search(self, query: str):
        self._search_generation += 1
        if not query.strip():
            self._suggestions = []
            self._last_searched_query = None
            return
        self._spawn(self._search(self._search_generation, query), f"search {query!r}")

    async def _search(self, generation: int, query: str):
        await asyncio.sleep(self._debounce_seconds)
        if generation != self._search_generation:
            return  # superseded by a later edit
        if query == self._last_searched_query:
            return

        results = await self._catalog.search_airports(contains_pattern(query))
        if generation != self._search_generation:
            logger.debug(f"Discarding stale results for {query!r}")
            return

        self._last_searched_query = query
        self._suggestions = results
        self._publish()

    async def _load_destinations(self, generation: int, departure: AirportItem):
        airports = await self._catalog.get_all_airports()
        if generation != self._destinations_generation:
            return
        self._destinations = [airport for airport in airports if airport.iata_code != departure.iata_code]
        self._publish()

    async def _restore_search_query(self, updates: Subscription[str]):
        # Only the first emission matters: later ones are echoes of our own writes
        try:
            async for query in updates:
                if self._query_edited:
                    logger.debug("Query edited before the stored value arrived, keeping the edit")
                else:
                    self._search_query = query
                    if not query.strip():
                        self._selected_airport = None
                    self._schedule_search(query)
                    self._publish()
                break
        finally:
            updates.close()

    async def _collect_favorites(self, updates: Subscription[List[FavoriteItem]]):
        async for favorites in updates:
            self._collecting += 1
            try:
                self._favorites = list(favorites)
                self._publish()
                if updates.backlog:
                    continue  # a newer snapshot is already waiting
                flights = await self._resolve_favorites(favorites)
                self._favorite_flights = flights
                self._publish()
            except Exception as e:
                logger.error(f"Failed to resolve favorites: {e}", exc_info=True)
            finally:
                self._collecting -= 1

    async def _resolve_favorites(self, favorites: List[FavoriteItem]) -> List[FavoriteFlight]:
        airports: Dict[str, Optional[AirportItem]] = {}

        async def lookup(code: str) -> Optional[AirportItem]:
            if code not in airports:
                airports[code] = await self._catalog.get_airport_by_code(code)
            return airports[code]

        flights = []
        for fav in favorites:
            departure = await lookup(fav.departure_code)
            destination = await lookup(fav.destination_code)
            if departure is None or destination is None:
                logger.debug(f"Skipping favorite {fav.id}: {fav.departure_code}->{fav.destination_code} not in catalog")
                continue
            flights.append(FavoriteFlight(id=fav.id, departure_airport=departure, destination_airport=destination))
        return flights

    def _spawn(self, work: Awaitable, description: str):
        task = asyncio.get_running_loop().create_task(self._guard(work, description))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @staticmethod
    async def _guard(work: Awaitable, description: str):
        # Failures keep the previous derived value and never reach the caller
        try:
            await work
        except Exception as e:
            logger.error(f"{description} failed: {e}", exc_info=True)

    def _publish(self):
        self.ui_state.emit(
            FlightSearchUiState(
                search_query=self._search_query,
                selected_airport=self._selected_airport,
                screen=self.screen,
                suggestions=self._suggestions,
                destinations=self._destinations,
                favorites=self._favorite_flights,
                favorite_destination_codes=self.favorite_destination_codes,
            )
        )
