"""Client for the public CREST JSON API."""

from __future__ import annotations

from typing import Any, TypeVar

from eve_lib.api_client.dispatcher import RequestDispatcher, get_default_dispatcher
from eve_lib.api_client.endpoints import build_request
from eve_lib.api_client.serializers import JsonSerializer
from eve_lib.config import get_settings
from eve_lib.crest.models import CrestMarketHistory, CrestPilotTournamentStats
from eve_lib.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# Resources without a typed model are returned as plain JSON objects
Dynamic = dict[str, Any]


class EveCrest:
    """Async client for public CREST resources.

    Shares the dispatcher with the XML API entities; requests carry a JSON
    serializer of their own.
    """

    def __init__(
        self,
        base_url: str | None = None,
        dispatcher: RequestDispatcher | None = None,
    ) -> None:
        """Initialize the CREST client.

        Args:
            base_url: CREST root (defaults to settings)
            dispatcher: Request dispatcher (defaults to the shared one)
        """
        self.base_url = base_url or get_settings().crest_base_url
        self._dispatcher = dispatcher
        self._serializer = JsonSerializer()

    @property
    def dispatcher(self) -> RequestDispatcher:
        if self._dispatcher is None:
            self._dispatcher = get_default_dispatcher()
        return self._dispatcher

    async def _request(self, shape: type[T], rel_path: str) -> T:
        descriptor = build_request(self.base_url, rel_path, shape, serializer=self._serializer)
        return await self.dispatcher.dispatch(descriptor)

    async def get_killmail(self, kill_id: int, kill_hash: str) -> Dynamic:
        """Get a killmail.

        Args:
            kill_id: Kill ID
            kill_hash: Killmail hash

        Returns:
            Killmail document
        """
        return await self._request(Dynamic, f"killmails/{kill_id}/{kill_hash}/")

    async def get_incursions(self) -> Dynamic:
        """Get active incursions."""
        return await self._request(Dynamic, "incursions/")

    async def get_alliances(self) -> Dynamic:
        """Get the first page of alliances."""
        return await self._request(Dynamic, "alliances/")

    async def get_alliance(self, alliance_id: int) -> Dynamic:
        return await self._request(Dynamic, f"alliances/{alliance_id}/")

    async def get_market_history(self, region_id: int, type_id: int) -> CrestMarketHistory:
        """Get daily market history of an item type in a region.

        Args:
            region_id: Region ID
            type_id: Item type ID

        Returns:
            Market history
        """
        logger.debug("Fetching market history", region_id=region_id, type_id=type_id)
        return await self._request(
            CrestMarketHistory,
            f"market/{region_id}/types/{type_id}/history/",
        )

    async def get_pilot_tournament_stats(self, href: str) -> CrestPilotTournamentStats:
        """Follow a link to a pilot's tournament statistics.

        Args:
            href: Absolute or root-relative link taken from another resource

        Returns:
            Pilot tournament statistics
        """
        return await self._request(CrestPilotTournamentStats, href)
