"""Character-scoped XML API endpoints."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, TypeVar

from eve_lib.eve_online.base import BaseEntity
from eve_lib.eve_online.models import (
    AccountBalance,
    AssetList,
    CharacterInfo,
    EveApiResponse,
    KillLog,
    Locations,
    MarketOrders,
    SkillQueue,
    WalletJournal,
    WalletTransactions,
)

if TYPE_CHECKING:
    from eve_lib.eve_online.api_key import ApiKey

T = TypeVar("T")


class Character(BaseEntity):
    """A character exposed by an API key.

    Instances are normally obtained from ``ApiKey.get_characters``.
    """

    # Wallet division of a character; characters only have the one
    ACCOUNT_KEY = 1000

    def __init__(self, key: ApiKey, character_id: int, character_name: str) -> None:
        """Create a character bound to a key.

        Args:
            key: A key exposing this character
            character_id: Character ID
            character_name: Character name
        """
        super().__init__(base_url=key.base_url, dispatcher=key.dispatcher)
        self.key = key
        self.character_id = character_id
        self.character_name = character_name

    async def _character_request(
        self,
        shape: type[T],
        rel_path: str,
        *pairs: object,
    ) -> EveApiResponse[T]:
        return await self._request(shape, rel_path, self.key, "characterID", self.character_id, *pairs)

    async def get_character_info(self) -> EveApiResponse[CharacterInfo]:
        """Get general information about the character."""
        return await self._character_request(CharacterInfo, "/eve/CharacterInfo.xml.aspx")

    async def get_account_balance(self) -> EveApiResponse[AccountBalance]:
        """Get the ISK balance of the character."""
        return await self._character_request(AccountBalance, "/char/AccountBalance.xml.aspx")

    async def get_asset_list(self) -> EveApiResponse[AssetList]:
        """Get all assets owned by the character, containers nested."""
        return await self._character_request(AssetList, "/char/AssetList.xml.aspx")

    async def get_skill_queue(self) -> EveApiResponse[SkillQueue]:
        return await self._character_request(SkillQueue, "/char/SkillQueue.xml.aspx")

    async def get_kill_log(self, before_kill_id: int | None = None) -> EveApiResponse[KillLog]:
        """Get the most recent kills and losses of the character.

        Args:
            before_kill_id: Only return kills before this kill ID, for walking back

        Returns:
            Kill log
        """
        rel_path = "/char/KillLog.xml.aspx"
        if before_kill_id is None:
            return await self._character_request(KillLog, rel_path)
        return await self._character_request(KillLog, rel_path, "beforeKillID", before_kill_id)

    async def get_locations(self, item_ids: Sequence[int]) -> EveApiResponse[Locations]:
        """Get names and coordinates of items.

        Args:
            item_ids: Item IDs, sent as one comma-separated parameter

        Returns:
            Locations (coordinates are 0 for items inside stations)

        Raises:
            ValueError: If no item IDs are given
        """
        if not item_ids:
            raise ValueError("At least one item ID is required")
        return await self._character_request(
            Locations, "/char/Locations.xml.aspx", "IDs", list(item_ids)
        )

    async def get_market_orders(self, order_id: int | None = None) -> EveApiResponse[MarketOrders]:
        """Get market orders of the character, or a single order.

        Args:
            order_id: Only return this order

        Returns:
            Market orders
        """
        rel_path = "/char/MarketOrders.xml.aspx"
        if order_id is None:
            return await self._character_request(MarketOrders, rel_path)
        return await self._character_request(MarketOrders, rel_path, "orderID", order_id)

    async def get_wallet_journal(
        self,
        count: int = 50,
        from_id: int | None = None,
    ) -> EveApiResponse[WalletJournal]:
        """Get wallet journal entries.

        Args:
            count: Number of rows to return (max 2560)
            from_id: Walk the journal backwards from this ref ID

        Returns:
            Wallet journal
        """
        rel_path = "/char/WalletJournal.xml.aspx"
        if from_id is None:
            return await self._character_request(WalletJournal, rel_path, "rowCount", count)
        return await self._character_request(
            WalletJournal, rel_path, "rowCount", count, "fromID", from_id
        )

    async def get_wallet_transactions(
        self,
        count: int = 1000,
        from_id: int | None = None,
    ) -> EveApiResponse[WalletTransactions]:
        """Get market transactions.

        Args:
            count: Number of rows to return (max 2560)
            from_id: Walk the transactions backwards from this transaction ID

        Returns:
            Wallet transactions
        """
        rel_path = "/char/WalletTransactions.xml.aspx"
        if from_id is None:
            return await self._character_request(WalletTransactions, rel_path, "rowCount", count)
        return await self._character_request(
            WalletTransactions, rel_path, "rowCount", count, "fromID", from_id
        )

    def __repr__(self) -> str:
        return f"Character(character_id={self.character_id}, name={self.character_name!r})"
