"""Tests for character-scoped endpoints."""

from __future__ import annotations

from decimal import Decimal

import pytest

from eve_lib.eve_online.api_key import ApiKey
from eve_lib.eve_online.character import Character

BASE = "https://api.eveonline.com"
CREDENTIALS = "keyID=1&vCode=v&characterID=123"


@pytest.fixture
def build_character(stub_transport, make_dispatcher, ok, envelope):
    """Build a character whose every request answers with the given result XML."""

    def _build(result: str = '<rowset name="unused" />'):
        transport = stub_transport(ok(envelope(result)))
        key = ApiKey(1, "v", dispatcher=make_dispatcher(transport))
        return Character(key, 123, "Test Pilot"), transport

    return _build


class TestCharacter:
    """Tests for Character construction."""

    def test_shares_key_dispatcher_and_base_url(self, stub_transport, make_dispatcher) -> None:
        dispatcher = make_dispatcher(stub_transport())
        key = ApiKey(1, "v", base_url="https://api.testeveonline.com", dispatcher=dispatcher)

        character = Character(key, 123, "Test Pilot")

        assert character.dispatcher is dispatcher
        assert character.base_url == "https://api.testeveonline.com"
        assert repr(character) == "Character(character_id=123, name='Test Pilot')"


class TestCharacterEndpoints:
    """Tests for request construction and decoding of character endpoints."""

    @pytest.mark.asyncio
    async def test_get_character_info(self, build_character) -> None:
        character, transport = build_character(
            "<characterID>123</characterID>"
            "<characterName>Test Pilot</characterName>"
            "<race>Caldari</race>"
            "<bloodline>Achura</bloodline>"
            "<corporationID>1000009</corporationID>"
            "<corporation>Some Corp</corporation>"
            "<corporationDate>2013-02-02 20:02:00</corporationDate>"
            "<securityStatus>1.25</securityStatus>"
        )

        response = await character.get_character_info()

        assert transport.urls == [f"{BASE}/eve/CharacterInfo.xml.aspx?{CREDENTIALS}"]
        info = response.result
        assert info.character_name == "Test Pilot"
        assert info.race == "Caldari"
        assert info.security_status == pytest.approx(1.25)
        assert info.skill_points is None

    @pytest.mark.asyncio
    async def test_get_account_balance(self, build_character) -> None:
        character, transport = build_character(
            '<rowset name="accounts" key="accountID">'
            '<row accountID="1" accountKey="1000" balance="10.50" />'
            "</rowset>"
        )

        response = await character.get_account_balance()

        assert transport.urls == [f"{BASE}/char/AccountBalance.xml.aspx?{CREDENTIALS}"]
        assert response.result.accounts[0].account_key == Character.ACCOUNT_KEY
        assert response.result.accounts[0].balance == Decimal("10.50")

    @pytest.mark.asyncio
    async def test_get_asset_list(self, build_character) -> None:
        character, transport = build_character()

        response = await character.get_asset_list()

        assert transport.urls == [f"{BASE}/char/AssetList.xml.aspx?{CREDENTIALS}"]
        assert response.result.assets == []

    @pytest.mark.asyncio
    async def test_get_skill_queue(self, build_character) -> None:
        character, transport = build_character(
            '<rowset name="skillqueue" key="queuePosition">'
            '<row queuePosition="0" typeID="3413" level="4" startSP="8000" endSP="45255" '
            'startTime="" endTime="" />'
            "</rowset>"
        )

        response = await character.get_skill_queue()

        assert transport.urls == [f"{BASE}/char/SkillQueue.xml.aspx?{CREDENTIALS}"]
        entry = response.result.queue[0]
        assert entry.level == 4
        assert entry.start_time is None

    @pytest.mark.asyncio
    async def test_get_kill_log(self, build_character) -> None:
        character, transport = build_character()

        await character.get_kill_log()
        await character.get_kill_log(before_kill_id=63)

        assert transport.urls == [
            f"{BASE}/char/KillLog.xml.aspx?{CREDENTIALS}",
            f"{BASE}/char/KillLog.xml.aspx?{CREDENTIALS}&beforeKillID=63",
        ]

    @pytest.mark.asyncio
    async def test_get_locations_sends_ids_as_one_parameter(self, build_character) -> None:
        character, transport = build_character(
            '<rowset name="locations" key="itemID">'
            '<row itemID="1" itemName="Home" x="0" y="0" z="0" />'
            "</rowset>"
        )

        response = await character.get_locations([1, 2])

        assert transport.urls == [f"{BASE}/char/Locations.xml.aspx?{CREDENTIALS}&IDs=1%2C2"]
        assert response.result.locations[0].item_name == "Home"

    @pytest.mark.asyncio
    async def test_get_locations_requires_ids(self, build_character) -> None:
        character, transport = build_character()

        with pytest.raises(ValueError):
            await character.get_locations([])

        assert transport.fetch_count == 0

    @pytest.mark.asyncio
    async def test_get_market_orders(self, build_character) -> None:
        character, transport = build_character()

        await character.get_market_orders()
        await character.get_market_orders(order_id=99)

        assert transport.urls == [
            f"{BASE}/char/MarketOrders.xml.aspx?{CREDENTIALS}",
            f"{BASE}/char/MarketOrders.xml.aspx?{CREDENTIALS}&orderID=99",
        ]

    @pytest.mark.asyncio
    async def test_get_wallet_journal(self, build_character) -> None:
        character, transport = build_character(
            '<rowset name="transactions" key="refID">'
            '<row date="2014-12-01 10:00:00" refID="5" refTypeID="10" ownerName1="A" '
            'ownerID1="1" ownerName2="B" ownerID2="2" amount="-5.00" balance="100.00" '
            'reason="" />'
            "</rowset>"
        )

        response = await character.get_wallet_journal()
        await character.get_wallet_journal(count=10, from_id=5)

        assert transport.urls == [
            f"{BASE}/char/WalletJournal.xml.aspx?{CREDENTIALS}&rowCount=50",
            f"{BASE}/char/WalletJournal.xml.aspx?{CREDENTIALS}&rowCount=10&fromID=5",
        ]
        assert response.result.entries[0].amount == Decimal("-5.00")

    @pytest.mark.asyncio
    async def test_get_wallet_transactions(self, build_character) -> None:
        character, transport = build_character()

        await character.get_wallet_transactions()
        await character.get_wallet_transactions(from_id=7)

        assert transport.urls == [
            f"{BASE}/char/WalletTransactions.xml.aspx?{CREDENTIALS}&rowCount=1000",
            f"{BASE}/char/WalletTransactions.xml.aspx?{CREDENTIALS}&rowCount=1000&fromID=7",
        ]
