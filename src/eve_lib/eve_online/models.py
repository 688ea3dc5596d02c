"""Pydantic models for XML API responses.

Documents are converted by ``element_to_data`` before validation: attributes
keep their XML names (used as aliases here) and ``<rowset name="x">``
elements become lists under ``x``. Values arrive as strings and are coerced.
"""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Generic, TypeVar

from pydantic import AfterValidator, BaseModel, BeforeValidator, Field

T = TypeVar("T")


def _ensure_utc(value: datetime) -> datetime:
    # The API reports naive timestamps in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _empty_to_none(value: Any) -> Any:
    return None if value == "" else value


EveDateTime = Annotated[datetime, AfterValidator(_ensure_utc)]
OptionalEveDateTime = Annotated[EveDateTime | None, BeforeValidator(_empty_to_none)]
OptionalInt = Annotated[int | None, BeforeValidator(_empty_to_none)]


class EveApiResponse(BaseModel, Generic[T]):
    """The ``<eveapi>`` envelope around every XML API result."""

    version: int = 2
    current_time: EveDateTime = Field(..., alias="currentTime")
    result: T
    cached_until: EveDateTime = Field(..., alias="cachedUntil")

    model_config = {"populate_by_name": True}


# Account


class ApiKeyType(str, Enum):
    """Scope of an API key."""

    ACCOUNT = "Account"
    CHARACTER = "Character"
    CORPORATION = "Corporation"


class KeyCharacter(BaseModel):
    """A character exposed by a key."""

    character_id: int = Field(..., alias="characterID")
    character_name: str = Field(..., alias="characterName")
    corporation_id: int = Field(..., alias="corporationID")
    corporation_name: str = Field(..., alias="corporationName")
    alliance_id: int = Field(0, alias="allianceID")
    alliance_name: str = Field("", alias="allianceName")
    faction_id: int = Field(0, alias="factionID")
    faction_name: str = Field("", alias="factionName")

    model_config = {"populate_by_name": True}


class KeyInfo(BaseModel):
    """Access mask, type and expiry of a key.

    ``expires`` is None for keys that never expire.
    """

    access_mask: int = Field(..., alias="accessMask")
    type: ApiKeyType
    expires: OptionalEveDateTime = None
    characters: list[KeyCharacter] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class ApiKeyInfo(BaseModel):
    """Result of /account/APIKeyInfo."""

    key: KeyInfo


class CharacterListEntry(BaseModel):
    """A character on an account."""

    name: str
    character_id: int = Field(..., alias="characterID")
    corporation_id: int = Field(..., alias="corporationID")
    corporation_name: str = Field(..., alias="corporationName")
    alliance_id: int = Field(0, alias="allianceID")
    alliance_name: str = Field("", alias="allianceName")
    faction_id: int = Field(0, alias="factionID")
    faction_name: str = Field("", alias="factionName")

    model_config = {"populate_by_name": True}


class CharacterList(BaseModel):
    """Result of /account/Characters."""

    characters: list[CharacterListEntry] = Field(default_factory=list)


# Character


class CharacterInfo(BaseModel):
    """Result of /eve/CharacterInfo (public and key-restricted fields)."""

    character_id: int = Field(..., alias="characterID")
    character_name: str = Field(..., alias="characterName")
    race: str = ""
    bloodline: str = ""
    corporation_id: int = Field(..., alias="corporationID")
    corporation: str = ""
    corporation_date: OptionalEveDateTime = Field(None, alias="corporationDate")
    alliance_id: int = Field(0, alias="allianceID")
    alliance: str = ""
    security_status: float = Field(0.0, alias="securityStatus")
    skill_points: OptionalInt = Field(None, alias="skillPoints")
    ship_type_name: str = Field("", alias="shipTypeName")
    last_known_location: str = Field("", alias="lastKnownLocation")

    model_config = {"populate_by_name": True}


class WalletAccount(BaseModel):
    account_id: int = Field(..., alias="accountID")
    account_key: int = Field(..., alias="accountKey")
    balance: Decimal

    model_config = {"populate_by_name": True}


class AccountBalance(BaseModel):
    """Result of /char/AccountBalance."""

    accounts: list[WalletAccount] = Field(default_factory=list)


class Asset(BaseModel):
    """An item; containers list their items under ``contents``."""

    item_id: int = Field(..., alias="itemID")
    location_id: int | None = Field(None, alias="locationID")
    type_id: int = Field(..., alias="typeID")
    quantity: int
    flag: int
    singleton: bool
    raw_quantity: OptionalInt = Field(None, alias="rawQuantity")
    contents: list[Asset] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class AssetList(BaseModel):
    """Result of /char/AssetList."""

    assets: list[Asset] = Field(default_factory=list)


class SkillQueueEntry(BaseModel):
    queue_position: int = Field(..., alias="queuePosition")
    type_id: int = Field(..., alias="typeID")
    level: int
    start_sp: int = Field(..., alias="startSP")
    end_sp: int = Field(..., alias="endSP")
    # Empty while training is paused
    start_time: OptionalEveDateTime = Field(None, alias="startTime")
    end_time: OptionalEveDateTime = Field(None, alias="endTime")

    model_config = {"populate_by_name": True}


class SkillQueue(BaseModel):
    """Result of /char/SkillQueue."""

    queue: list[SkillQueueEntry] = Field(default_factory=list, alias="skillqueue")

    model_config = {"populate_by_name": True}


class WalletJournalEntry(BaseModel):
    ref_id: int = Field(..., alias="refID")
    date: EveDateTime
    ref_type_id: int = Field(..., alias="refTypeID")
    owner_name1: str = Field("", alias="ownerName1")
    owner_id1: int = Field(0, alias="ownerID1")
    owner_name2: str = Field("", alias="ownerName2")
    owner_id2: int = Field(0, alias="ownerID2")
    amount: Decimal
    balance: Decimal
    reason: str = ""

    model_config = {"populate_by_name": True}


class WalletJournal(BaseModel):
    """Result of /char/WalletJournal."""

    entries: list[WalletJournalEntry] = Field(default_factory=list, alias="transactions")

    model_config = {"populate_by_name": True}


class WalletTransaction(BaseModel):
    transaction_date_time: EveDateTime = Field(..., alias="transactionDateTime")
    transaction_id: int = Field(..., alias="transactionID")
    quantity: int
    type_name: str = Field(..., alias="typeName")
    type_id: int = Field(..., alias="typeID")
    price: Decimal
    client_id: int = Field(..., alias="clientID")
    client_name: str = Field(..., alias="clientName")
    station_id: int = Field(..., alias="stationID")
    station_name: str = Field(..., alias="stationName")
    transaction_type: str = Field(..., alias="transactionType")
    transaction_for: str = Field("personal", alias="transactionFor")

    model_config = {"populate_by_name": True}


class WalletTransactions(BaseModel):
    """Result of /char/WalletTransactions."""

    transactions: list[WalletTransaction] = Field(default_factory=list)


class MarketOrder(BaseModel):
    order_id: int = Field(..., alias="orderID")
    char_id: int = Field(..., alias="charID")
    station_id: int = Field(..., alias="stationID")
    vol_entered: int = Field(..., alias="volEntered")
    vol_remaining: int = Field(..., alias="volRemaining")
    min_volume: int = Field(..., alias="minVolume")
    order_state: int = Field(..., alias="orderState")
    type_id: int = Field(..., alias="typeID")
    range: int
    account_key: int = Field(..., alias="accountKey")
    duration: int
    escrow: Decimal
    price: Decimal
    bid: bool
    issued: EveDateTime

    model_config = {"populate_by_name": True}


class MarketOrders(BaseModel):
    """Result of /char/MarketOrders."""

    orders: list[MarketOrder] = Field(default_factory=list)


class Location(BaseModel):
    item_id: int = Field(..., alias="itemID")
    item_name: str = Field(..., alias="itemName")
    x: float
    y: float
    z: float

    model_config = {"populate_by_name": True}


class Locations(BaseModel):
    """Result of /char/Locations."""

    locations: list[Location] = Field(default_factory=list)


class KillVictim(BaseModel):
    character_id: int = Field(..., alias="characterID")
    character_name: str = Field("", alias="characterName")
    corporation_id: int = Field(..., alias="corporationID")
    corporation_name: str = Field("", alias="corporationName")
    alliance_id: int = Field(0, alias="allianceID")
    ship_type_id: int = Field(..., alias="shipTypeID")
    damage_taken: int = Field(0, alias="damageTaken")

    model_config = {"populate_by_name": True}


class KillAttacker(BaseModel):
    character_id: int = Field(..., alias="characterID")
    character_name: str = Field("", alias="characterName")
    corporation_id: int = Field(..., alias="corporationID")
    damage_done: int = Field(0, alias="damageDone")
    final_blow: bool = Field(False, alias="finalBlow")
    ship_type_id: int = Field(0, alias="shipTypeID")
    weapon_type_id: int = Field(0, alias="weaponTypeID")

    model_config = {"populate_by_name": True}


class Kill(BaseModel):
    kill_id: int = Field(..., alias="killID")
    solar_system_id: int = Field(..., alias="solarSystemID")
    kill_time: EveDateTime = Field(..., alias="killTime")
    moon_id: int = Field(0, alias="moonID")
    victim: KillVictim
    attackers: list[KillAttacker] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class KillLog(BaseModel):
    """Result of /char/KillLog."""

    kills: list[Kill] = Field(default_factory=list)
