"""Pydantic models for CREST JSON resources."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class CrestResource(BaseModel):
    """Base class for CREST resources."""

    model_config = {"populate_by_name": True}


class CrestHref(BaseModel):
    """A link to another resource."""

    href: str


class CrestLinkedEntity(BaseModel):
    """A named, linked entity."""

    href: str = ""
    id: int | None = None
    name: str = ""


class CrestLinkedIconEntity(CrestLinkedEntity):
    icon: CrestHref | None = None


class MarketHistoryEntry(BaseModel):
    """One day of market history."""

    volume: int
    order_count: int = Field(..., alias="orderCount")
    low_price: Decimal = Field(..., alias="lowPrice")
    high_price: Decimal = Field(..., alias="highPrice")
    avg_price: Decimal = Field(..., alias="avgPrice")
    date: datetime

    model_config = {"populate_by_name": True}


class CrestMarketHistory(CrestResource):
    """Daily market history of one item type in one region."""

    items: list[MarketHistoryEntry] = Field(default_factory=list)
    total_count: int = Field(0, alias="totalCount")
    page_count: int = Field(1, alias="pageCount")


class CorporationEntry(CrestLinkedEntity):
    is_npc: bool = Field(False, alias="isNPC")

    model_config = {"populate_by_name": True}


class CrestPilotTournamentStats(CrestResource):
    """Tournament statistics of one pilot."""

    corp_join_date: datetime | None = Field(None, alias="corpJoinDate")
    alliance: CrestLinkedEntity | None = None
    damage_done: float = Field(0.0, alias="damageDone")
    kills: int = 0
    deaths: int = 0
    corporation: CorporationEntry | None = None
    character: CrestLinkedIconEntity | None = None
    matches_participated_in: list[CrestHref] = Field(
        default_factory=list, alias="matchesParticipatedIn"
    )
    recent_ships: list[CrestLinkedIconEntity] = Field(default_factory=list, alias="recentShips")
    creation_date: datetime | None = Field(None, alias="creationDate")
