"""CREST JSON API package."""

from eve_lib.crest.client import EveCrest
from eve_lib.crest.models import CrestMarketHistory, CrestPilotTournamentStats, MarketHistoryEntry

__all__ = [
    "CrestMarketHistory",
    "CrestPilotTournamentStats",
    "EveCrest",
    "MarketHistoryEntry",
]
