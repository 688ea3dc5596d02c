"""Typed client for the EVE Online XML API and the public CREST API."""

from eve_lib.api_client import RequestDispatcher, get_default_dispatcher
from eve_lib.crest import EveCrest
from eve_lib.eve_online import ApiKey, ApiKeyType, Character

__version__ = "0.1.0"

__all__ = [
    "ApiKey",
    "ApiKeyType",
    "Character",
    "EveCrest",
    "RequestDispatcher",
    "get_default_dispatcher",
]
