"""Key-scoped XML API package."""

from eve_lib.eve_online.api_key import ApiKey
from eve_lib.eve_online.character import Character
from eve_lib.eve_online.models import ApiKeyInfo, ApiKeyType, CharacterList, EveApiResponse, KeyInfo

__all__ = [
    "ApiKey",
    "ApiKeyInfo",
    "ApiKeyType",
    "Character",
    "CharacterList",
    "EveApiResponse",
    "KeyInfo",
]
