"""API keys and their lazily loaded, cached key metadata."""

from __future__ import annotations

import asyncio
import copy
import threading
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from eve_lib.api_client.dispatcher import RequestDispatcher
from eve_lib.api_client.errors import DispatchError, InvalidApiKeyError, RejectedCredential
from eve_lib.eve_online.base import BaseEntity
from eve_lib.eve_online.character import Character
from eve_lib.eve_online.models import (
    ApiKeyInfo,
    ApiKeyType,
    CharacterList,
    EveApiResponse,
    KeyInfo,
)
from eve_lib.logging_config import get_logger

logger = get_logger(__name__)

API_KEY_INFO_PATH = "/account/APIKeyInfo.xml.aspx"
CHARACTERS_PATH = "/account/Characters.xml.aspx"


class _KeyState(Enum):
    UNKNOWN = "unknown"
    LOADED = "loaded"
    REJECTED = "rejected"


@dataclass(frozen=True)
class _KeySnapshot:
    """Everything learned from one APIKeyInfo fetch, published as a unit."""

    state: _KeyState
    info: KeyInfo | None = None


_UNKNOWN = _KeySnapshot(_KeyState.UNKNOWN)


class ApiKey(BaseEntity):
    """A key id and verification code pair.

    ``is_valid``, ``access_mask``, ``key_type`` and ``expire_date`` all come
    from a single APIKeyInfo request, made on first access and cached for the
    lifetime of the object:

    - concurrent first readers share one request (per-key lock, re-checked
      after acquisition), including its failure
    - a 403 answer is cached: ``is_valid`` is False from then on and the
      other three properties raise ``InvalidApiKeyError``
    - any other failure is raised to the readers and not cached, so the next
      read tries again

    The properties block the calling thread on a miss. Async code should
    ``await key.ensure_loaded()`` first.
    """

    def __init__(
        self,
        key_id: int,
        vcode: str,
        base_url: str | None = None,
        dispatcher: RequestDispatcher | None = None,
    ) -> None:
        """Create a key from its id and verification code.

        Args:
            key_id: Key ID
            vcode: Verification code
            base_url: XML API root (defaults to settings)
            dispatcher: Request dispatcher (defaults to the shared one)
        """
        super().__init__(base_url=base_url, dispatcher=dispatcher)
        self._key_id = key_id
        self._vcode = vcode
        self._snapshot = _UNKNOWN
        self._lock = threading.Lock()
        # Completed fetch attempts and the failure of the latest one, if any
        self._attempts = 0
        self._last_error: Exception | None = None

    @property
    def key_id(self) -> int:
        return self._key_id

    @property
    def vcode(self) -> str:
        return self._vcode

    @property
    def is_valid(self) -> bool:
        """Whether the remote service accepts this key."""
        return self._load().state is _KeyState.LOADED

    @property
    def access_mask(self) -> int:
        """Access mask bitmask of this key."""
        return self._require_info().access_mask

    @property
    def key_type(self) -> ApiKeyType:
        """Scope of this key."""
        return self._require_info().type

    @property
    def expire_date(self) -> datetime | None:
        """Expiry of this key in UTC, or None if it never expires."""
        return self._require_info().expires

    async def ensure_loaded(self) -> bool:
        """Load key metadata without blocking the running event loop.

        Shares the lock used by the properties, so at most one request is made
        no matter how threads and tasks interleave.

        Returns:
            Whether the key is valid
        """
        snapshot = self._snapshot
        if snapshot.state is _KeyState.UNKNOWN:
            snapshot = await asyncio.to_thread(self._load)
        return snapshot.state is _KeyState.LOADED

    def _require_info(self) -> KeyInfo:
        info = self._load().info
        if info is None:
            raise InvalidApiKeyError(self._key_id)
        return info

    def _load(self) -> _KeySnapshot:
        snapshot = self._snapshot
        if snapshot.state is not _KeyState.UNKNOWN:
            return snapshot

        attempts_seen = self._attempts
        with self._lock:
            # Another thread may have loaded while we waited
            if self._snapshot.state is _KeyState.UNKNOWN:
                error = self._last_error
                if self._attempts != attempts_seen and error is not None:
                    # We waited on a fetch that failed; it was our fetch too
                    if isinstance(error, DispatchError):
                        raise copy.copy(error) from error
                    raise error
                self._last_error = None
                try:
                    self._snapshot = self._fetch_snapshot()
                except Exception as e:
                    self._last_error = e
                    raise
                finally:
                    self._attempts += 1
            return self._snapshot

    def _fetch_snapshot(self) -> _KeySnapshot:
        descriptor = self._describe(ApiKeyInfo, API_KEY_INFO_PATH, self)
        try:
            response = self.dispatcher.dispatch_blocking(descriptor)
        except RejectedCredential:
            logger.warning("API key rejected", key_id=self._key_id)
            return _KeySnapshot(_KeyState.REJECTED)

        info = response.result.key
        logger.info(
            "API key loaded",
            key_id=self._key_id,
            key_type=info.type.value,
            access_mask=info.access_mask,
        )
        return _KeySnapshot(_KeyState.LOADED, info=info)

    # Account endpoints

    async def get_api_key_info(self) -> EveApiResponse[ApiKeyInfo]:
        """Get key info. The same data is available through the cached properties.

        Returns:
            Key access mask, type, expiry and exposed characters
        """
        return await self._request(ApiKeyInfo, API_KEY_INFO_PATH, self)

    async def get_character_list(self) -> EveApiResponse[CharacterList]:
        """Get all characters on the account the key belongs to.

        Returns:
            Character list
        """
        return await self._request(CharacterList, CHARACTERS_PATH, self)

    async def get_characters(self) -> list[Character]:
        """Get character entities for the characters this key exposes.

        Returns:
            One Character per exposed character

        Raises:
            InvalidApiKeyError: If the key was rejected
            ValueError: If this is a corporation key
        """
        if not await self.ensure_loaded():
            raise InvalidApiKeyError(self._key_id)

        info = self._require_info()
        if info.type is ApiKeyType.CORPORATION:
            raise ValueError("Corporation keys do not expose characters")

        return [
            Character(self, character.character_id, character.character_name)
            for character in info.characters
        ]

    def __repr__(self) -> str:
        return f"ApiKey(key_id={self._key_id}, state={self._snapshot.state.value})"
