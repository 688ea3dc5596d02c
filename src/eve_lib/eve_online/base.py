"""Shared request plumbing for XML API entities."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

from eve_lib.api_client.dispatcher import (
    RequestDescriptor,
    RequestDispatcher,
    get_default_dispatcher,
)
from eve_lib.api_client.endpoints import build_request
from eve_lib.config import get_settings
from eve_lib.eve_online.models import EveApiResponse

if TYPE_CHECKING:
    from eve_lib.eve_online.api_key import ApiKey

T = TypeVar("T")


class BaseEntity:
    """Base class for objects issuing key-scoped XML API requests."""

    def __init__(
        self,
        base_url: str | None = None,
        dispatcher: RequestDispatcher | None = None,
    ) -> None:
        """Initialize the entity.

        Args:
            base_url: XML API root (defaults to settings)
            dispatcher: Request dispatcher (defaults to the shared one)
        """
        self.base_url = base_url or get_settings().xml_api_base_url
        self._dispatcher = dispatcher

    @property
    def dispatcher(self) -> RequestDispatcher:
        if self._dispatcher is None:
            self._dispatcher = get_default_dispatcher()
        return self._dispatcher

    def _describe(
        self,
        shape: type[T],
        rel_path: str,
        key: ApiKey,
        *pairs: object,
    ) -> RequestDescriptor[EveApiResponse[T]]:
        """Build a descriptor authenticated with ``key``.

        ``keyID`` and ``vCode`` always come first, followed by ``pairs`` in
        the given order.
        """
        return build_request(
            self.base_url,
            rel_path,
            EveApiResponse[shape],  # type: ignore[valid-type]
            "keyID",
            key.key_id,
            "vCode",
            key.vcode,
            *pairs,
        )

    async def _request(
        self,
        shape: type[T],
        rel_path: str,
        key: ApiKey,
        *pairs: object,
    ) -> EveApiResponse[T]:
        return await self.dispatcher.dispatch(self._describe(shape, rel_path, key, *pairs))
