"""HTTP transport returning classified fetch results."""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import aiohttp

from eve_lib.config import get_settings
from eve_lib.logging_config import get_logger

logger = get_logger(__name__)

HTTP_FORBIDDEN = 403


class FetchStatus(str, Enum):
    """Outcome kinds of a single fetch."""

    OK = "ok"
    # The remote denied the credential used in the request
    FORBIDDEN = "forbidden"
    HTTP_ERROR = "http_error"
    CONNECTION_ERROR = "connection_error"


@dataclass(frozen=True)
class FetchResult:
    """Raw outcome of a fetch.

    Attributes:
        status: Outcome kind
        body: Response body (may be empty on failures)
        status_code: HTTP status, None if no response was received
        cause: Exception behind a connection error
    """

    status: FetchStatus
    body: bytes = b""
    status_code: int | None = None
    cause: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.status is FetchStatus.OK

    @classmethod
    def from_status(cls, status_code: int, body: bytes) -> FetchResult:
        """Classify an HTTP response by its status code."""
        if 200 <= status_code < 300:
            status = FetchStatus.OK
        elif status_code == HTTP_FORBIDDEN:
            status = FetchStatus.FORBIDDEN
        else:
            status = FetchStatus.HTTP_ERROR
        return cls(status=status, body=body, status_code=status_code)


class Transport(Protocol):
    """Performs network fetches for the dispatcher."""

    async def fetch(self, url: str) -> FetchResult: ...

    async def close(self) -> None: ...


class AiohttpTransport:
    """Transport backed by aiohttp.

    aiohttp sessions are bound to the event loop that created them, so one
    session is kept per loop. The dispatcher uses both the caller's loop and
    its own background loop.
    """

    def __init__(
        self,
        user_agent: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            user_agent: User-Agent header (defaults to settings)
            timeout_seconds: Socket-level total timeout (defaults to settings)
        """
        settings = get_settings()
        self._user_agent = user_agent or settings.user_agent
        self._timeout_seconds = timeout_seconds or settings.request_timeout_seconds
        self._sessions: dict[asyncio.AbstractEventLoop, aiohttp.ClientSession] = {}
        self._sessions_lock = threading.Lock()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session for the running loop."""
        loop = asyncio.get_running_loop()
        with self._sessions_lock:
            # Sessions of finished loops can no longer be used or closed
            for stale in [other for other in self._sessions if other.is_closed()]:
                del self._sessions[stale]
                logger.debug("Dropped session of closed event loop")

            session = self._sessions.get(loop)
            if session is None or session.closed:
                session = aiohttp.ClientSession(
                    headers={"User-Agent": self._user_agent},
                    timeout=aiohttp.ClientTimeout(total=self._timeout_seconds),
                )
                self._sessions[loop] = session
        return session

    async def fetch(self, url: str) -> FetchResult:
        """Fetch a URL with GET.

        Args:
            url: Final URL, query string included

        Returns:
            Classified fetch result; connection errors are returned, not raised
        """
        session = await self._get_session()
        logger.debug("Fetching", url=url)

        try:
            async with session.get(url) as response:
                body = await response.read()
                result = FetchResult.from_status(response.status, body)
        except aiohttp.ClientError as e:
            logger.warning("Connection error", url=url, error=str(e))
            return FetchResult(status=FetchStatus.CONNECTION_ERROR, cause=e)

        if not result.ok:
            logger.warning(
                "Non-success response",
                url=url,
                status_code=result.status_code,
                response=body[:500].decode("utf-8", errors="replace"),
            )
        return result

    async def close(self) -> None:
        """Close the HTTP session of the running loop."""
        with self._sessions_lock:
            session = self._sessions.pop(asyncio.get_running_loop(), None)
        if session and not session.closed:
            await session.close()

    async def __aenter__(self) -> AiohttpTransport:
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: BaseException | None,
        exc_val: BaseException | None,
        exc_tb: BaseException | None,
    ) -> None:
        """Async context manager exit."""
        await self.close()
