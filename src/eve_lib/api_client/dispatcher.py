"""Generic request dispatch: one call from a typed request to a decoded result.

The dispatcher hides how bytes are fetched (``Transport``) and decoded
(``Serializer``) from the endpoint methods built on top of it, and turns every
failure into one of the classified ``DispatchError`` subclasses.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import threading
from collections.abc import Callable, Coroutine, Sequence
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Generic, TypeVar
from urllib.parse import urlencode

from eve_lib.api_client.errors import (
    DecodeFailure,
    DispatchCancelled,
    DispatchError,
    DispatchTimeout,
    RejectedCredential,
    TransportFailure,
    UnexpectedFailure,
)
from eve_lib.api_client.serializers import (
    SerializationError,
    Serializer,
    XmlSerializer,
    format_value,
    store_invalid_response,
)
from eve_lib.api_client.transport import AiohttpTransport, FetchStatus, Transport
from eve_lib.config import get_settings
from eve_lib.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def _freeze(value: object) -> object:
    """Copy mutable containers so later changes by the caller are not sent."""
    if isinstance(value, list | tuple):
        return tuple(_freeze(item) for item in value)
    if isinstance(value, set | frozenset):
        return frozenset(_freeze(item) for item in value)
    return value


@dataclass(frozen=True)
class RequestDescriptor(Generic[T]):
    """Immutable description of one dispatch.

    Attributes:
        url: Base address, without the parameters below
        shape: Type the response body is decoded into
        params: Ordered (name, value) pairs; order is sent as given
        serializer: Serializer override (defaults to the dispatcher's)
    """

    url: str
    shape: type[T]
    params: tuple[tuple[str, object], ...] = ()
    serializer: Serializer | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        frozen = tuple((name, _freeze(value)) for name, value in self.params)
        object.__setattr__(self, "params", frozen)


@dataclass(frozen=True)
class DispatchResult(Generic[T]):
    """Either a decoded value or a classified failure."""

    value: T | None = None
    error: DispatchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, or raise the failure."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


def build_url(
    url: str,
    params: Sequence[tuple[str, object]],
    formatter: Callable[[object], str] = format_value,
) -> str:
    """Append ordered query parameters to a base URL.

    Args:
        url: Base URL, may already carry a query string
        params: (name, value) pairs, kept in the given order
        formatter: Stringifies each value

    Returns:
        Final URL
    """
    if not params:
        return url
    query = urlencode([(name, formatter(value)) for name, value in params])
    if url.endswith(("?", "&")):
        separator = ""
    elif "?" in url:
        separator = "&"
    else:
        separator = "?"
    return f"{url}{separator}{query}"


class _LoopThread:
    """An event loop running forever in a daemon thread."""

    def __init__(self, name: str) -> None:
        self._name = name
        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        # Futures handed to blocked callers, resolved or cancelled by stop()
        self._pending: set[concurrent.futures.Future[Any]] = set()

    @property
    def started(self) -> bool:
        return self._loop is not None

    def is_current_thread(self) -> bool:
        return self._thread is not None and threading.current_thread() is self._thread

    def _ensure_started(self) -> asyncio.AbstractEventLoop:
        # Caller holds self._lock
        if self._loop is None:
            loop = asyncio.new_event_loop()
            thread = threading.Thread(
                target=self._run_forever,
                args=(loop,),
                name=self._name,
                daemon=True,
            )
            thread.start()
            self._loop, self._thread = loop, thread
        return self._loop

    @staticmethod
    def _run_forever(loop: asyncio.AbstractEventLoop) -> None:
        asyncio.set_event_loop(loop)
        loop.run_forever()

    def _forget(self, future: concurrent.futures.Future[Any]) -> None:
        with self._lock:
            self._pending.discard(future)

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        """Run a coroutine on the loop and block until it finishes.

        Raises:
            concurrent.futures.CancelledError: If the loop was stopped first
        """
        with self._lock:
            future = asyncio.run_coroutine_threadsafe(coro, self._ensure_started())
            self._pending.add(future)
        future.add_done_callback(self._forget)
        return future.result()

    @staticmethod
    async def _cancel_outstanding() -> None:
        current = asyncio.current_task()
        tasks = [task for task in asyncio.all_tasks() if task is not current]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def stop(self) -> None:
        """Cancel outstanding work, then stop and close the loop."""
        if self.is_current_thread():
            raise RuntimeError("The dispatch loop cannot stop itself")

        with self._lock:
            loop, thread = self._loop, self._thread
            self._loop = self._thread = None
            pending, self._pending = self._pending, set()
        if loop is None or thread is None:
            return

        asyncio.run_coroutine_threadsafe(self._cancel_outstanding(), loop).result()
        loop.call_soon_threadsafe(loop.stop)
        thread.join()
        loop.close()

        # Anything the sweep did not reach must not leave its caller waiting
        for future in pending:
            future.cancel()


class RequestDispatcher:
    """Turns request descriptors into decoded results.

    Holds no per-request state. ``dispatch`` is the primary, non-blocking
    entry point. ``dispatch_blocking`` runs it on a dedicated background loop
    thread for synchronous callers, so the blocked thread is never the one
    doing the work.
    """

    def __init__(
        self,
        transport: Transport | None = None,
        serializer: Serializer | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            transport: Network transport (defaults to aiohttp)
            serializer: Default serializer (defaults to the XML API serializer)
            timeout_seconds: Default dispatch deadline (defaults to settings)
        """
        settings = get_settings()
        self._transport = transport or AiohttpTransport()
        self._serializer = serializer or XmlSerializer()
        self._timeout_seconds = timeout_seconds or settings.request_timeout_seconds
        self._store_invalid_responses = settings.store_invalid_responses
        self._loop_thread = _LoopThread("eve-lib-dispatch")

    @property
    def transport(self) -> Transport:
        return self._transport

    async def dispatch(self, descriptor: RequestDescriptor[T], timeout: float | None = None) -> T:
        """Fetch and decode one request.

        Args:
            descriptor: What to fetch and how to decode it
            timeout: Deadline in seconds (defaults to the dispatcher's)

        Returns:
            Decoded value of ``descriptor.shape``

        Raises:
            TransportFailure: Connection failure or non-success status other than 403
            RejectedCredential: The remote answered 403
            DecodeFailure: The body did not match the expected shape
            DispatchTimeout: The deadline expired
            UnexpectedFailure: Anything else went wrong
        """
        serializer = descriptor.serializer or self._serializer
        url = build_url(descriptor.url, descriptor.params, serializer.format_value)
        deadline = timeout if timeout is not None else self._timeout_seconds

        logger.debug(
            "Dispatching request",
            url=url,
            shape=getattr(descriptor.shape, "__name__", repr(descriptor.shape)),
        )

        try:
            async with asyncio.timeout(deadline):
                return await self._fetch_and_decode(url, descriptor.shape, serializer)
        except TimeoutError as e:
            logger.warning("Request timed out", url=url, timeout_seconds=deadline)
            raise DispatchTimeout(f"Request timed out after {deadline}s", url, cause=e) from e

    async def dispatch_result(
        self,
        descriptor: RequestDescriptor[T],
        timeout: float | None = None,
    ) -> DispatchResult[T]:
        """Like ``dispatch``, but classified failures are returned as a value."""
        try:
            value = await self.dispatch(descriptor, timeout)
        except DispatchError as e:
            return DispatchResult(error=e)
        return DispatchResult(value=value)

    def dispatch_blocking(self, descriptor: RequestDescriptor[T], timeout: float | None = None) -> T:
        """Run ``dispatch`` to completion, blocking the calling thread.

        The request runs on the dispatcher's background loop thread. Failures
        are re-raised in the calling thread unchanged. Calling this from a
        coroutine blocks that coroutine's loop for the duration of the request;
        async code should await ``dispatch`` instead.

        Raises:
            RuntimeError: If called from the dispatcher's own loop thread
            DispatchCancelled: If the dispatcher was closed before the request finished
            DispatchError: Any other classified failure of ``dispatch``
        """
        if self._loop_thread.is_current_thread():
            raise RuntimeError(
                "dispatch_blocking() cannot run on the dispatcher's own loop; "
                "await dispatch() instead"
            )
        try:
            return self._loop_thread.run(self.dispatch(descriptor, timeout))
        except concurrent.futures.CancelledError as e:
            logger.warning("Blocking dispatch cancelled", url=descriptor.url)
            raise DispatchCancelled(
                "Dispatcher closed before the request finished",
                descriptor.url,
                cause=e,
            ) from e

    async def _fetch_and_decode(self, url: str, shape: type[T], serializer: Serializer) -> T:
        try:
            result = await self._transport.fetch(url)
        except TimeoutError as e:
            raise TransportFailure("Transport timed out", url, cause=e) from e
        except Exception as e:
            logger.error("Transport raised", url=url, error=str(e))
            raise UnexpectedFailure(
                f"Transport raised {type(e).__name__}: {e}", url, cause=e
            ) from e

        if result.status is FetchStatus.FORBIDDEN:
            raise RejectedCredential(
                "Credential rejected by the remote service",
                url,
                status_code=result.status_code,
            )
        if result.status is FetchStatus.CONNECTION_ERROR:
            raise TransportFailure(f"Connection failed: {result.cause}", url, cause=result.cause)
        if result.status is FetchStatus.HTTP_ERROR:
            raise TransportFailure(
                f"HTTP {result.status_code}",
                url,
                status_code=result.status_code,
            )
        if result.status is not FetchStatus.OK:
            raise UnexpectedFailure(f"Unknown fetch status {result.status!r}", url)

        try:
            return serializer.decode(result.body, shape)
        except SerializationError as e:
            logger.error(
                "Failed to decode response",
                url=url,
                error=str(e),
                response=result.body[:500].decode("utf-8", errors="replace"),
            )
            if self._store_invalid_responses:
                store_invalid_response(url, result.body, str(e))
            raise DecodeFailure(str(e), url, status_code=result.status_code, cause=e) from e
        except Exception as e:
            raise UnexpectedFailure(
                f"Serializer raised {type(e).__name__}: {e}",
                url,
                status_code=result.status_code,
                cause=e,
            ) from e

    async def aclose(self) -> None:
        """Release the transport session bound to the running loop."""
        await self._transport.close()

    def close(self) -> None:
        """Release transport sessions of the background loop and stop it.

        Blocking dispatches still in flight fail with ``DispatchCancelled``.
        """
        if self._loop_thread.started:
            self._loop_thread.run(self._transport.close())
            self._loop_thread.stop()

    def __enter__(self) -> RequestDispatcher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    async def __aenter__(self) -> RequestDispatcher:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


@lru_cache
def get_default_dispatcher() -> RequestDispatcher:
    """Get the process-wide dispatcher built from settings."""
    return RequestDispatcher()
