"""Pytest fixtures for eve-lib tests."""

from __future__ import annotations

import asyncio
import os
import threading
import time
from collections.abc import Callable, Generator

import pytest

from eve_lib.api_client.dispatcher import RequestDispatcher
from eve_lib.api_client.transport import FetchResult, FetchStatus

# Set environment variables for testing
os.environ.setdefault("EVELIB_REQUEST_TIMEOUT_SECONDS", "5")
os.environ.setdefault("EVELIB_LOG_LEVEL", "DEBUG")

ENVELOPE = """<?xml version='1.0' encoding='UTF-8'?>
<eveapi version="2">
  <currentTime>2014-12-20 12:00:00</currentTime>
  <result>
{result}
  </result>
  <cachedUntil>2014-12-20 12:05:00</cachedUntil>
</eveapi>"""

AUTH_ERROR = """<?xml version='1.0' encoding='UTF-8'?>
<eveapi version="2">
  <currentTime>2014-12-20 12:00:00</currentTime>
  <error code="203">Authentication failure.</error>
  <cachedUntil>2014-12-21 12:00:00</cachedUntil>
</eveapi>"""


class StubTransport:
    """Transport returning queued results and recording every fetch.

    The last queued result is repeated once the queue runs dry. Exceptions in
    the queue are raised instead of returned.
    """

    def __init__(self, *results: FetchResult | BaseException, delay: float = 0.0) -> None:
        self._results = list(results)
        self._lock = threading.Lock()
        self.delay = delay
        self.urls: list[str] = []
        self.close_calls = 0

    @property
    def fetch_count(self) -> int:
        return len(self.urls)

    async def fetch(self, url: str) -> FetchResult:
        with self._lock:
            self.urls.append(url)
            result = self._results.pop(0) if len(self._results) > 1 else self._results[0]
        if self.delay:
            await asyncio.sleep(self.delay)
        if isinstance(result, BaseException):
            raise result
        return result

    async def close(self) -> None:
        self.close_calls += 1


def xml_result(result: str) -> bytes:
    """Wrap result XML in the API envelope."""
    return ENVELOPE.format(result=result).encode()


def key_info_xml(
    access_mask: int = 4,
    key_type: str = "Character",
    expires: str = "2015-01-01 00:00:00",
) -> bytes:
    return xml_result(
        f"""    <key accessMask="{access_mask}" type="{key_type}" expires="{expires}">
      <rowset name="characters" key="characterID"
              columns="characterID,characterName,corporationID,corporationName">
        <row characterID="90000001" characterName="Test Pilot" corporationID="1000009"
             corporationName="Some Corp" allianceID="0" allianceName="" factionID="0"
             factionName="" />
      </rowset>
    </key>"""
    )


@pytest.fixture
def ok() -> Callable[[bytes], FetchResult]:
    """Build a successful fetch result."""

    def _ok(body: bytes) -> FetchResult:
        return FetchResult(status=FetchStatus.OK, body=body, status_code=200)

    return _ok


@pytest.fixture
def key_info_body() -> Callable[..., bytes]:
    """Build an APIKeyInfo document."""
    return key_info_xml


@pytest.fixture
def envelope() -> Callable[[str], bytes]:
    """Wrap result XML in the API envelope."""
    return xml_result


@pytest.fixture
def forbidden() -> FetchResult:
    return FetchResult.from_status(403, AUTH_ERROR.encode())


@pytest.fixture
def connection_error() -> FetchResult:
    return FetchResult(
        status=FetchStatus.CONNECTION_ERROR,
        cause=ConnectionRefusedError("connection refused"),
    )


@pytest.fixture
def stub_transport() -> type[StubTransport]:
    """The stub transport class, for tests that queue their own results."""
    return StubTransport


@pytest.fixture
def make_dispatcher() -> Generator[Callable[..., RequestDispatcher], None, None]:
    """Create dispatchers that are closed after the test."""
    created: list[RequestDispatcher] = []

    def _make(transport: StubTransport, **kwargs: object) -> RequestDispatcher:
        dispatcher = RequestDispatcher(transport=transport, **kwargs)  # type: ignore[arg-type]
        created.append(dispatcher)
        return dispatcher

    yield _make

    for dispatcher in created:
        dispatcher.close()


@pytest.fixture
def wait_until() -> Callable[..., None]:
    """Poll a condition until it holds, failing the test after a timeout."""

    def _wait(condition: Callable[[], bool], timeout: float = 2.0) -> None:
        deadline = time.monotonic() + timeout
        while not condition():
            if time.monotonic() > deadline:
                pytest.fail("Condition not met in time")
            time.sleep(0.01)

    return _wait
