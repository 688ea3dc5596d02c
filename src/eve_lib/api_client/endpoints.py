"""Endpoint address construction for request descriptors."""

from __future__ import annotations

from typing import TypeVar
from urllib.parse import urljoin

from eve_lib.api_client.dispatcher import RequestDescriptor
from eve_lib.api_client.serializers import Serializer

T = TypeVar("T")


def pair_params(*pairs: object) -> tuple[tuple[str, object], ...]:
    """Group a flat name/value sequence into ordered pairs.

    Args:
        *pairs: Alternating parameter names and values

    Returns:
        Tuple of (name, value) pairs in the given order

    Raises:
        ValueError: If a name has no value or a name is not a string
    """
    if len(pairs) % 2:
        raise ValueError(f"Parameter {pairs[-1]!r} has no value")

    params: list[tuple[str, object]] = []
    for name, value in zip(pairs[::2], pairs[1::2], strict=True):
        if not isinstance(name, str):
            raise ValueError(f"Parameter name must be a string, got {name!r}")
        params.append((name, value))
    return tuple(params)


def build_request(
    base_url: str,
    rel_path: str,
    shape: type[T],
    *pairs: object,
    serializer: Serializer | None = None,
) -> RequestDescriptor[T]:
    """Build a request descriptor for an endpoint.

    Args:
        base_url: API root
        rel_path: Endpoint path relative to the root
        shape: Type to decode the response into
        *pairs: Alternating parameter names and values, sent in this order
        serializer: Serializer override for this endpoint

    Returns:
        Immutable request descriptor
    """
    url = urljoin(base_url if base_url.endswith("/") else f"{base_url}/", rel_path)
    return RequestDescriptor(
        url=url,
        shape=shape,
        params=pair_params(*pairs),
        serializer=serializer,
    )
