"""Response decoding and parameter formatting for the XML and JSON APIs."""

from __future__ import annotations

import json
import xml.etree.ElementTree as etree
from collections.abc import Set as AbstractSet
from datetime import UTC, datetime
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Protocol, TypeVar

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from eve_lib.config import get_settings
from eve_lib.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

# Timestamp format used by the XML API, always UTC
EVE_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class SerializationError(Exception):
    """Exception raised when a response body cannot be decoded.

    Attributes:
        response_body: Raw body (truncated for logging by callers)
        original_error: Underlying parse or validation error
        error_code: Remote API error code, when the body was an error document
    """

    def __init__(
        self,
        message: str,
        response_body: bytes = b"",
        original_error: Exception | None = None,
        error_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.response_body = response_body
        self.original_error = original_error
        self.error_code = error_code


class Serializer(Protocol):
    """Decodes response bodies and formats request parameter values."""

    def decode(self, body: bytes, shape: type[T]) -> T: ...

    def format_value(self, value: object) -> str: ...


@lru_cache(maxsize=256)
def _adapter(shape: Any) -> TypeAdapter[Any]:
    return TypeAdapter(shape)


def format_value(value: object) -> str:
    """Stringify a request parameter value the way the remote APIs expect.

    Args:
        value: Parameter value

    Returns:
        String form: booleans as true/false, datetimes in the API format (UTC),
        enums by value, sequences comma-joined
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.strftime(EVE_DATETIME_FORMAT)
    if isinstance(value, Enum):
        return format_value(value.value)
    if isinstance(value, str | bytes):
        return value.decode() if isinstance(value, bytes) else value
    if isinstance(value, list | tuple):
        return ",".join(format_value(item) for item in value)
    if isinstance(value, AbstractSet):
        return ",".join(sorted(format_value(item) for item in value))
    return str(value)


def element_to_data(element: etree.Element) -> Any:
    """Convert an XML API element into plain Python data.

    Rules:
    - ``<rowset name="x">`` becomes a list of converted ``<row>`` elements,
      stored under the key ``x`` of its parent
    - attributes become mapping keys
    - a leaf element without attributes becomes its stripped text
    - text inside an element that also has attributes is stored under ``value``

    Args:
        element: Parsed XML element

    Returns:
        Nested dicts, lists and strings
    """
    if element.tag == "rowset":
        return [element_to_data(row) for row in element if row.tag == "row"]

    data: dict[str, Any] = dict(element.attrib)
    children = list(element)
    text = (element.text or "").strip()

    if not children:
        if not data:
            return text
        if text:
            data["value"] = text
        return data

    for child in children:
        key = child.get("name", "rowset") if child.tag == "rowset" else child.tag
        data[key] = element_to_data(child)
    return data


class _BaseSerializer:
    """Shared validation step for concrete serializers."""

    def format_value(self, value: object) -> str:
        return format_value(value)

    def _validate(self, data: Any, shape: type[T], body: bytes) -> T:
        try:
            return _adapter(shape).validate_python(data)
        except PydanticValidationError as e:
            logger.error(
                "Response validation failed",
                shape=getattr(shape, "__name__", repr(shape)),
                error_count=e.error_count(),
                validation_errors=e.errors(include_url=False),
            )
            raise SerializationError(
                f"Response does not match {getattr(shape, '__name__', shape)}: {e}",
                response_body=body,
                original_error=e,
            ) from e


class XmlSerializer(_BaseSerializer):
    """Decoder for the XML API ``<eveapi>`` documents."""

    def decode(self, body: bytes, shape: type[T]) -> T:
        """Decode an XML API document.

        Args:
            body: Raw response body
            shape: Type to validate the converted document against

        Returns:
            Validated instance of ``shape``

        Raises:
            SerializationError: If the body is not XML, is an API error
                document, or does not match ``shape``
        """
        try:
            root = etree.fromstring(body)
        except etree.ParseError as e:
            raise SerializationError(
                f"Invalid XML response: {e}",
                response_body=body,
                original_error=e,
            ) from e

        error = root if root.tag == "error" else root.find("error")
        if error is not None:
            code = error.get("code")
            message = (error.text or "").strip()
            raise SerializationError(
                f"API error {code}: {message}",
                response_body=body,
                error_code=int(code) if code and code.isdigit() else None,
            )

        return self._validate(element_to_data(root), shape, body)


class JsonSerializer(_BaseSerializer):
    """Decoder for CREST JSON documents."""

    def decode(self, body: bytes, shape: type[T]) -> T:
        """Decode a JSON document.

        Args:
            body: Raw response body
            shape: Type to validate the document against

        Returns:
            Validated instance of ``shape``

        Raises:
            SerializationError: If the body is not JSON or does not match ``shape``
        """
        try:
            data = json.loads(body)
        except ValueError as e:
            raise SerializationError(
                f"Invalid JSON response: {e}",
                response_body=body,
                original_error=e,
            ) from e

        return self._validate(data, shape, body)


def store_invalid_response(url: str, body: bytes, error_message: str) -> Path:
    """Store an undecodable response to a file for debugging.

    Args:
        url: Full URL
        body: Raw response body
        error_message: Decoding error message

    Returns:
        Path to the stored file
    """
    settings = get_settings()
    now = datetime.now(UTC)
    filename = f"{now.strftime('%Y%m%d_%H%M%S_%f')}.json"
    filepath = settings.invalid_responses_dir / filename

    error_data = {
        "timestamp": now.isoformat(),
        "url": url,
        "error_message": error_message,
        "response_body": body.decode("utf-8", errors="replace"),
    }

    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(error_data, f, indent=2, ensure_ascii=False)

    logger.info("Stored invalid API response", filepath=str(filepath), url=url)
    return filepath
