"""API client package."""

from eve_lib.api_client.dispatcher import (
    DispatchResult,
    RequestDescriptor,
    RequestDispatcher,
    build_url,
    get_default_dispatcher,
)
from eve_lib.api_client.endpoints import build_request
from eve_lib.api_client.errors import (
    DecodeFailure,
    DispatchCancelled,
    DispatchError,
    DispatchTimeout,
    EveLibError,
    FailureKind,
    InvalidApiKeyError,
    RejectedCredential,
    TransportFailure,
    UnexpectedFailure,
)
from eve_lib.api_client.serializers import JsonSerializer, SerializationError, XmlSerializer
from eve_lib.api_client.transport import AiohttpTransport, FetchResult, FetchStatus, Transport

__all__ = [
    "AiohttpTransport",
    "DecodeFailure",
    "DispatchCancelled",
    "DispatchError",
    "DispatchResult",
    "DispatchTimeout",
    "EveLibError",
    "FailureKind",
    "FetchResult",
    "FetchStatus",
    "InvalidApiKeyError",
    "JsonSerializer",
    "RejectedCredential",
    "RequestDescriptor",
    "RequestDispatcher",
    "SerializationError",
    "Transport",
    "TransportFailure",
    "UnexpectedFailure",
    "XmlSerializer",
    "build_request",
    "build_url",
    "get_default_dispatcher",
]
