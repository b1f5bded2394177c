"""
Order-sensitive request construction.

The query string and body built here are exactly what the signature
covers, so query parameters are an ordered list of pairs (never a dict
that might be re-sorted) and the JSON body is serialized once, here.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping, Optional, Protocol, Sequence, Union
from urllib.parse import urlencode

from . import __version__

QueryParams = Sequence[tuple[str, str]]

JSON_MEDIA_TYPE = "application/json"
ACCEPT_VERSION = "2.0.0"
DEFAULT_USER_AGENT = f"btcpay-python/{__version__}"


class SerializablePayload(Protocol):
    def to_dict(self) -> dict[str, Any]: ...


Payload = Union[Mapping[str, Any], SerializablePayload]


def default_headers(user_agent: str = DEFAULT_USER_AGENT) -> dict[str, str]:
    return {
        "Content-Type": JSON_MEDIA_TYPE,
        "Accept": JSON_MEDIA_TYPE,
        "X-Accept-Version": ACCEPT_VERSION,
        "User-Agent": user_agent,
    }


def payload_dict(payload: Payload) -> dict[str, Any]:
    if isinstance(payload, Mapping):
        return dict(payload)
    to_dict = getattr(payload, "to_dict", None)
    if callable(to_dict):
        data = to_dict()
        if isinstance(data, Mapping):
            return dict(data)
    raise TypeError(f"Payload must be a mapping or provide to_dict(), got {type(payload).__name__}")


def merge_token(payload: Payload, token: str) -> dict[str, Any]:
    """Add ``token`` to the payload object unless it already defines one."""
    data = payload_dict(payload)
    if token and "token" not in data:
        data["token"] = token
    return data


def encode_json(data: Mapping[str, Any]) -> bytes:
    return json.dumps(data, separators=(",", ":"), default=_json_default).encode("utf-8")


def build_query(token: str, params: Optional[QueryParams] = None) -> str:
    """``token=<token>`` first (when paired), then params in caller order."""
    pairs: list[tuple[str, str]] = []
    if token:
        pairs.append(("token", token))
    pairs.extend((str(k), str(v)) for k, v in (params or ()))
    return urlencode(pairs)


@dataclass(frozen=True)
class PreparedRequest:
    """Final URL and body bytes; signing happens over exactly these."""

    method: str
    url: str
    body: bytes = b""


class RequestBuilder:
    """Builds the URL and body for one endpoint call against a host."""

    def __init__(self, host: str):
        if not host:
            raise ValueError("Host is required")
        self.host = host.rstrip("/")

    def build(
        self,
        method: str,
        endpoint: str,
        token: str,
        params: Optional[QueryParams] = None,
        payload: Optional[Payload] = None,
    ) -> PreparedRequest:
        if payload is not None:
            # Token travels in the body whenever there is one.
            body = encode_json(merge_token(payload, token))
            query = build_query("", params)
        else:
            body = b""
            query = build_query(token, params)

        url = self.host + endpoint
        if query:
            url = f"{url}?{query}"
        return PreparedRequest(method=method.upper(), url=url, body=body)


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
