"""
Pairing handshake.

The client asserts its identity by SIN and proves authorization with a
pairing code the merchant copied out of the server UI. The request is
deliberately unsigned: the server has never seen the client's key, so
there is nothing to verify a signature against yet.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any

from .errors import PairingError, ResponseFormatError

logger = logging.getLogger(__name__)

TOKENS_ENDPOINT = "/tokens"


class PairingState(str, Enum):
    UNPAIRED = "unpaired"
    PAIRED = "paired"


def pairing_state(token: str) -> PairingState:
    return PairingState.PAIRED if token else PairingState.UNPAIRED


def pairing_payload(sin: str, code: str) -> dict[str, Any]:
    if not code:
        raise ValueError("Pairing code is required")
    return {"id": sin, "pairingCode": code}


def parse_pairing_response(body: bytes | str) -> str:
    """Return the first token from a ``[{"token": ...}, ...]`` response.

    An empty array raises PairingError. So does an empty token string in the
    first record. Other BTCPay clients install that value as-is, which leaves
    the client silently unpaired; this one refuses it.
    """
    try:
        records = json.loads(body)
    except ValueError as e:
        raise ResponseFormatError(f"Invalid pairing response: {e}") from e

    if not isinstance(records, list):
        raise ResponseFormatError(
            f"Pairing response must be a JSON array, got {type(records).__name__}"
        )
    if not records:
        raise PairingError("token data not returned")

    first = records[0]
    if not isinstance(first, dict) or not isinstance(first.get("token"), str):
        raise ResponseFormatError("Pairing response token record has no string 'token' field")
    if not first["token"]:
        raise PairingError("token data not returned")
    if len(records) > 1:
        logger.debug("Pairing returned %d token records; using the first", len(records))
    return first["token"]
