"""
BTCPay client error types.

Specific exceptions for different failure modes, so callers can tell
"my key/signature is broken" apart from "the server rejected the request".
Transport failures are raised by httpx unchanged.
"""


class BTCPayError(Exception):
    """Base error for all client operations."""
    pass


# Key material errors
class KeyMaterialError(BTCPayError):
    """Base error for key generation, encoding and decoding."""
    pass


class KeyGenerationError(KeyMaterialError):
    """Random source or curve library could not produce a key pair."""
    pass


class EncodingError(KeyMaterialError):
    """Key pair could not be serialized to PEM."""
    pass


class KeyFormatError(KeyMaterialError):
    """PEM envelope, ASN.1 structure or curve point is invalid."""
    pass


# Signing errors
class SigningError(BTCPayError):
    """ECDSA signature computation failed."""
    pass


# Pairing errors
class PairingError(BTCPayError):
    """Server accepted the pairing request but issued no token."""
    pass


# Response errors
class ResponseFormatError(BTCPayError):
    """Response body is not the JSON shape the endpoint promises."""
    pass


class ServerError(BTCPayError):
    """Server answered with HTTP status >= 400."""
    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"[{status_code}] {message}")


# Configuration errors
class ConfigError(BTCPayError):
    """Required client settings are missing or invalid."""
    pass
