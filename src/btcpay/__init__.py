"""
BTCPay client for the BTCPay/BitPay-compatible invoice API.

Self-generated secp256k1 identity:
Generate key → derive SIN → pair with a code → sign every privileged request.
"""

__version__ = "0.1.0"

from .errors import (
    BTCPayError,
    ConfigError,
    EncodingError,
    KeyFormatError,
    KeyGenerationError,
    KeyMaterialError,
    PairingError,
    ResponseFormatError,
    ServerError,
    SigningError,
)
from .keys import KeyPair, compressed_public_key, decode_pem, encode_pem, generate_key_pair, generate_pem
from .identity import derive_sin, sin_from_key_pair, sin_from_pem
from .signing import canonical_string, sign, verify
from .request import RequestBuilder
from .models import CreateInvoiceParams, Invoice, InvoiceBuyer
from .pairing import PairingState
from .client import Client, ClientConfig

__all__ = [
    "BTCPayError", "ConfigError", "EncodingError", "KeyFormatError", "KeyGenerationError",
    "KeyMaterialError", "PairingError", "ResponseFormatError", "ServerError", "SigningError",
    "KeyPair", "compressed_public_key", "decode_pem", "encode_pem", "generate_key_pair", "generate_pem",
    "derive_sin", "sin_from_key_pair", "sin_from_pem",
    "canonical_string", "sign", "verify", "RequestBuilder",
    "CreateInvoiceParams", "Invoice", "InvoiceBuyer", "PairingState",
    "Client", "ClientConfig",
]
