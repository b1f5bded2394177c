"""
Key material for the BTCPay client identity.

The client authenticates with a self-generated secp256k1 key. Keys are
exchanged with callers as PEM text in the SEC1 layout OpenSSL calls
"traditional": an ``EC PRIVATE KEY`` block wrapping the ASN.1 sequence
{version=1, privateKey, [0] namedCurve OID, [1] uncompressed public point}.

Persisting the PEM across restarts is the caller's job.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from .errors import EncodingError, KeyFormatError, KeyGenerationError

logger = logging.getLogger(__name__)

CURVE_NAME = "secp256k1"
CURVE_OID = "1.3.132.0.10"
PEM_LABEL = "EC PRIVATE KEY"

_PEM_BEGIN = f"-----BEGIN {PEM_LABEL}-----"
_PEM_END = f"-----END {PEM_LABEL}-----"


@dataclass(frozen=True)
class KeyPair:
    """A secp256k1 private scalar and its public point."""

    private_key: ec.EllipticCurvePrivateKey = field(repr=False)

    @property
    def private_value(self) -> int:
        return self.private_key.private_numbers().private_value

    @property
    def public_key(self) -> ec.EllipticCurvePublicKey:
        return self.private_key.public_key()

    @property
    def public_point_uncompressed(self) -> bytes:
        return self.public_key.public_bytes(
            encoding=serialization.Encoding.X962,
            format=serialization.PublicFormat.UncompressedPoint,
        )

    @property
    def public_point_compressed(self) -> bytes:
        return self.public_key.public_bytes(
            encoding=serialization.Encoding.X962,
            format=serialization.PublicFormat.CompressedPoint,
        )

    @property
    def public_key_hex(self) -> str:
        return self.public_point_compressed.hex()


def generate_key_pair() -> KeyPair:
    """Generate a fresh key pair from the OS CSPRNG."""
    try:
        private_key = ec.generate_private_key(ec.SECP256K1())
    except Exception as e:
        raise KeyGenerationError(f"Failed to generate {CURVE_NAME} key: {type(e).__name__}: {e}") from e
    logger.info("Generated new %s client key", CURVE_NAME)
    return KeyPair(private_key=private_key)


def encode_pem(key_pair: KeyPair) -> str:
    """Serialize a key pair as an unencrypted ``EC PRIVATE KEY`` PEM block."""
    try:
        pem = key_pair.private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption(),
        )
    except Exception as e:
        raise EncodingError(f"Failed to encode key as PEM: {type(e).__name__}: {e}") from e
    return pem.decode("ascii")


def decode_pem(pem: str) -> KeyPair:
    """Parse an ``EC PRIVATE KEY`` PEM block back into a key pair.

    The public point is rebuilt from the private scalar and checked
    against the curve; anything that is not an unencrypted secp256k1
    SEC1 key raises KeyFormatError.
    """
    if not isinstance(pem, str):
        raise KeyFormatError("PEM must be a string")

    # Literal '\n' sequences show up when PEMs travel through env vars.
    if "\\n" in pem:
        pem = pem.replace("\\n", "\n")

    begin = pem.find(_PEM_BEGIN)
    end = pem.find(_PEM_END)
    if begin < 0 or end < begin:
        raise KeyFormatError("private key not found")

    block = pem[begin:end + len(_PEM_END)] + "\n"
    try:
        private_key = serialization.load_pem_private_key(block.encode("ascii"), password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm, UnicodeEncodeError) as e:
        raise KeyFormatError(f"Invalid {PEM_LABEL} block: {e}") from e

    if not isinstance(private_key, ec.EllipticCurvePrivateKey):
        raise KeyFormatError("PEM does not hold an elliptic-curve key")
    if private_key.curve.name != CURVE_NAME:
        raise KeyFormatError(f"Unsupported curve {private_key.curve.name}; expected {CURVE_NAME}")

    return KeyPair(private_key=private_key)


def compressed_public_key(key_pair: KeyPair) -> str:
    """Hex of the 33-byte compressed public point."""
    return key_pair.public_key_hex


def generate_pem() -> str:
    """Generate a new key and return it PEM-encoded, ready to persist."""
    return encode_pem(generate_key_pair())
