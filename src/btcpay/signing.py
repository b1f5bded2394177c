"""
Request signing.

A signed request carries the client's compressed public key and an ECDSA
signature over SHA256(url + body), where ``url`` is the fully resolved
request URL including its query string and ``body`` the exact bytes sent.
Both must be final before signing: the server rebuilds the same string
from what it receives.
"""

from __future__ import annotations

import hashlib

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import (
    Prehashed,
    decode_dss_signature,
    encode_dss_signature,
)

from .errors import SigningError
from .keys import KeyPair

IDENTITY_HEADER = "X-Identity"
SIGNATURE_HEADER = "X-Signature"

# Order of the secp256k1 base point.
SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

_ECDSA_PREHASHED = ec.ECDSA(Prehashed(hashes.SHA256()))


def canonical_string(url: str, body: bytes | str = b"") -> bytes:
    """URL immediately followed by the raw body, no separator."""
    if isinstance(body, str):
        body = body.encode("utf-8")
    return url.encode("utf-8") + (body or b"")


def sign(key_pair: KeyPair, canonical: bytes | str) -> str:
    """Sign SHA256(canonical) and return the low-S DER signature as hex."""
    if isinstance(canonical, str):
        canonical = canonical.encode("utf-8")
    digest = hashlib.sha256(canonical).digest()

    try:
        der = key_pair.private_key.sign(digest, _ECDSA_PREHASHED)
        r, s = decode_dss_signature(der)
        if s > SECP256K1_ORDER // 2:
            s = SECP256K1_ORDER - s
        return encode_dss_signature(r, s).hex()
    except Exception as e:
        raise SigningError(f"Failed to sign request: {type(e).__name__}: {e}") from e


def verify(public_key_hex: str, canonical: bytes | str, signature_hex: str) -> bool:
    """Check a hex signature the way the server does."""
    if isinstance(canonical, str):
        canonical = canonical.encode("utf-8")
    digest = hashlib.sha256(canonical).digest()

    try:
        public_key = ec.EllipticCurvePublicKey.from_encoded_point(
            ec.SECP256K1(), bytes.fromhex(public_key_hex)
        )
        public_key.verify(bytes.fromhex(signature_hex), digest, _ECDSA_PREHASHED)
    except (InvalidSignature, ValueError):
        return False
    return True


def signature_headers(key_pair: KeyPair, canonical: bytes | str) -> dict[str, str]:
    """Identity and signature headers for a signed request."""
    return {
        IDENTITY_HEADER: key_pair.public_key_hex,
        SIGNATURE_HEADER: sign(key_pair, canonical),
    }
