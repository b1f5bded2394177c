"""
SIN (Service Identification Number) derivation.

A SIN is a Base58 string over a versioned, checksummed RIPEMD-160 hash of
the compressed public key, built the same way as a Bitcoin address but
with the identity version prefix 0x0F02:

    header   = 0x0F02 || RIPEMD160(SHA256(pubkey))
    checksum = SHA256(SHA256(header))[:4]
    SIN      = Base58(header || checksum)
"""

from __future__ import annotations

import hashlib

import base58

from .errors import KeyFormatError
from .keys import KeyPair, decode_pem

SIN_VERSION_PREFIX = bytes.fromhex("0f02")
CHECKSUM_LENGTH = 4


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def ripemd160(data: bytes) -> bytes:
    h = hashlib.new("ripemd160")
    h.update(data)
    return h.digest()


def derive_sin(public_key: bytes | str) -> str:
    """Derive the SIN for a compressed public key (raw bytes or hex)."""
    if isinstance(public_key, str):
        try:
            public_key = bytes.fromhex(public_key)
        except ValueError as e:
            raise KeyFormatError(f"Public key is not valid hex: {e}") from e
    if not public_key:
        raise KeyFormatError("Public key is empty")

    header = SIN_VERSION_PREFIX + ripemd160(sha256(public_key))
    checksum = sha256(sha256(header))[:CHECKSUM_LENGTH]
    return base58.b58encode(header + checksum).decode("ascii")


def sin_from_key_pair(key_pair: KeyPair) -> str:
    return derive_sin(key_pair.public_point_compressed)


def sin_from_pem(pem: str) -> str:
    return sin_from_key_pair(decode_pem(pem))
