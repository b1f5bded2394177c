"""Tests for request signing and verification."""

import pytest
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature

from btcpay.errors import SigningError
from btcpay.keys import generate_key_pair
from btcpay.signing import (
    IDENTITY_HEADER,
    SECP256K1_ORDER,
    SIGNATURE_HEADER,
    canonical_string,
    sign,
    signature_headers,
    verify,
)


@pytest.fixture
def key_pair():
    return generate_key_pair()


class TestCanonicalString:
    def test_url_then_body_without_separator(self):
        assert canonical_string("https://h/invoices", b'{"a":1}') == b'https://h/invoices{"a":1}'

    def test_no_body(self):
        assert canonical_string("https://h/rates?token=1&cryptoCode=BTC") == b"https://h/rates?token=1&cryptoCode=BTC"

    def test_str_body(self):
        assert canonical_string("u", "b") == b"ub"


class TestSign:
    def test_signature_verifies(self, key_pair):
        message = canonical_string("https://h/invoices?token=abc", b'{"price":"1"}')
        sig = sign(key_pair, message)
        assert verify(key_pair.public_key_hex, message, sig)

    def test_altered_message_fails(self, key_pair):
        message = b"https://h/invoices?token=abc"
        sig = sign(key_pair, message)
        for i in range(len(message)):
            tampered = bytearray(message)
            tampered[i] ^= 0x01
            assert not verify(key_pair.public_key_hex, bytes(tampered), sig)

    def test_other_key_fails(self, key_pair):
        sig = sign(key_pair, b"msg")
        assert not verify(generate_key_pair().public_key_hex, b"msg", sig)

    def test_signature_is_low_s_der_hex(self, key_pair):
        for _ in range(10):
            sig = sign(key_pair, b"payload")
            _, s = decode_dss_signature(bytes.fromhex(sig))
            assert s <= SECP256K1_ORDER // 2

    def test_str_and_bytes_agree(self, key_pair):
        sig = sign(key_pair, "hello")
        assert verify(key_pair.public_key_hex, b"hello", sig)

    def test_malformed_inputs_do_not_verify(self, key_pair):
        sig = sign(key_pair, b"msg")
        assert not verify("zz", b"msg", sig)
        assert not verify(key_pair.public_key_hex, b"msg", "zz")
        assert not verify(key_pair.public_key_hex, b"msg", "3000")

    def test_signing_failure_is_wrapped(self, key_pair):
        class BrokenKey:
            def sign(self, *args, **kwargs):
                raise RuntimeError("hsm unavailable")

        broken = type(key_pair)(private_key=BrokenKey())  # type: ignore[arg-type]
        with pytest.raises(SigningError, match="hsm unavailable"):
            sign(broken, b"msg")


def test_signature_headers(key_pair):
    headers = signature_headers(key_pair, b"https://h/x")
    assert headers[IDENTITY_HEADER] == key_pair.public_key_hex
    assert verify(key_pair.public_key_hex, b"https://h/x", headers[SIGNATURE_HEADER])
