"""Tests for Lenco webhook signature verification.

Covers:
- Key derivation (sha256 hex of the secret feeds HMAC-SHA512)
- Hex (lower/upper) and base64 signatures accepted
- Corrupted, garbage and raw-secret signatures rejected
- Empty inputs fail closed
- Internal errors are swallowed as a failed verification
"""

import base64
import hashlib
import hmac
from unittest.mock import patch

import pytest

from wathaci.services.signature_service import (
    create_lenco_signature,
    decode_signature,
    derive_webhook_hash_key,
    verify_lenco_signature,
)

SECRET = "lenco_live_secret_S"
BODY = b'{"event":"payment.success","data":{"reference":"WC_1"}}'


def _expected_digest(body=BODY, secret=SECRET):
    key = hashlib.sha256(secret.encode()).hexdigest().encode()
    return hmac.new(key, body, hashlib.sha512).digest()


class TestKeyDerivation:

    def test_derived_key_is_sha256_hex(self):
        assert derive_webhook_hash_key("abc") == (
            "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
        )

    def test_create_signature_matches_independent_hmac(self):
        sigs = create_lenco_signature(BODY, SECRET)
        digest = _expected_digest()
        assert sigs["hex"] == digest.hex()
        assert sigs["base64"] == base64.b64encode(digest).decode()

    def test_create_signature_requires_secret(self):
        with pytest.raises(ValueError):
            create_lenco_signature(BODY, "")


class TestVerifyAccepts:

    def test_hex_signature(self):
        assert verify_lenco_signature(_expected_digest().hex(), BODY, SECRET) is True

    def test_uppercase_hex_signature(self):
        assert verify_lenco_signature(_expected_digest().hex().upper(), BODY, SECRET) is True

    def test_base64_signature(self):
        sig = base64.b64encode(_expected_digest()).decode()
        assert verify_lenco_signature(sig, BODY, SECRET) is True

    def test_str_body_same_as_bytes(self):
        sig = _expected_digest().hex()
        assert verify_lenco_signature(sig, BODY.decode(), SECRET) is True


class TestVerifyRejects:

    def test_one_flipped_byte(self):
        digest = bytearray(_expected_digest())
        digest[10] ^= 0x01
        assert verify_lenco_signature(bytes(digest).hex(), BODY, SECRET) is False
        assert verify_lenco_signature(
            base64.b64encode(bytes(digest)).decode(), BODY, SECRET
        ) is False

    def test_garbage_signature(self):
        assert verify_lenco_signature("not-a-signature!!", BODY, SECRET) is False

    def test_non_ascii_signature(self):
        assert verify_lenco_signature("sïgnature", BODY, SECRET) is False

    def test_signature_for_other_body(self):
        sig = _expected_digest(body=b"{}").hex()
        assert verify_lenco_signature(sig, BODY, SECRET) is False

    def test_signature_with_raw_secret_as_key(self):
        """The configured secret must go through key derivation first."""
        raw = hmac.new(SECRET.encode(), BODY, hashlib.sha512).hexdigest()
        assert verify_lenco_signature(raw, BODY, SECRET) is False

    def test_wrong_secret(self):
        sig = _expected_digest(secret="other").hex()
        assert verify_lenco_signature(sig, BODY, SECRET) is False

    def test_truncated_signature(self):
        sig = _expected_digest().hex()[:-2]
        assert verify_lenco_signature(sig, BODY, SECRET) is False


class TestFailClosed:

    @pytest.mark.parametrize("signature,body,secret", [
        ("", BODY, SECRET),
        (None, BODY, SECRET),
        ("abcd", b"", SECRET),
        ("abcd", None, SECRET),
        ("abcd", BODY, ""),
        ("abcd", BODY, None),
    ])
    def test_missing_inputs(self, signature, body, secret):
        assert verify_lenco_signature(signature, body, secret) is False

    def test_internal_error_returns_false(self):
        with patch(
            "wathaci.services.signature_service.compute_lenco_hmac",
            side_effect=RuntimeError("crypto backend unavailable"),
        ):
            assert verify_lenco_signature("abcd", BODY, SECRET) is False


class TestDecodeSignature:

    def test_hex_preferred(self):
        assert decode_signature("00ff") == b"\x00\xff"

    def test_odd_length_hex_falls_back_to_base64(self):
        # "abc" is not valid base64 either (bad padding)
        assert decode_signature("abc") is None

    def test_base64(self):
        assert decode_signature(base64.b64encode(b"hello").decode()) == b"hello"

    def test_neither(self):
        assert decode_signature("$$$") is None


class TestStrictHex:

    def test_trailing_newline_is_not_hex(self):
        assert decode_signature("00ff\n") is None

    def test_embedded_whitespace_is_not_hex(self):
        assert decode_signature("00 ff") is None

    def test_valid_signature_with_trailing_newline_rejected(self):
        sig = _expected_digest().hex() + "\n"
        assert verify_lenco_signature(sig, BODY, SECRET) is False
