"""Lenco webhook signature verification.

Lenco signs the raw request body with HMAC-SHA512. The HMAC key is not the
configured webhook secret itself but the hex SHA-256 digest of it.

Signatures have shown up hex-encoded (either case) and base64-encoded across
Lenco API versions, so verification accepts any of:
  1. the header decoded (hex, then base64) and compared as bytes
  2. the lowercase hex digest compared as a string
  3. the base64 digest compared as a string
Every comparison goes through hmac.compare_digest.
"""

import base64
import binascii
import hashlib
import hmac
import logging
import re

logger = logging.getLogger(__name__)

_HEX_RE = re.compile(r"[0-9a-fA-F]+")


def derive_webhook_hash_key(secret):
    """Return the HMAC key for a webhook secret: hex(sha256(secret))."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def _as_bytes(raw_body):
    if isinstance(raw_body, str):
        return raw_body.encode("utf-8")
    return bytes(raw_body)


def compute_lenco_hmac(raw_body, secret):
    """HMAC-SHA512 of the raw body under the derived key (raw digest bytes)."""
    key = derive_webhook_hash_key(secret).encode("utf-8")
    return hmac.new(key, _as_bytes(raw_body), hashlib.sha512).digest()


def _decode_hex(signature):
    if not _HEX_RE.fullmatch(signature) or len(signature) % 2 != 0:
        return None
    return bytes.fromhex(signature)


def _decode_base64(signature):
    try:
        decoded = base64.b64decode(signature, validate=True)
    except (binascii.Error, ValueError):
        return None
    return decoded or None


def decode_signature(signature):
    """Decode a signature header to raw bytes (hex first, then base64).

    Returns None if neither encoding applies.
    """
    decoded = _decode_hex(signature)
    if decoded is None:
        decoded = _decode_base64(signature)
    return decoded


def verify_lenco_signature(signature, raw_body, secret):
    """Verify a Lenco webhook signature header against the raw body.

    Args:
        signature: Value of the signature header as received.
        raw_body:  Exact request body (bytes; str is UTF-8 encoded).
        secret:    Configured LENCO_WEBHOOK_SECRET.

    Returns True on a match, False otherwise. Never raises.
    """
    if not signature or not raw_body or not secret:
        return False

    try:
        expected = compute_lenco_hmac(raw_body, secret)

        provided = decode_signature(signature)
        if provided is not None and hmac.compare_digest(expected, provided):
            return True

        # String forms, for headers that decode to something else entirely
        normalised = signature.lower() if _HEX_RE.fullmatch(signature) else signature
        if hmac.compare_digest(
            expected.hex().encode("ascii"), normalised.encode("utf-8")
        ):
            return True

        expected_b64 = base64.b64encode(expected)
        if hmac.compare_digest(expected_b64, signature.encode("utf-8")):
            return True
    except Exception as e:
        logger.error(f"Lenco signature verification error: {e}")
        return False

    return False


def create_lenco_signature(raw_body, secret):
    """Sign a body the way Lenco does. Used by tests and `flask sign-webhook`.

    Returns {"hex": ..., "base64": ...}.
    Raises ValueError if the secret is empty.
    """
    if not secret:
        raise ValueError("Webhook secret is required to sign a payload")

    digest = compute_lenco_hmac(raw_body, secret)
    return {
        "hex": digest.hex(),
        "base64": base64.b64encode(digest).decode("ascii"),
    }
