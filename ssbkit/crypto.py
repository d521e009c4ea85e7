"""Conversions between textual ssb identifiers and raw key material."""

from __future__ import annotations

import base64

from .errors import (
    BadPublicKeyError,
    BadSecretKeyError,
    CryptoError,
    InvalidDigestError,
    InvalidSignatureFormatError,
    InvalidSuffixError,
)

CURVE_ED25519_SUFFIX = ".ed25519"
ED25519_SIGNATURE_SUFFIX = ".sig.ed25519"
SHA256_SUFFIX = ".sha256"

PUBLIC_KEY_BYTES = 32
SECRET_KEY_BYTES = 64
SIGNATURE_BYTES = 64
SHA256_BYTES = 32


def _b64decode(text: str) -> bytes:
    try:
        return base64.b64decode(text, validate=True)
    except ValueError as err:
        raise CryptoError("error decoding base64") from err


def _strip_suffix(text: str, suffix: str) -> str:
    if not text.endswith(suffix):
        raise InvalidSuffixError()
    return text[: len(text) - len(suffix)]


def _checked(data: bytes, length: int, error: type[CryptoError]) -> bytes:
    if len(data) != length:
        raise error()
    return data


def key_to_ssb_id(key) -> str:
    """Render a public or secret ed25519 key as base64 with the ``.ed25519`` suffix."""
    return base64.b64encode(bytes(key)).decode("ascii") + CURVE_ED25519_SUFFIX


def digest_to_ssb_id(digest) -> str:
    """Render a sha256 digest as base64 with the ``.sha256`` suffix."""
    return base64.b64encode(bytes(digest)).decode("ascii") + SHA256_SUFFIX


def to_ed25519_pk(text: str) -> bytes:
    """Decode ``<base64>.ed25519`` into a 32-byte public key."""
    return to_ed25519_pk_no_suffix(_strip_suffix(text, CURVE_ED25519_SUFFIX))


def to_ed25519_pk_no_suffix(text: str) -> bytes:
    """Decode bare base64 into a 32-byte public key."""
    return _checked(_b64decode(text), PUBLIC_KEY_BYTES, BadPublicKeyError)


def to_ed25519_sk(text: str) -> bytes:
    """Decode ``<base64>.ed25519`` into a 64-byte secret key."""
    return to_ed25519_sk_no_suffix(_strip_suffix(text, CURVE_ED25519_SUFFIX))


def to_ed25519_sk_no_suffix(text: str) -> bytes:
    """Decode bare base64 into a 64-byte secret key."""
    return _checked(_b64decode(text), SECRET_KEY_BYTES, BadSecretKeyError)


def to_ed25519_signature(text: str) -> bytes:
    """Decode ``<base64>.sig.ed25519`` into a 64-byte signature."""
    data = _b64decode(_strip_suffix(text, ED25519_SIGNATURE_SUFFIX))
    return _checked(data, SIGNATURE_BYTES, InvalidSignatureFormatError)


def to_sha256(text: str) -> bytes:
    """Decode ``<base64>.sha256`` into a 32-byte digest."""
    data = _b64decode(_strip_suffix(text, SHA256_SUFFIX))
    return _checked(data, SHA256_BYTES, InvalidDigestError)