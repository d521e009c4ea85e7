"""Private-box encryption of message content for up to seven recipients."""

from __future__ import annotations

import base64
import binascii

from nacl.bindings import (
    crypto_scalarmult,
    crypto_secretbox,
    crypto_secretbox_KEYBYTES,
    crypto_secretbox_MACBYTES,
    crypto_secretbox_NONCEBYTES,
    crypto_secretbox_open,
    crypto_sign_ed25519_pk_to_curve25519,
    crypto_sign_ed25519_sk_to_curve25519,
    crypto_sign_keypair,
)
from nacl.exceptions import CryptoError as NaclCryptoError
from nacl.utils import random

from .crypto import PUBLIC_KEY_BYTES, to_ed25519_pk
from .errors import BadRecipientCountError, DecipherError, EmptyPlaintextError, FeedError

SUFFIX = ".box"
MAX_RECIPIENTS = 7

_RECIPIENT_COUNT_LEN = 1
_ENCRYPTED_HEADER_LEN = (
    _RECIPIENT_COUNT_LEN + crypto_secretbox_KEYBYTES + crypto_secretbox_MACBYTES
)


def is_privatebox(text: str) -> bool:
    """Whether a content string is a private box."""
    return text.endswith(SUFFIX)


def privatebox_cipher(plaintext: str, recipients: list[str]) -> str:
    """Encrypt text for the given ``@<key>.ed25519`` feed ids."""
    keys = [to_ed25519_pk(recipient[1:]) for recipient in recipients]
    ciphertext = cipher(plaintext.encode("utf-8"), keys)
    return base64.b64encode(ciphertext).decode("ascii") + SUFFIX


def privatebox_decipher(ciphertext: str, sk: bytes) -> str | None:
    """Decrypt a private box; ``None`` if it was not addressed to ``sk``."""
    encoded = ciphertext[: max(len(ciphertext) - len(SUFFIX), 0)]
    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as err:
        raise FeedError("base64 decoding") from err
    plaintext = decipher(data, sk)
    return None if plaintext is None else plaintext.decode("utf-8", errors="replace")


def _to_curve_pk(public_key: bytes) -> bytes:
    try:
        return crypto_sign_ed25519_pk_to_curve25519(public_key)
    except (RuntimeError, ValueError, TypeError) as err:
        raise FeedError("crypto scalar mult failed") from err


def cipher(plaintext: bytes, recipients: list[bytes]) -> bytes:
    """Encrypt raw bytes for a list of ed25519 public keys."""
    if not plaintext:
        raise EmptyPlaintextError()
    if not recipients or len(recipients) > MAX_RECIPIENTS:
        raise BadRecipientCountError()

    header_pk, header_sk = crypto_sign_keypair()
    body_key = random(crypto_secretbox_KEYBYTES)
    nonce = random(crypto_secretbox_NONCEBYTES)
    cipher_message = crypto_secretbox(plaintext, nonce, body_key)

    header_scalar = crypto_sign_ed25519_sk_to_curve25519(header_sk)
    plain_header = bytes([len(recipients)]) + body_key

    parts = [nonce, crypto_sign_ed25519_pk_to_curve25519(header_pk)]
    for recipient in recipients:
        try:
            shared = crypto_scalarmult(header_scalar, _to_curve_pk(recipient))
        except RuntimeError as err:
            raise FeedError("crypto scalar mult failed") from err
        parts.append(crypto_secretbox(plain_header, nonce, shared))
    parts.append(cipher_message)
    return b"".join(parts)


def decipher(ciphertext: bytes, sk: bytes) -> bytes | None:
    """Decrypt raw private-box bytes; ``None`` if no header opens with ``sk``."""
    if len(ciphertext) < crypto_secretbox_NONCEBYTES + PUBLIC_KEY_BYTES:
        raise FeedError("cannot read nonce")
    nonce = ciphertext[:crypto_secretbox_NONCEBYTES]
    cursor = ciphertext[crypto_secretbox_NONCEBYTES:]
    header_pk = cursor[:PUBLIC_KEY_BYTES]
    cursor = cursor[PUBLIC_KEY_BYTES:]

    try:
        key = crypto_scalarmult(crypto_sign_ed25519_sk_to_curve25519(sk), header_pk)
    except (RuntimeError, ValueError, TypeError) as err:
        raise FeedError("cannot create key") from err

    header_no = 0
    while (
        header_no < MAX_RECIPIENTS
        and len(cursor) > _ENCRYPTED_HEADER_LEN + crypto_secretbox_MACBYTES
    ):
        try:
            header = crypto_secretbox_open(cursor[:_ENCRYPTED_HEADER_LEN], nonce, key)
        except NaclCryptoError:
            header_no += 1
            cursor = cursor[_ENCRYPTED_HEADER_LEN:]
            continue
        remaining = header[0] - header_no
        if remaining < 0:
            raise DecipherError()
        body_key = header[_RECIPIENT_COUNT_LEN:]
        try:
            return crypto_secretbox_open(
                cursor[_ENCRYPTED_HEADER_LEN * remaining :], nonce, body_key
            )
        except NaclCryptoError as err:
            raise DecipherError() from err
    return None