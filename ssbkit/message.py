"""Signed feed messages: creation, verification and field access."""

from __future__ import annotations

import base64
import json
import time
from dataclasses import dataclass
from typing import Any

from nacl.bindings import crypto_sign, crypto_sign_BYTES
from nacl.exceptions import BadSignatureError
from nacl.signing import VerifyKey

from .crypto import (
    ED25519_SIGNATURE_SUFFIX,
    digest_to_ssb_id,
    to_ed25519_pk,
    to_ed25519_signature,
)
from .encoding import ssb_sha256, stringify_json
from .errors import InvalidJsonError, InvalidSignatureError

MSG_PREVIOUS = "previous"
MSG_AUTHOR = "author"
MSG_SEQUENCE = "sequence"
MSG_TIMESTAMP = "timestamp"
MSG_HASH = "hash"
MSG_CONTENT = "content"
MSG_SIGNATURE = "signature"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class MessageId:
    """The sha256 digest that identifies a message."""

    digest: bytes

    def __str__(self) -> str:
        return "%" + digest_to_ssb_id(self.digest)

    def __bytes__(self) -> bytes:
        return self.digest


@dataclass
class Message:
    """A feed message whose signature has been checked."""

    value: dict

    @classmethod
    def sign(cls, prev: Message | None, identity, content: Any) -> Message:
        """Create and sign the message that follows ``prev`` in ``identity``'s feed."""
        value: dict[str, Any] = {}
        if prev is not None:
            value[MSG_PREVIOUS] = str(prev.id())
            value[MSG_SEQUENCE] = prev.sequence() + 1
        else:
            value[MSG_PREVIOUS] = None
            value[MSG_SEQUENCE] = 1
        value[MSG_AUTHOR] = identity.id
        value[MSG_TIMESTAMP] = time.time_ns() // 1_000_000
        value[MSG_HASH] = "sha256"
        value[MSG_CONTENT] = content

        to_sign = stringify_json(value).encode("utf-8")
        signature = crypto_sign(to_sign, identity.sk)[:crypto_sign_BYTES]
        value[MSG_SIGNATURE] = (
            base64.b64encode(signature).decode("ascii") + ED25519_SIGNATURE_SUFFIX
        )
        return cls(value)

    @classmethod
    def from_slice(cls, data: bytes) -> Message:
        """Parse and verify a message from JSON bytes."""
        try:
            value = json.loads(data)
        except ValueError as err:
            raise InvalidJsonError() from err
        return cls.from_value(value)

    @classmethod
    def from_str(cls, text: str) -> Message:
        """Parse and verify a message from JSON text."""
        return cls.from_slice(text)

    @classmethod
    def from_value(cls, value: Any) -> Message:
        """Check the shape and signature of a decoded JSON message."""
        if not isinstance(value, dict):
            raise InvalidJsonError()
        previous = value.get(MSG_PREVIOUS)
        if previous is not None and not isinstance(previous, str):
            raise InvalidJsonError()
        if not _is_number(value.get(MSG_SEQUENCE)):
            raise InvalidJsonError()
        if not _is_number(value.get(MSG_TIMESTAMP)):
            raise InvalidJsonError()
        if not isinstance(value.get(MSG_HASH), str):
            raise InvalidJsonError()
        if MSG_CONTENT not in value:
            raise InvalidJsonError()

        signature = value.get(MSG_SIGNATURE)
        if not isinstance(signature, str):
            raise InvalidJsonError()
        author = value.get(MSG_AUTHOR)
        if not isinstance(author, str):
            raise InvalidJsonError()

        sig = to_ed25519_signature(signature)
        signer = to_ed25519_pk(author[1:])

        unsigned = {key: item for key, item in value.items() if key != MSG_SIGNATURE}
        signed_text = stringify_json(unsigned).encode("utf-8")
        try:
            VerifyKey(signer).verify(signed_text, sig)
        except BadSignatureError:
            raise InvalidSignatureError() from None

        unsigned[MSG_SIGNATURE] = signature
        return cls(unsigned)

    def _field(self, name: str, kind: type) -> Any:
        item = self.value.get(name)
        if not isinstance(item, kind):
            raise InvalidJsonError(f"field {name!r} is missing or malformed")
        return item

    def id(self) -> MessageId:
        """The message identifier: the hash of its canonical form."""
        return MessageId(ssb_sha256(self.value))

    def previous(self) -> str | None:
        item = self.value.get(MSG_PREVIOUS)
        if item is not None and not isinstance(item, str):
            raise InvalidJsonError("field 'previous' is malformed")
        return item

    def author(self) -> str:
        return self._field(MSG_AUTHOR, str)

    def sequence(self) -> int:
        item = self.value.get(MSG_SEQUENCE)
        if isinstance(item, bool) or not isinstance(item, int) or item < 0:
            raise InvalidJsonError("field 'sequence' is missing or malformed")
        return item

    def timestamp(self) -> float:
        item = self.value.get(MSG_TIMESTAMP)
        if not _is_number(item):
            raise InvalidJsonError("field 'timestamp' is missing or malformed")
        return float(item)

    def hash(self) -> str:
        return self._field(MSG_HASH, str)

    def content(self) -> Any:
        if MSG_CONTENT not in self.value:
            raise InvalidJsonError("field 'content' is missing")
        return self.value[MSG_CONTENT]

    def signature(self) -> str:
        return self._field(MSG_SIGNATURE, str)

    def __str__(self) -> str:
        return json.dumps(self.value, separators=(",", ":"), ensure_ascii=False)