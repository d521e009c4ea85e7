"""Identities and the secret files written by ssb servers."""

from __future__ import annotations

import io
import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import IO

from nacl.bindings import crypto_sign_keypair

from .crypto import key_to_ssb_id, to_ed25519_pk, to_ed25519_sk
from .errors import HomeNotFoundError, InvalidConfigError, KeystoreError

CURVE_ED25519 = "ed25519"

_FIELDS = ("curve", "id", "private", "public")


@dataclass
class JsonSSBSecret:
    """The JSON document stored in an ssb secret file."""

    curve: str
    id: str
    private: str = field(repr=False)
    public: str


@dataclass(frozen=True)
class OwnedIdentity:
    """A feed identity together with its ed25519 key pair."""

    id: str
    pk: bytes
    sk: bytes = field(repr=False)

    @classmethod
    def create(cls) -> OwnedIdentity:
        """Generate a fresh random identity."""
        pk, sk = crypto_sign_keypair()
        return cls(id="@" + key_to_ssb_id(pk), pk=pk, sk=sk)


def _read_text(reader: IO) -> str:
    data = reader.read()
    if isinstance(data, (bytes, bytearray)):
        try:
            return bytes(data).decode("utf-8")
        except UnicodeDecodeError as err:
            raise KeystoreError(f"i/o: {err}") from err
    return data


def _write_text(writer: IO, text: str) -> None:
    if isinstance(writer, io.TextIOBase):
        writer.write(text)
    else:
        writer.write(text.encode("utf-8"))


def _parse_secret(text: str) -> JsonSSBSecret:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as err:
        raise KeystoreError(f"i/o: {err}") from err
    if not isinstance(data, dict):
        raise KeystoreError("i/o: secret is not a JSON object")
    missing = [name for name in _FIELDS if name not in data]
    if missing:
        raise KeystoreError(f"i/o: missing field {missing[0]!r}")
    if not all(isinstance(data[name], str) for name in _FIELDS):
        raise KeystoreError("i/o: secret fields must be strings")
    return JsonSSBSecret(**{name: data[name] for name in _FIELDS})


def _identity_from_secret(secret: JsonSSBSecret) -> OwnedIdentity:
    if secret.curve != CURVE_ED25519:
        raise InvalidConfigError()
    return OwnedIdentity(
        id=secret.id,
        pk=to_ed25519_pk(secret.public),
        sk=to_ed25519_sk(secret.private),
    )


def _secret_from_identity(identity: OwnedIdentity) -> dict:
    secret = JsonSSBSecret(
        curve=CURVE_ED25519,
        id=identity.id,
        private=key_to_ssb_id(identity.sk),
        public=key_to_ssb_id(identity.pk),
    )
    return asdict(secret)


def _home() -> Path:
    try:
        return Path.home()
    except RuntimeError as err:
        raise HomeNotFoundError() from err


def read_gosbot_config(reader: IO) -> OwnedIdentity:
    """Read a go-sbot secret file from an open stream."""
    return _identity_from_secret(_parse_secret(_read_text(reader)))


def write_gosbot_config(identity: OwnedIdentity, writer: IO) -> None:
    """Write an identity as a compact go-sbot secret file."""
    text = json.dumps(_secret_from_identity(identity), separators=(",", ":"), ensure_ascii=False)
    _write_text(writer, text)


def from_custom_gosbot_keypath(path) -> OwnedIdentity:
    """Load a go-sbot identity from the given file; OSError propagates."""
    with open(path, "rb") as file:
        return read_gosbot_config(file)


def from_gosbot_local() -> OwnedIdentity:
    """Load the go-sbot identity from ``~/.ssb-go/secret``."""
    return from_custom_gosbot_keypath(_home() / ".ssb-go" / "secret")


def read_patchwork_config(reader: IO) -> OwnedIdentity:
    """Read a patchwork secret file, skipping ``#`` comment lines."""
    lines = (line.removesuffix("\r") for line in _read_text(reader).split("\n"))
    text = "".join(line for line in lines if not line.startswith("#"))
    return _identity_from_secret(_parse_secret(text))


def write_patchwork_config(identity: OwnedIdentity, writer: IO) -> None:
    """Write an identity as a pretty-printed patchwork secret file."""
    text = json.dumps(_secret_from_identity(identity), indent=2, ensure_ascii=False)
    _write_text(writer, text)


def from_custom_patchwork_keypath(path) -> OwnedIdentity:
    """Load a patchwork identity from the given file; OSError propagates."""
    with open(path, "rb") as file:
        return read_patchwork_config(file)


def from_patchwork_local() -> OwnedIdentity:
    """Load the patchwork identity from ``~/.ssb/secret``."""
    return from_custom_patchwork_keypath(_home() / ".ssb" / "secret")