"""Arguments and results of the standard ssb rpc methods."""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from typing import Any, Generic, TypeVar

from .errors import ApiError

K = TypeVar("K")


def _load_object(data: Any, what: str) -> dict:
    """Accept JSON text, JSON bytes or an already decoded object."""
    if isinstance(data, (bytes, bytearray, str)):
        try:
            data = json.loads(data)
        except ValueError as err:
            raise ApiError("json decode") from err
    if not isinstance(data, dict):
        raise ApiError(f"json decode: {what} must be a JSON object")
    return data


def _field(data: dict, key: str, what: str) -> Any:
    if key not in data:
        raise ApiError(f"json decode: {what} is missing field {key!r}")
    return data[key]


def _string(data: dict, key: str, what: str) -> str:
    value = _field(data, key, what)
    if not isinstance(value, str):
        raise ApiError(f"json decode: {what}.{key} must be a string")
    return value


def _without_none(pairs: dict) -> dict:
    return {key: value for key, value in pairs.items() if value is not None}


@dataclass(frozen=True)
class BlobsGetIn:
    """Arguments of ``blobs.get``: the blob id and optional size limits."""

    key: str
    size: int | None = None
    max: int | None = None

    def with_size(self, size: int) -> BlobsGetIn:
        """Reject the blob unless it is exactly ``size`` bytes."""
        return replace(self, size=size)

    def with_max(self, max_size: int) -> BlobsGetIn:
        """Reject the blob if it is larger than ``max_size`` bytes."""
        return replace(self, max=max_size)

    def to_json(self) -> dict:
        return {"key": self.key, "size": self.size, "max": self.max}


@dataclass(frozen=True)
class EbtReplicate:
    """Arguments of ``ebt.replicate``."""

    version: int = 3
    format: str = "classic"

    def to_json(self) -> dict:
        return {"version": self.version, "format": self.format}


@dataclass(frozen=True)
class ErrorOut:
    """An error body as sent by a server."""

    name: str
    message: str
    stack: str

    @classmethod
    def from_json(cls, data: Any) -> ErrorOut:
        raw = _load_object(data, "error")
        return cls(
            name=_string(raw, "name", "error"),
            message=_string(raw, "message", "error"),
            stack=_string(raw, "stack", "error"),
        )


@dataclass(frozen=True)
class CreateHistoryStreamIn:
    """Arguments of ``createHistoryStream`` for one feed."""

    id: str
    seq: int | None = None
    live: bool | None = None
    keys: bool | None = None
    values: bool | None = None
    limit: int | None = None

    def after_seq(self, seq: int) -> CreateHistoryStreamIn:
        """Only stream messages with a sequence number greater than ``seq``."""
        return replace(self, seq=seq)

    def with_live(self, live: bool) -> CreateHistoryStreamIn:
        return replace(self, live=live)

    def keys_values(self, keys: bool, values: bool) -> CreateHistoryStreamIn:
        return replace(self, keys=keys, values=values)

    def with_limit(self, limit: int) -> CreateHistoryStreamIn:
        return replace(self, limit=limit)

    def to_json(self) -> dict:
        return _without_none(
            {
                "id": self.id,
                "seq": self.seq,
                "live": self.live,
                "keys": self.keys,
                "values": self.values,
                "limit": self.limit,
            }
        )


@dataclass(frozen=True)
class LatestOut:
    """One entry of the ``latest`` stream: a feed and its newest sequence."""

    id: str
    sequence: int
    ts: float

    @classmethod
    def from_json(cls, data: Any) -> LatestOut:
        raw = _load_object(data, "latest")
        sequence = _field(raw, "sequence", "latest")
        if isinstance(sequence, bool) or not isinstance(sequence, int) or sequence < 0:
            raise ApiError("json decode: latest.sequence must be a non-negative integer")
        ts = _field(raw, "ts", "latest")
        if isinstance(ts, bool) or not isinstance(ts, (int, float)):
            raise ApiError("json decode: latest.ts must be a number")
        return cls(id=_string(raw, "id", "latest"), sequence=sequence, ts=float(ts))


@dataclass(frozen=True)
class CreateStreamIn(Generic[K]):
    """Range and shape options of a database stream such as ``createFeedStream``."""

    live: bool | None = None
    gt: K | None = None
    gte: K | None = None
    lt: K | None = None
    lte: K | None = None
    reverse: bool | None = None
    keys: bool | None = None
    values: bool | None = None
    limit: int | None = None
    fill_cache: bool | None = None
    key_encoding: str | None = None
    value_encoding: str | None = None

    def with_live(self, live: bool) -> CreateStreamIn[K]:
        return replace(self, live=live)

    def with_gt(self, value: K) -> CreateStreamIn[K]:
        return replace(self, gt=value)

    def with_gte(self, value: K) -> CreateStreamIn[K]:
        return replace(self, gte=value)

    def with_lt(self, value: K) -> CreateStreamIn[K]:
        return replace(self, lt=value)

    def with_lte(self, value: K) -> CreateStreamIn[K]:
        return replace(self, lte=value)

    def with_reverse(self, reverse: bool) -> CreateStreamIn[K]:
        return replace(self, reverse=reverse)

    def keys_values(self, keys: bool, values: bool) -> CreateStreamIn[K]:
        return replace(self, keys=keys, values=values)

    def encoding(self, keys: str, values: str) -> CreateStreamIn[K]:
        return replace(self, key_encoding=keys, value_encoding=values)

    def with_limit(self, limit: int) -> CreateStreamIn[K]:
        return replace(self, limit=limit)

    def to_json(self) -> dict:
        out = _without_none(
            {
                "live": self.live,
                "gt": self.gt,
                "gte": self.gte,
                "lt": self.lt,
                "lte": self.lte,
                "reverse": self.reverse,
                "keys": self.keys,
                "values": self.values,
                "limit": self.limit,
                "fillCache": self.fill_cache,
            }
        )
        out["keyEncoding"] = self.key_encoding
        out["valueEncoding"] = self.value_encoding
        return out


@dataclass(frozen=True)
class TanglesThread:
    """Arguments of ``tangles.thread``: the root message of a thread."""

    root: str
    keys: bool | None = None
    values: bool | None = None
    limit: int | None = None
    private: bool | None = None

    def keys_values(self, keys: bool, values: bool) -> TanglesThread:
        return replace(self, keys=keys, values=values)

    def with_limit(self, limit: int) -> TanglesThread:
        return replace(self, limit=limit)

    def with_private(self, private: bool) -> TanglesThread:
        """Ask the server to unbox private messages of the thread."""
        return replace(self, private=private)

    def to_json(self) -> dict:
        return _without_none(
            {
                "root": self.root,
                "keys": self.keys,
                "values": self.values,
                "limit": self.limit,
                "private": self.private,
            }
        )


@dataclass(frozen=True)
class WhoAmIOut:
    """The answer to ``whoami``."""

    id: str

    @classmethod
    def from_json(cls, data: Any) -> WhoAmIOut:
        raw = _load_object(data, "whoami")
        return cls(id=_string(raw, "id", "whoami"))

    def to_json(self) -> dict:
        return {"id": self.id}