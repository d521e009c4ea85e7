"""Muxrpc framing: headers, request bodies and the reader/writer pair."""

from __future__ import annotations

import asyncio
import json
import logging
import struct
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Union

from .errors import HeaderSizeTooSmallError, InvalidBodyTypeError, RpcError

log = logging.getLogger(__name__)

HEADER_SIZE = 9

_STREAM_FLAG = 1 << 3
_END_OR_ERROR_FLAG = 1 << 2
_BODY_TYPE_MASK = 0b11
_HEADER_STRUCT = struct.Struct(">BIi")


class ArgType(Enum):
    """How the arguments of a request are packed into its body."""

    ARRAY = "array"
    TUPLE = "tuple"
    OBJECT = "object"


class BodyType(Enum):
    """Encoding of a frame body, as held in the low header bits."""

    BINARY = 0
    UTF8 = 1
    JSON = 2


class RpcType(Enum):
    """Kind of a muxrpc call."""

    ASYNC = "async"
    SOURCE = "source"
    DUPLEX = "duplex"


def _to_json_value(value: Any) -> Any:
    """Turn objects with ``to_json`` (and containers of them) into plain JSON values."""
    to_json = getattr(value, "to_json", None)
    if callable(to_json):
        return to_json()
    if isinstance(value, dict):
        return {key: _to_json_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_json_value(item) for item in value]
    return value


def _dumps(value: Any) -> str:
    return json.dumps(_to_json_value(value), separators=(",", ":"), ensure_ascii=False)


@dataclass(frozen=True)
class Body:
    """The JSON body of an incoming request."""

    name: list[str]
    rpc_type: RpcType
    args: Any

    @classmethod
    def from_json(cls, data: bytes | str) -> Body:
        """Decode a request body; raise ``RpcError`` if it is not one."""
        try:
            raw = json.loads(data)
        except ValueError as err:
            raise RpcError("json decoding") from err
        if not isinstance(raw, dict) or "args" not in raw:
            raise RpcError("json decoding")
        name = raw.get("name")
        if not isinstance(name, list) or not all(isinstance(part, str) for part in name):
            raise RpcError("json decoding")
        try:
            rpc_type = RpcType(raw.get("type"))
        except ValueError as err:
            raise RpcError("json decoding") from err
        return cls(name=list(name), rpc_type=rpc_type, args=raw["args"])


@dataclass(frozen=True)
class Header:
    """The fixed nine-byte header that precedes every frame body."""

    req_no: int
    is_stream: bool
    is_end_or_error: bool
    body_type: BodyType
    body_len: int

    @classmethod
    def from_bytes(cls, data: bytes) -> Header:
        if len(data) < HEADER_SIZE:
            raise HeaderSizeTooSmallError()
        flags, body_len, req_no = _HEADER_STRUCT.unpack(bytes(data[:HEADER_SIZE]))
        body_type_value = flags & _BODY_TYPE_MASK
        try:
            body_type = BodyType(body_type_value)
        except ValueError:
            log.warning("rare message: %s", bytes(data).decode("utf-8", errors="replace"))
            raise InvalidBodyTypeError(body_type_value) from None
        return cls(
            req_no=req_no,
            is_stream=bool(flags & _STREAM_FLAG),
            is_end_or_error=bool(flags & _END_OR_ERROR_FLAG),
            body_type=body_type,
            body_len=body_len,
        )

    def to_bytes(self) -> bytes:
        flags = self.body_type.value
        if self.is_end_or_error:
            flags |= _END_OR_ERROR_FLAG
        if self.is_stream:
            flags |= _STREAM_FLAG
        try:
            return _HEADER_STRUCT.pack(flags, self.body_len, self.req_no)
        except struct.error as err:
            raise RpcError(f"header field out of range: {err}") from err


@dataclass(frozen=True)
class RpcRequest:
    body: Body


@dataclass(frozen=True)
class RpcResponse:
    body_type: BodyType
    body: bytes


@dataclass(frozen=True)
class OtherRequest:
    body_type: BodyType
    body: bytes


@dataclass(frozen=True)
class ErrorResponse:
    message: str


@dataclass(frozen=True)
class CancelStreamResponse:
    pass


RecvMsg = Union[RpcRequest, RpcResponse, OtherRequest, ErrorResponse, CancelStreamResponse]


def _parse_error_message(body: bytes) -> str:
    try:
        raw = json.loads(body)
    except ValueError as err:
        raise RpcError("json decoding") from err
    if not isinstance(raw, dict) or not all(
        isinstance(raw.get(key), str) for key in ("name", "stack", "message")
    ):
        raise RpcError("json decoding")
    return raw["message"]


class RpcReader:
    """Reads muxrpc frames from a stream offering ``readexactly``."""

    def __init__(self, reader) -> None:
        self._reader = reader

    async def _read_exactly(self, size: int) -> bytes:
        try:
            return await self._reader.readexactly(size)
        except (asyncio.IncompleteReadError, OSError) as err:
            raise RpcError("i/o") from err

    async def recv(self) -> tuple[int, RecvMsg]:
        """Read one frame and return its request number and decoded message."""
        header = Header.from_bytes(await self._read_exactly(HEADER_SIZE))
        body = await self._read_exactly(header.body_len)
        log.debug("recv %r %r", header, body.decode("utf-8", errors="replace"))

        if header.req_no > 0:
            try:
                return header.req_no, RpcRequest(Body.from_json(body))
            except RpcError:
                return header.req_no, OtherRequest(header.body_type, body)
        if header.is_end_or_error:
            if header.is_stream:
                return -header.req_no, CancelStreamResponse()
            return -header.req_no, ErrorResponse(_parse_error_message(body))
        return -header.req_no, RpcResponse(header.body_type, body)

    async def __aiter__(self) -> AsyncIterator[tuple[int, RecvMsg]]:
        while True:
            try:
                item = await self.recv()
            except RpcError:
                return
            yield item


class RpcWriter:
    """Writes muxrpc frames to a stream offering ``write`` and ``drain``."""

    def __init__(self, writer) -> None:
        self._writer = writer
        self._req_no = 0

    async def _send(self, header: Header, body: bytes) -> None:
        log.debug("send %r %r", header, body.decode("utf-8", errors="replace"))
        frame = header.to_bytes()
        try:
            self._writer.write(frame)
            self._writer.write(body)
            await self._writer.drain()
        except OSError as err:
            raise RpcError("i/o") from err

    async def send_request(self, name, rpc_type: RpcType, arg_type: ArgType, args, opts=None) -> int:
        """Send a request and return the request number assigned to it."""
        self._req_no += 1
        if arg_type is ArgType.ARRAY:
            packed = [args]
        elif arg_type is ArgType.TUPLE:
            packed = [args, opts]
        else:
            packed = args
        body = _dumps({"name": list(name), "type": rpc_type.value, "args": packed}).encode("utf-8")
        header = Header(
            req_no=self._req_no,
            is_stream=rpc_type in (RpcType.SOURCE, RpcType.DUPLEX),
            is_end_or_error=False,
            body_type=BodyType.JSON,
            body_len=len(body),
        )
        await self._send(header, body)
        return self._req_no

    async def send_response(self, req_no: int, rpc_type: RpcType, body_type: BodyType, body) -> None:
        """Send one response frame for ``req_no``."""
        data = body.encode("utf-8") if isinstance(body, str) else bytes(body)
        header = Header(
            req_no=-req_no,
            is_stream=rpc_type is RpcType.SOURCE,
            is_end_or_error=False,
            body_type=body_type,
            body_len=len(data),
        )
        await self._send(header, data)

    async def send_error(self, req_no: int, rpc_type: RpcType, message: str) -> None:
        """Send an error that ends the call ``req_no``."""
        body = _dumps({"name": "Error", "stack": "", "message": message}).encode("utf-8")
        header = Header(
            req_no=-req_no,
            is_stream=rpc_type is not RpcType.ASYNC,
            is_end_or_error=True,
            body_type=BodyType.UTF8,
            body_len=len(body),
        )
        await self._send(header, body)

    async def send_stream_eof(self, req_no: int) -> None:
        """Mark the end of the stream answering ``req_no``."""
        body = b"true"
        header = Header(
            req_no=-req_no,
            is_stream=True,
            is_end_or_error=True,
            body_type=BodyType.JSON,
            body_len=len(body),
        )
        await self._send(header, body)

    async def close(self) -> None:
        """Close the underlying stream."""
        try:
            self._writer.close()
            wait_closed = getattr(self._writer, "wait_closed", None)
            if wait_closed is not None:
                await wait_closed()
        except OSError as err:
            raise RpcError("i/o") from err