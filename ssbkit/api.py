"""High-level calls of the standard ssb rpc methods."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Iterable

from .content import FriendsHops, InviteCreateOptions, RelationshipQuery, SubsetQuery, SubsetQueryOptions
from .dto import BlobsGetIn, CreateHistoryStreamIn, CreateStreamIn, EbtReplicate, TanglesThread, WhoAmIOut
from .message import Message
from .rpc import ArgType, Body, BodyType, RpcType, RpcWriter

MAX_RPC_BODY_LEN = 65536


class ApiMethod(Enum):
    """The rpc methods this package knows, valued by their selector."""

    BLOBS_CREATE_WANTS = ("blobs", "createWants")
    BLOBS_GET = ("blobs", "get")
    CREATE_FEED_STREAM = ("createFeedStream",)
    CREATE_HISTORY_STREAM = ("createHistoryStream",)
    EBT_REPLICATE = ("ebt", "replicate")
    FRIENDS_BLOCKS = ("friends", "blocks")
    FRIENDS_HOPS = ("friends", "hops")
    FRIENDS_IS_FOLLOWING = ("friends", "isFollowing")
    FRIENDS_IS_BLOCKING = ("friends", "isBlocking")
    GET = ("get",)
    GET_SUBSET = ("partialReplication", "getSubset")
    INVITE_CREATE = ("invite", "create")
    INVITE_USE = ("invite", "use")
    LATEST = ("latest",)
    NAMES_GET = ("names", "get")
    NAMES_GET_IMAGE_FOR = ("names", "getImageFor")
    NAMES_GET_SIGNIFIER = ("names", "getSignifier")
    PRIVATE_PUBLISH = ("private", "publish")
    PUBLISH = ("publish",)
    TANGLES_THREAD = ("tangles", "thread")
    WHOAMI = ("whoami",)

    def selector(self) -> list[str]:
        """The method name as sent in a request body."""
        return list(self.value)

    @classmethod
    def from_selector(cls, selector: Iterable[str]) -> ApiMethod | None:
        """The method with this name, or ``None`` if it is unknown."""
        try:
            return cls(tuple(selector))
        except ValueError:
            return None

    @classmethod
    def from_rpc_body(cls, body: Body) -> ApiMethod | None:
        """The method an incoming request body asks for, if known."""
        return cls.from_selector(body.name)


class ApiCaller:
    """Sends requests and responses of the standard methods over an rpc writer."""

    def __init__(self, rpc: RpcWriter) -> None:
        self._rpc = rpc

    def rpc(self) -> RpcWriter:
        """The underlying rpc writer."""
        return self._rpc

    async def _request(
        self,
        method: ApiMethod,
        rpc_type: RpcType,
        arg_type: ArgType,
        args: Any,
        opts: Any = None,
    ) -> int:
        return await self._rpc.send_request(method.selector(), rpc_type, arg_type, args, opts)

    async def blob_create_wants_req_send(self) -> int:
        """Send a ``blobs.createWants`` request."""
        return await self._request(ApiMethod.BLOBS_CREATE_WANTS, RpcType.SOURCE, ArgType.ARRAY, [])

    async def blobs_get_req_send(self, args: BlobsGetIn) -> int:
        """Send a ``blobs.get`` request."""
        return await self._request(ApiMethod.BLOBS_GET, RpcType.SOURCE, ArgType.ARRAY, args)

    async def blobs_get_res_send(self, req_no: int, data: bytes) -> None:
        """Send a blob in chunks of at most 64 KiB, then end the stream."""
        data = bytes(data)
        for offset in range(0, len(data), MAX_RPC_BODY_LEN):
            chunk = data[offset : offset + MAX_RPC_BODY_LEN]
            await self._rpc.send_response(req_no, RpcType.SOURCE, BodyType.BINARY, chunk)
        await self._rpc.send_stream_eof(req_no)

    async def create_feed_stream_req_send(self, args: CreateStreamIn) -> int:
        """Send a ``createFeedStream`` request."""
        return await self._request(ApiMethod.CREATE_FEED_STREAM, RpcType.SOURCE, ArgType.ARRAY, args)

    async def create_history_stream_req_send(self, args: CreateHistoryStreamIn) -> int:
        """Send a ``createHistoryStream`` request."""
        return await self._request(
            ApiMethod.CREATE_HISTORY_STREAM, RpcType.SOURCE, ArgType.ARRAY, args
        )

    async def ebt_replicate_req_send(self, args: EbtReplicate) -> int:
        """Send an ``ebt.replicate`` request."""
        return await self._request(ApiMethod.EBT_REPLICATE, RpcType.DUPLEX, ArgType.ARRAY, args)

    async def ebt_clock_res_send(self, req_no: int, clock: str) -> None:
        """Send an EBT vector clock."""
        await self._rpc.send_response(req_no, RpcType.SOURCE, BodyType.JSON, clock.encode("utf-8"))

    async def ebt_feed_res_send(self, req_no: int, feed: str) -> None:
        """Send a feed message as part of EBT replication."""
        await self._rpc.send_response(req_no, RpcType.SOURCE, BodyType.JSON, feed.encode("utf-8"))

    async def feed_res_send(self, req_no: int, feed: str) -> None:
        """Send one feed entry of a stream."""
        await self._rpc.send_response(req_no, RpcType.SOURCE, BodyType.JSON, feed.encode("utf-8"))

    async def friends_blocks_req_send(self) -> int:
        """Send a ``friends.blocks`` request."""
        return await self._request(ApiMethod.FRIENDS_BLOCKS, RpcType.SOURCE, ArgType.OBJECT, [])

    async def friends_hops_req_send(self, args: FriendsHops) -> int:
        """Send a ``friends.hops`` request."""
        return await self._request(ApiMethod.FRIENDS_HOPS, RpcType.SOURCE, ArgType.ARRAY, args)

    async def friends_is_blocking_req_send(self, args: RelationshipQuery) -> int:
        """Send a ``friends.isBlocking`` request."""
        return await self._request(ApiMethod.FRIENDS_IS_BLOCKING, RpcType.ASYNC, ArgType.ARRAY, args)

    async def friends_is_following_req_send(self, args: RelationshipQuery) -> int:
        """Send a ``friends.isFollowing`` request."""
        return await self._request(ApiMethod.FRIENDS_IS_FOLLOWING, RpcType.ASYNC, ArgType.ARRAY, args)

    async def get_req_send(self, msg_id: str) -> int:
        """Send a ``get`` request for one message."""
        return await self._request(ApiMethod.GET, RpcType.ASYNC, ArgType.ARRAY, msg_id)

    async def get_res_send(self, req_no: int, msg: Message) -> None:
        """Answer a ``get`` request with a message."""
        await self._rpc.send_response(req_no, RpcType.ASYNC, BodyType.JSON, str(msg).encode("utf-8"))

    async def getsubset_req_send(
        self, query: SubsetQuery, opts: SubsetQueryOptions | None = None
    ) -> int:
        """Send a ``partialReplication.getSubset`` request."""
        return await self._request(ApiMethod.GET_SUBSET, RpcType.SOURCE, ArgType.TUPLE, query, opts)

    async def invite_create_req_send(self, uses: int) -> int:
        """Send an ``invite.create`` request for an invite usable ``uses`` times."""
        return await self._request(
            ApiMethod.INVITE_CREATE, RpcType.ASYNC, ArgType.ARRAY, InviteCreateOptions(uses=uses)
        )

    async def invite_use_req_send(self, invite_code: str) -> int:
        """Send an ``invite.use`` request."""
        return await self._request(ApiMethod.INVITE_USE, RpcType.ASYNC, ArgType.ARRAY, invite_code)

    async def latest_req_send(self) -> int:
        """Send a ``latest`` request."""
        return await self._request(ApiMethod.LATEST, RpcType.ASYNC, ArgType.ARRAY, [])

    async def names_get_req_send(self) -> int:
        """Send a ``names.get`` request."""
        return await self._request(ApiMethod.NAMES_GET, RpcType.ASYNC, ArgType.ARRAY, [])

    async def names_get_image_for_req_send(self, feed_id: str) -> int:
        """Send a ``names.getImageFor`` request."""
        return await self._request(ApiMethod.NAMES_GET_IMAGE_FOR, RpcType.ASYNC, ArgType.ARRAY, feed_id)

    async def names_get_signifier_req_send(self, feed_id: str) -> int:
        """Send a ``names.getSignifier`` request."""
        return await self._request(ApiMethod.NAMES_GET_SIGNIFIER, RpcType.ASYNC, ArgType.ARRAY, feed_id)

    async def publish_req_send(self, msg) -> int:
        """Send a ``publish`` request with typed content."""
        return await self._request(ApiMethod.PUBLISH, RpcType.ASYNC, ArgType.ARRAY, msg)

    async def private_publish_req_send(self, msg, recipients: list[str]) -> int:
        """Send a ``private.publish`` request for the given recipients."""
        return await self._request(
            ApiMethod.PRIVATE_PUBLISH, RpcType.ASYNC, ArgType.TUPLE, msg, list(recipients)
        )

    async def publish_res_send(self, req_no: int, msg_ref: str) -> None:
        """Answer a ``publish`` request with the new message reference."""
        await self._rpc.send_response(req_no, RpcType.ASYNC, BodyType.JSON, msg_ref.encode("utf-8"))

    async def tangles_thread_req_send(self, args: TanglesThread) -> int:
        """Send a ``tangles.thread`` request."""
        return await self._request(ApiMethod.TANGLES_THREAD, RpcType.SOURCE, ArgType.ARRAY, args)

    async def whoami_req_send(self) -> int:
        """Send a ``whoami`` request."""
        return await self._request(ApiMethod.WHOAMI, RpcType.ASYNC, ArgType.ARRAY, [])

    async def whoami_res_send(self, req_no: int, id: str) -> None:
        """Answer a ``whoami`` request with a feed id."""
        body = json.dumps(WhoAmIOut(id).to_json(), separators=(",", ":"), ensure_ascii=False)
        await self._rpc.send_response(req_no, RpcType.ASYNC, BodyType.JSON, body.encode("utf-8"))