import asyncio
import json

import pytest

from ssbkit.api import MAX_RPC_BODY_LEN, ApiCaller, ApiMethod
from ssbkit.content import PostMessage, RelationshipQuery, SubsetQuery, SubsetQueryOptions
from ssbkit.dto import CreateHistoryStreamIn, EbtReplicate, WhoAmIOut
from ssbkit.keystore import OwnedIdentity
from ssbkit.message import Message
from ssbkit.rpc import (
    Body,
    BodyType,
    CancelStreamResponse,
    Header,
    RpcReader,
    RpcRequest,
    RpcResponse,
    RpcType,
    RpcWriter,
)

FEED_ID = "@BIbVppzlrNiRJogxDYz3glUS7G4s4D4NiXiPEAEzxdE=.ed25519"


class _Sink:
    def __init__(self):
        self.data = bytearray()

    def write(self, chunk):
        self.data.extend(chunk)

    async def drain(self):
        return None

    def close(self):
        return None


def _caller():
    sink = _Sink()
    return ApiCaller(RpcWriter(sink)), sink


async def _frames(data):
    reader = asyncio.StreamReader()
    reader.feed_data(bytes(data))
    reader.feed_eof()
    return [item async for item in RpcReader(reader)]


async def _single_request(data):
    frames = await _frames(data)
    assert len(frames) == 1
    req_no, msg = frames[0]
    assert isinstance(msg, RpcRequest)
    return req_no, msg.body


@pytest.mark.parametrize("method", list(ApiMethod))
def test_selector_round_trip(method):
    assert ApiMethod.from_selector(method.selector()) is method


def test_selector_values():
    assert ApiMethod.WHOAMI.selector() == ["whoami"]
    assert ApiMethod.GET_SUBSET.selector() == ["partialReplication", "getSubset"]
    assert ApiMethod.FRIENDS_IS_BLOCKING.selector() == ["friends", "isBlocking"]


def test_unknown_selector():
    assert ApiMethod.from_selector(["no", "such"]) is None
    assert ApiMethod.from_selector([]) is None


def test_from_rpc_body():
    body = Body(name=["blobs", "get"], rpc_type=RpcType.SOURCE, args=[])
    assert ApiMethod.from_rpc_body(body) is ApiMethod.BLOBS_GET


def test_rpc_returns_writer():
    writer = RpcWriter(_Sink())
    assert ApiCaller(writer).rpc() is writer


@pytest.mark.asyncio
async def test_whoami_request_numbers_and_body():
    caller, sink = _caller()
    assert await caller.whoami_req_send() == 1
    assert await caller.whoami_req_send() == 2
    frames = await _frames(sink.data)
    assert [req_no for req_no, _ in frames] == [1, 2]
    body = frames[0][1].body
    assert ApiMethod.from_rpc_body(body) is ApiMethod.WHOAMI
    assert body.rpc_type is RpcType.ASYNC
    assert body.args == [[]]
    assert Header.from_bytes(bytes(sink.data[:9])).is_stream is False


@pytest.mark.asyncio
async def test_history_stream_request():
    caller, sink = _caller()
    args = CreateHistoryStreamIn(FEED_ID).after_seq(5)
    await caller.create_history_stream_req_send(args)
    _, body = await _single_request(sink.data)
    assert body.name == ["createHistoryStream"]
    assert body.rpc_type is RpcType.SOURCE
    assert body.args == [args.to_json()]
    assert Header.from_bytes(bytes(sink.data[:9])).is_stream is True


@pytest.mark.asyncio
async def test_friends_blocks_sends_object_args():
    caller, sink = _caller()
    await caller.friends_blocks_req_send()
    _, body = await _single_request(sink.data)
    assert ApiMethod.from_rpc_body(body) is ApiMethod.FRIENDS_BLOCKS
    assert body.args == []


@pytest.mark.asyncio
async def test_getsubset_sends_query_and_options():
    caller, sink = _caller()
    query = SubsetQuery.author(FEED_ID)
    opts = SubsetQueryOptions(descending=True)
    await caller.getsubset_req_send(query, opts)
    await caller.getsubset_req_send(query, None)
    frames = await _frames(sink.data)
    assert frames[0][1].body.args == [query.to_json(), opts.to_json()]
    assert frames[1][1].body.args == [query.to_json(), None]


@pytest.mark.asyncio
async def test_invite_create_and_get():
    caller, sink = _caller()
    await caller.invite_create_req_send(3)
    await caller.get_req_send("%TL34NIX8JpMJN+ubHWx6cRhIwEal8VqHdKVg2t6lFcg=.sha256")
    frames = await _frames(sink.data)
    assert frames[0][1].body.args == [{"uses": 3}]
    assert frames[1][1].body.args == ["%TL34NIX8JpMJN+ubHWx6cRhIwEal8VqHdKVg2t6lFcg=.sha256"]
    assert frames[1][1].body.name == ["get"]


@pytest.mark.asyncio
async def test_private_publish_and_relationship():
    caller, sink = _caller()
    msg = PostMessage(text="hola")
    await caller.private_publish_req_send(msg, [FEED_ID])
    query = RelationshipQuery(source=FEED_ID, dest=FEED_ID)
    await caller.friends_is_following_req_send(query)
    frames = await _frames(sink.data)
    assert frames[0][1].body.args == [msg.to_json(), [FEED_ID]]
    assert frames[0][1].body.name == ["private", "publish"]
    assert frames[1][1].body.args == [query.to_json()]


@pytest.mark.asyncio
async def test_ebt_replicate_is_duplex_stream():
    caller, sink = _caller()
    await caller.ebt_replicate_req_send(EbtReplicate())
    _, body = await _single_request(sink.data)
    assert body.rpc_type is RpcType.DUPLEX
    assert body.args == [EbtReplicate().to_json()]
    assert Header.from_bytes(bytes(sink.data[:9])).is_stream is True


@pytest.mark.asyncio
async def test_blob_response_is_chunked_then_ended():
    caller, sink = _caller()
    data = bytes(range(256)) * ((MAX_RPC_BODY_LEN // 256) + 1)
    await caller.blobs_get_res_send(7, data)
    frames = await _frames(sink.data)
    chunks = [msg for _, msg in frames[:-1]]
    assert all(isinstance(msg, RpcResponse) for msg in chunks)
    assert all(msg.body_type is BodyType.BINARY for msg in chunks)
    assert all(len(msg.body) <= MAX_RPC_BODY_LEN for msg in chunks)
    assert b"".join(msg.body for msg in chunks) == data
    assert len(chunks) == 2
    assert isinstance(frames[-1][1], CancelStreamResponse)
    assert {req_no for req_no, _ in frames} == {7}


@pytest.mark.asyncio
async def test_empty_blob_sends_only_eof():
    caller, sink = _caller()
    await caller.blobs_get_res_send(4, b"")
    frames = await _frames(sink.data)
    assert frames == [(4, CancelStreamResponse())]


@pytest.mark.asyncio
async def test_whoami_response_round_trip():
    caller, sink = _caller()
    await caller.whoami_res_send(3, FEED_ID)
    frames = await _frames(sink.data)
    req_no, msg = frames[0]
    assert req_no == 3
    assert msg.body_type is BodyType.JSON
    assert WhoAmIOut.from_json(msg.body) == WhoAmIOut(FEED_ID)


@pytest.mark.asyncio
async def test_get_response_carries_verifiable_message():
    caller, sink = _caller()
    message = Message.sign(None, OwnedIdentity.create(), "thistest")
    await caller.get_res_send(9, message)
    frames = await _frames(sink.data)
    req_no, msg = frames[0]
    assert req_no == 9
    assert Message.from_slice(msg.body) == message


@pytest.mark.asyncio
async def test_publish_response_and_feed_response():
    caller, sink = _caller()
    await caller.publish_res_send(2, "%ref")
    await caller.feed_res_send(5, json.dumps({"key": "k"}))
    frames = await _frames(sink.data)
    assert frames[0] == (2, RpcResponse(BodyType.JSON, b"%ref"))
    assert json.loads(frames[1][1].body) == {"key": "k"}
    assert frames[1][0] == 5
    assert Header.from_bytes(bytes(sink.data[:9])).is_stream is False