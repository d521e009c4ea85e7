import json

import pytest

from ssbkit.dto import (
    BlobsGetIn,
    CreateHistoryStreamIn,
    CreateStreamIn,
    EbtReplicate,
    ErrorOut,
    LatestOut,
    TanglesThread,
    WhoAmIOut,
)
from ssbkit.errors import ApiError

FEED_ID = "@BIbVppzlrNiRJogxDYz3glUS7G4s4D4NiXiPEAEzxdE=.ed25519"
MSG_ID = "%Cg0ZpZ8cV85G8UIIropgBOvM8+Srlv9LSGDNGnpdK44=.sha256"
BLOB_ID = "&abcdefghijklmnopqrstuvwxyz0123456789ABCDEFG=.sha256"


def test_blobs_get_in_defaults_serialize_as_null():
    assert BlobsGetIn(BLOB_ID).to_json() == {"key": BLOB_ID, "size": None, "max": None}


def test_blobs_get_in_builders_return_new_values():
    base = BlobsGetIn(BLOB_ID)
    sized = base.with_size(10).with_max(20)
    assert sized.to_json() == {"key": BLOB_ID, "size": 10, "max": 20}
    assert base.size is None and base.max is None


def test_ebt_replicate_defaults():
    assert EbtReplicate().to_json() == {"version": 3, "format": "classic"}


def test_error_out_from_json_text_and_bytes():
    body = {"name": "Error", "message": "no such method", "stack": ""}
    from_text = ErrorOut.from_json(json.dumps(body))
    from_bytes = ErrorOut.from_json(json.dumps(body).encode())
    assert from_text == from_bytes
    assert from_text.message == "no such method"
    assert from_text.name == "Error"


def test_error_out_missing_field():
    with pytest.raises(ApiError):
        ErrorOut.from_json('{"name": "Error", "message": "x"}')


def test_history_stream_only_id_by_default():
    assert CreateHistoryStreamIn(FEED_ID).to_json() == {"id": FEED_ID}


def test_history_stream_builders():
    args = (
        CreateHistoryStreamIn(FEED_ID)
        .after_seq(5)
        .with_live(True)
        .keys_values(False, True)
        .with_limit(7)
    )
    assert args.to_json() == {
        "id": FEED_ID,
        "seq": 5,
        "live": True,
        "keys": False,
        "values": True,
        "limit": 7,
    }


def test_latest_out_from_json():
    out = LatestOut.from_json(
        json.dumps({"id": FEED_ID, "sequence": 37, "ts": 1439392020612})
    )
    assert out.id == FEED_ID
    assert out.sequence == 37
    assert out.ts == 1439392020612.0


@pytest.mark.parametrize(
    "body",
    [
        {"id": FEED_ID, "sequence": -1, "ts": 1.0},
        {"id": FEED_ID, "sequence": "1", "ts": 1.0},
        {"id": FEED_ID, "sequence": 1, "ts": "now"},
        {"id": 3, "sequence": 1, "ts": 1.0},
        {"sequence": 1, "ts": 1.0},
    ],
)
def test_latest_out_rejects_malformed(body):
    with pytest.raises(ApiError):
        LatestOut.from_json(body)


def test_latest_out_rejects_invalid_json():
    with pytest.raises(ApiError):
        LatestOut.from_json(b"{not json")


def test_create_stream_default_keeps_encodings_as_null():
    assert CreateStreamIn().to_json() == {"keyEncoding": None, "valueEncoding": None}


def test_create_stream_builders():
    args = (
        CreateStreamIn()
        .with_live(True)
        .with_gt(1)
        .with_gte(2)
        .with_lt(3)
        .with_lte(4)
        .with_reverse(True)
        .keys_values(True, False)
        .encoding("json", "binary")
        .with_limit(9)
    )
    assert args.to_json() == {
        "live": True,
        "gt": 1,
        "gte": 2,
        "lt": 3,
        "lte": 4,
        "reverse": True,
        "keys": True,
        "values": False,
        "limit": 9,
        "keyEncoding": "json",
        "valueEncoding": "binary",
    }


def test_create_stream_fill_cache_renamed():
    assert CreateStreamIn(fill_cache=True).to_json()["fillCache"] is True


def test_create_stream_builder_does_not_mutate():
    base = CreateStreamIn()
    base.with_limit(3)
    assert base.limit is None


def test_tangles_thread_only_root_by_default():
    assert TanglesThread(MSG_ID).to_json() == {"root": MSG_ID}


def test_tangles_thread_builders():
    args = TanglesThread(MSG_ID).keys_values(True, True).with_limit(4).with_private(True)
    assert args.to_json() == {
        "root": MSG_ID,
        "keys": True,
        "values": True,
        "limit": 4,
        "private": True,
    }


def test_whoami_round_trip():
    out = WhoAmIOut(FEED_ID)
    assert WhoAmIOut.from_json(json.dumps(out.to_json())) == out


def test_whoami_rejects_non_object():
    with pytest.raises(ApiError):
        WhoAmIOut.from_json("[1, 2]")