import json
import time

import pytest

from ssbkit.errors import FeedDigestMismatchError, InvalidJsonError, InvalidSignatureError
from ssbkit.feed import Feed
from ssbkit.keystore import OwnedIdentity
from ssbkit.message import Message

FEED = r"""{"key":"%Cg0ZpZ8cV85G8UIIropgBOvM8+Srlv9LSGDNGnpdK44=.sha256","value":{"previous":"%seUEAo7PTyA7vNwnOrmGIsUFfpyRzOvzGVv1QCb/Fz8=.sha256","author":"@BIbVppzlrNiRJogxDYz3glUS7G4s4D4NiXiPEAEzxdE=.ed25519","sequence":37,"timestamp":1439392020612,"hash":"sha256","content":{"type":"post","text":"@paul real time replies didn't work.","repliesTo":"%xWKunF6nXD7XMC+D4cjwDMZWmBnmRu69w9T25iLNa1Q=.sha256","mentions":["%7UKRfZb2u8al4tYWHqM55R9xpE/KKVh9U0M6BdugGt4=.sha256"],"recps":[{"link":"@hxGxqPrplLjRG2vtjQL87abX4QKqeLgCwQpS730nNwE=.ed25519","name":"paul"}]},"signature":"gGxSPdBJZxp6x5f3HzQGoQSeSdh/C5AtymIn+miWa+lcC6DdqpRSgaeH9KHeLf+/CKhU6REYIpWaLr4CKDMfCg==.sig.ed25519"},"timestamp":1573574678194,"rts":1439392020612}"""


def test_verify_feed_integrity():
    feed = Feed.from_slice(FEED.encode("utf-8"))
    assert feed.key == "%Cg0ZpZ8cV85G8UIIropgBOvM8+Srlv9LSGDNGnpdK44=.sha256"
    assert feed.timestamp == 1573574678194.0
    assert feed.rts == 1439392020612.0


def test_into_message():
    msg = Feed.from_slice(FEED).into_message()
    assert str(msg.id()) == "%Cg0ZpZ8cV85G8UIIropgBOvM8+Srlv9LSGDNGnpdK44=.sha256"
    assert msg.sequence() == 37


def test_digest_mismatch():
    raw = json.loads(FEED)
    raw["value"]["sequence"] = 38
    with pytest.raises(FeedDigestMismatchError):
        Feed.from_slice(json.dumps(raw))


def test_missing_key_is_invalid_json():
    raw = json.loads(FEED)
    del raw["key"]
    with pytest.raises(InvalidJsonError):
        Feed.from_slice(json.dumps(raw))


def test_into_message_rejects_bad_signature():
    raw = json.loads(FEED)
    raw["value"]["content"]["text"] = "other"
    feed = Feed(key="k", value=raw["value"], timestamp=0.0)
    with pytest.raises(InvalidSignatureError):
        feed.into_message()


def test_from_message_and_round_trip():
    identity = OwnedIdentity.create()
    msg = Message.sign(None, identity, {"type": "post", "text": "hi"})
    before = time.time()
    feed = Feed.from_message(msg)
    assert feed.key == str(msg.id())
    assert feed.rts is None
    assert before - 1 <= feed.timestamp <= time.time() + 1

    parsed = Feed.from_slice(str(feed))
    assert parsed == feed
    assert parsed.into_message() == msg