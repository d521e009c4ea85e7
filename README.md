# ssbkit

A toolkit for talking to Secure Scuttlebutt peers from Python. It covers the
pieces a client or a small server needs:

- **Identities**: create ed25519 identities and read or write them in the
  secret-file formats used by Patchwork (`~/.ssb/secret`) and go-sbot
  (`~/.ssb-go/secret`).
- **Feed messages**: sign messages, verify signatures, and compute message ids
  with the legacy canonical JSON encoding.
- **Private boxes**: encrypt a message for up to seven recipients and decrypt
  messages addressed to you.
- **Discovery**: parse LAN broadcast announcements and pub invite codes, and
  send announcements of your own.
- **MUXRPC**: encode and decode packet headers, read and write request,
  response, error and end-of-stream packets over asyncio-style streams.
- **API calls**: request builders for the common methods (`whoami`, `get`,
  `createHistoryStream`, `createFeedStream`, `latest`, `blobs`, `friends`,
  `invite`, `names`, `publish`, `private.publish`, `partialReplication`,
  `tangles`, `ebt`).

## Modules

| Module | What it holds |
| --- | --- |
| `ssbkit.errors` | The exception hierarchy, rooted at `SsbError` |
| `ssbkit.crypto` | Converting between SSB id strings and keys, digests and signatures |
| `ssbkit.encoding` | `stringify_json` and `ssb_sha256` |
| `ssbkit.keystore` | `OwnedIdentity`, `JsonSSBSecret` and the secret-file readers and writers |
| `ssbkit.message` | `Message` and `MessageId` |
| `ssbkit.feed` | `Feed`, a message value together with its key and receive timestamp |
| `ssbkit.privatebox` | `privatebox_cipher`, `privatebox_decipher`, `is_privatebox`, `cipher`, `decipher` |
| `ssbkit.discovery` | `ssb_net_id`, `Invite`, `LanBroadcast` |
| `ssbkit.rpc` | `Header`, `Body`, `RpcReader`, `RpcWriter` and the received message types |
| `ssbkit.content` | Message content types (posts, votes, contacts, abouts, channels, pubs) and query arguments |
| `ssbkit.dto` | Request and response objects for the API calls |
| `ssbkit.api` | `ApiMethod` and `ApiCaller` |

## Identities and signed messages

```python
from ssbkit.keystore import OwnedIdentity
from ssbkit.message import Message

me = OwnedIdentity.create()
print(me.id)                      # "@<base64 public key>.ed25519"

first = Message.sign(None, me, {"type": "post", "text": "hello"})
second = Message.sign(first, me, {"type": "post", "text": "again"})

print(second.sequence())          # 2
print(second.previous() == str(first.id()))   # True

# Parsing verifies the signature; a tampered message raises
# ssbkit.errors.InvalidSignatureError.
again = Message.from_str(str(second))
print(str(again.id()))            # "%<base64 sha256>.sha256"
```

Secret files are read from and written to open streams with
`read_patchwork_config` / `write_patchwork_config` (pretty-printed JSON,
`#` comment lines skipped on reading) and `read_gosbot_config` /
`write_gosbot_config` (compact JSON). `from_patchwork_local()` and
`from_gosbot_local()` load the identity from the default location in the
home directory; a secret whose curve is not `ed25519` raises
`InvalidConfigError`.

A `Feed` wraps a message value with its key and the time it was received.
`Feed.from_slice` checks that the key matches the digest of the value and
raises `FeedDigestMismatchError` otherwise; `Feed.into_message()` verifies
the value as a `Message`.

## Canonical encoding

Message ids and signatures are computed over a fixed JSON layout: two-space
indentation, `": "` between keys and values, and exponents written with an
explicit sign. `stringify_json` produces that text and `ssb_sha256` hashes it
the way the network does.

```python
from ssbkit.encoding import stringify_json

print(stringify_json({"a": 0, "h": {"h1": 1}, "i": []}))
# {
#   "a": 0,
#   "h": {
#     "h1": 1
#   },
#   "i": []
# }
```

## Private messages

```python
from ssbkit.keystore import OwnedIdentity
from ssbkit.privatebox import is_privatebox, privatebox_cipher, privatebox_decipher

alice = OwnedIdentity.create()
bob = OwnedIdentity.create()

boxed = privatebox_cipher("meet at noon", [alice.id, bob.id])
print(is_privatebox(boxed))                    # True
print(privatebox_decipher(boxed, bob.sk))      # "meet at noon"

outsider = OwnedIdentity.create()
print(privatebox_decipher(boxed, outsider.sk)) # None
```

An empty plaintext raises `EmptyPlaintextError`; no recipients, or more than
seven, raises `BadRecipientCountError`.

## Discovery

Peers on a LAN announce themselves with strings like
`net:<ip>:<port>~shs:<base64 public key>`, possibly several joined with `;`.
`LanBroadcast.parse` returns the first address it can read as
`(ip, port, public_key)`, or `None`.

```python
from ssbkit.discovery import LanBroadcast
from ssbkit.keystore import OwnedIdentity

peer = OwnedIdentity.create()
announced_key = peer.id[1:-len(".ed25519")]
ip, port, public_key = LanBroadcast.parse(f"net:192.168.1.10:8008~shs:{announced_key}")
print(ip, port)                   # 192.168.1.10 8008
```

`LanBroadcast.create(public_key, rpc_port)` prepares one announcement per
non-loopback interface that has a broadcast address and can be bound, and
`send()` sends each of them to `255.255.255.255` on that port.

`Invite.from_code` splits a pub invite code of the form
`host:port:@<pub key>.ed25519~<invite key>` into its domain, port, pub public
key and invite secret key, raising `InvalidInviteCodeError` when the shape is
wrong.

`ssb_net_id()` returns the 32-byte network key of the main SSB network.

## MUXRPC and the API

`RpcReader` reads from any object with an async `readexactly(n)` method and
`RpcWriter` writes to any object with `write()` and an async `drain()`, such
as asyncio's `StreamReader` and `StreamWriter`. `ApiCaller` wraps an
`RpcWriter` and sends requests; each call returns the request number to
match against what `RpcReader.recv()` yields. Iterating a reader with
`async for` yields `(req_no, message)` pairs until a read fails.

```python
from ssbkit.api import ApiCaller
from ssbkit.dto import CreateHistoryStreamIn
from ssbkit.rpc import CancelStreamResponse, ErrorResponse, RpcResponse


async def print_history(reader, caller: ApiCaller, feed_id: str) -> None:
    args = CreateHistoryStreamIn(feed_id).with_limit(10)
    req_no = await caller.create_history_stream_req_send(args)
    async for msg_req_no, msg in reader:
        if msg_req_no != req_no:
            continue
        if isinstance(msg, RpcResponse):
            print(msg.body.decode())
        elif isinstance(msg, ErrorResponse):
            raise RuntimeError(msg.message)
        elif isinstance(msg, CancelStreamResponse):
            break
```

Blobs sent with `blobs_get_res_send` are split into packets of at most
64 KiB and followed by an end-of-stream packet. `ApiMethod.from_rpc_body`
tells which known method an incoming request asks for.

## What it does not do

The package does not perform the secret handshake or the box-stream
encryption that SSB connections run before MUXRPC. `RpcReader` and
`RpcWriter` must be given streams on which that layer is already in place.
There is no command-line client, no server, and no message store: the
package builds, verifies and exchanges data, and leaves storing it to you.

## Errors

Every error the package raises derives from `ssbkit.errors.SsbError`, with
one family per area: `CryptoError`, `FeedError`, `KeystoreError`,
`DiscoveryError`, `RpcError` and `ApiError`. Reading a secret file that does
not exist raises the usual `OSError`.

## Running the tests

The tests use pytest and pytest-asyncio, listed under the `test` extra.