"""Secure Scuttlebutt toolkit: identities, feed messages, private boxes, discovery and MUXRPC."""

__version__ = "0.4.0"

__all__ = [
    "api",
    "content",
    "crypto",
    "discovery",
    "dto",
    "encoding",
    "errors",
    "feed",
    "keystore",
    "message",
    "privatebox",
    "rpc",
]