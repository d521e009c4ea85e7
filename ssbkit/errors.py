"""Exception hierarchy shared by every part of the package."""

from __future__ import annotations


class SsbError(Exception):
    """Base class for every error raised by this package."""

    default_message = "ssb error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(self.default_message if message is None else message)


class CryptoError(SsbError):
    """A key, digest or signature could not be decoded."""

    default_message = "invalid crypto format"


class InvalidSuffixError(CryptoError):
    default_message = "invalid suffix"


class BadPublicKeyError(CryptoError):
    default_message = "bad public key"


class BadSecretKeyError(CryptoError):
    default_message = "bad secret key"


class InvalidDigestError(CryptoError):
    default_message = "invalid digest"


class InvalidSignatureFormatError(CryptoError):
    default_message = "cannot create signature"


class FeedError(SsbError):
    """A feed entry or message is malformed or cannot be processed."""

    default_message = "feed error"


class FeedDigestMismatchError(FeedError):
    default_message = "feed digest mismatch"


class InvalidJsonError(FeedError):
    default_message = "invalid json"


class InvalidSignatureError(FeedError):
    default_message = "invalid signature"


class DecipherError(FeedError):
    default_message = "failed to decipher"


class EmptyPlaintextError(FeedError):
    default_message = "empty plaintext"


class BadRecipientCountError(FeedError):
    default_message = "bad recipent"


class KeystoreError(SsbError):
    """A secret file could not be located, read or understood."""

    default_message = "keystore error"


class HomeNotFoundError(KeystoreError):
    default_message = "$HOME not found"


class InvalidConfigError(KeystoreError):
    default_message = "invalid configuration file"


class DiscoveryError(SsbError):
    """A peer address or invite could not be understood."""

    default_message = "discovery error"


class InvalidInviteCodeError(DiscoveryError):
    default_message = "invalid invite code"


class InvalidBroadcastMessageError(DiscoveryError):
    default_message = "invalid broadcast message"


class RpcError(SsbError):
    """A muxrpc frame could not be read or written."""

    default_message = "rpc"


class HeaderSizeTooSmallError(RpcError):
    default_message = "header size too small"


class InvalidBodyTypeError(RpcError):
    """The body-type bits of an rpc header hold an unknown value."""

    def __init__(self, body_type: int) -> None:
        self.body_type = body_type
        super().__init__(f"invalid body type: {body_type}")


class ApiError(SsbError):
    """A high-level api call failed."""

    default_message = "api error"