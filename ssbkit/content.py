"""Typed message content and query arguments exchanged with ssb servers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Union

from .errors import InvalidJsonError

_U16 = (0, 2**16 - 1)
_U32 = (0, 2**32 - 1)
_U64 = (0, 2**64 - 1)
_I32 = (-(2**31), 2**31 - 1)
_I64 = (-(2**63), 2**63 - 1)


def _is_str(value: Any) -> bool:
    return isinstance(value, str)


def _is_bool(value: Any) -> bool:
    return isinstance(value, bool)


def _int_in(bounds: tuple[int, int]) -> Callable[[Any], bool]:
    low, high = bounds

    def check(value: Any) -> bool:
        return isinstance(value, int) and not isinstance(value, bool) and low <= value <= high

    return check


def _object(value: Any, what: str) -> dict:
    if not isinstance(value, dict):
        raise InvalidJsonError(f"{what} must be a JSON object")
    return value


def _get(data: dict, key: str, check: Callable[[Any], bool], optional: bool = False) -> Any:
    value = data.get(key)
    if value is None:
        if optional:
            return None
        raise InvalidJsonError(f"missing field {key!r}")
    if not check(value):
        raise InvalidJsonError(f"invalid value in field {key!r}")
    return value


def _without_none(pairs: dict) -> dict:
    return {key: value for key, value in pairs.items() if value is not None}


@dataclass
class Mention:
    link: str
    name: str | None = None

    def to_json(self) -> dict:
        return _without_none({"link": self.link, "name": self.name})

    @classmethod
    def from_json(cls, value: Any) -> Mention:
        data = _object(value, "mention")
        return cls(link=_get(data, "link", _is_str), name=_get(data, "name", _is_str, True))


def _mention_list(value: Any) -> list[Mention]:
    if not isinstance(value, list):
        raise InvalidJsonError("mentions must be a list")
    return [Mention.from_json(item) for item in value]


@dataclass
class Post:
    text: str
    mentions: list[Mention] | None = None
    xtype: str = "post"

    def to_msg(self) -> dict:
        out = {"type": self.xtype, "text": self.text}
        if self.mentions is not None:
            out["mentions"] = [mention.to_json() for mention in self.mentions]
        return out


@dataclass
class PubAddress:
    port: int
    key: str
    host: str | None = None

    def to_json(self) -> dict:
        return _without_none({"host": self.host, "port": self.port, "key": self.key})

    @classmethod
    def from_json(cls, value: Any) -> PubAddress:
        data = _object(value, "pub address")
        return cls(
            host=_get(data, "host", _is_str, True),
            port=_get(data, "port", _int_in(_U16)),
            key=_get(data, "key", _is_str),
        )


def _is_vote_value(value: Any) -> bool:
    return _is_bool(value) or _int_in(_I64)(value)


@dataclass
class Vote:
    link: str
    value: int | bool
    expression: str | None = None

    def to_json(self) -> dict:
        return _without_none({"link": self.link, "value": self.value, "expression": self.expression})

    @classmethod
    def from_json(cls, value: Any) -> Vote:
        data = _object(value, "vote")
        return cls(
            link=_get(data, "link", _is_str),
            value=_get(data, "value", _is_vote_value),
            expression=_get(data, "expression", _is_str, True),
        )


@dataclass
class Image:
    """An image reference: a bare blob link or a full description."""

    link: str
    size: int | None = None
    content_type: str | None = None
    name: str | None = None
    width: int | None = None
    height: int | None = None

    def __post_init__(self) -> None:
        complete = self.size is not None or self.content_type is not None
        if complete and (self.size is None or self.content_type is None):
            raise ValueError("a complete image needs both size and content_type")
        if not complete and (self.name, self.width, self.height) != (None, None, None):
            raise ValueError("name, width and height need size and content_type")

    @property
    def is_link_only(self) -> bool:
        return self.size is None

    def to_json(self) -> str | dict:
        if self.is_link_only:
            return self.link
        return _without_none(
            {
                "link": self.link,
                "name": self.name,
                "size": self.size,
                "width": self.width,
                "height": self.height,
                "type": self.content_type,
            }
        )

    @classmethod
    def from_json(cls, value: Any) -> Image:
        if isinstance(value, str):
            return cls(link=value)
        data = _object(value, "image")
        return cls(
            link=_get(data, "link", _is_str),
            name=_get(data, "name", _is_str, True),
            size=_get(data, "size", _int_in(_U64)),
            width=_get(data, "width", _int_in(_U32), True),
            height=_get(data, "height", _int_in(_U32), True),
            content_type=_get(data, "type", _is_str),
        )


@dataclass
class DateTime:
    epoch: int
    tz: str

    def to_json(self) -> dict:
        return {"epoch": self.epoch, "tz": self.tz}

    @classmethod
    def from_json(cls, value: Any) -> DateTime:
        data = _object(value, "date time")
        return cls(epoch=_get(data, "epoch", _int_in(_U64)), tz=_get(data, "tz", _is_str))


@dataclass
class PubMessage:
    address: PubAddress | None = None

    def to_json(self) -> dict:
        return {"type": "pub", "address": None if self.address is None else self.address.to_json()}

    @classmethod
    def from_json(cls, data: dict) -> PubMessage:
        address = data.get("address")
        return cls(address=None if address is None else PubAddress.from_json(address))


@dataclass
class PostMessage:
    text: str
    mentions: list[Mention] | None = None

    def to_json(self) -> dict:
        return Post(self.text, self.mentions).to_msg()

    @classmethod
    def from_json(cls, data: dict) -> PostMessage:
        mentions = data.get("mentions")
        return cls(
            text=_get(data, "text", _is_str),
            mentions=None if mentions is None else _mention_list(mentions),
        )


@dataclass
class ContactMessage:
    contact: str | None = None
    blocking: bool | None = None
    following: bool | None = None
    autofollow: bool | None = None

    def to_json(self) -> dict:
        out = {"type": "contact", "contact": self.contact}
        out.update(
            _without_none(
                {"blocking": self.blocking, "following": self.following, "autofollow": self.autofollow}
            )
        )
        return out

    @classmethod
    def from_json(cls, data: dict) -> ContactMessage:
        return cls(
            contact=_get(data, "contact", _is_str, True),
            blocking=_get(data, "blocking", _is_bool, True),
            following=_get(data, "following", _is_bool, True),
            autofollow=_get(data, "autofollow", _is_bool, True),
        )


@dataclass
class AboutMessage:
    about: str
    name: str | None = None
    title: str | None = None
    branch: str | None = None
    image: Image | None = None
    description: str | None = None
    location: str | None = None
    start_datetime: DateTime | None = None

    def to_json(self) -> dict:
        out = {"type": "about", "about": self.about}
        out.update(
            _without_none(
                {
                    "name": self.name,
                    "title": self.title,
                    "branch": self.branch,
                    "image": None if self.image is None else self.image.to_json(),
                    "description": self.description,
                    "location": self.location,
                    "startDateTime": None
                    if self.start_datetime is None
                    else self.start_datetime.to_json(),
                }
            )
        )
        return out

    @classmethod
    def from_json(cls, data: dict) -> AboutMessage:
        image = data.get("image")
        start = data.get("startDateTime")
        return cls(
            about=_get(data, "about", _is_str),
            name=_get(data, "name", _is_str, True),
            title=_get(data, "title", _is_str, True),
            branch=_get(data, "branch", _is_str, True),
            image=None if image is None else Image.from_json(image),
            description=_get(data, "description", _is_str, True),
            location=_get(data, "location", _is_str, True),
            start_datetime=None if start is None else DateTime.from_json(start),
        )


@dataclass
class ChannelMessage:
    channel: str
    subscribed: bool

    def to_json(self) -> dict:
        return {"type": "channel", "channel": self.channel, "subscribed": self.subscribed}

    @classmethod
    def from_json(cls, data: dict) -> ChannelMessage:
        return cls(
            channel=_get(data, "channel", _is_str),
            subscribed=_get(data, "subscribed", _is_bool),
        )


@dataclass
class VoteMessage:
    vote: Vote

    def to_json(self) -> dict:
        return {"type": "vote", "vote": self.vote.to_json()}

    @classmethod
    def from_json(cls, data: dict) -> VoteMessage:
        if data.get("vote") is None:
            raise InvalidJsonError("missing field 'vote'")
        return cls(vote=Vote.from_json(data["vote"]))


TypedMessage = Union[
    PubMessage, PostMessage, ContactMessage, AboutMessage, ChannelMessage, VoteMessage
]

_MESSAGE_TYPES = {
    "pub": PubMessage,
    "post": PostMessage,
    "contact": ContactMessage,
    "about": AboutMessage,
    "channel": ChannelMessage,
    "vote": VoteMessage,
}


def parse_typed_message(value: Any) -> TypedMessage:
    """Decode message content tagged by its ``type`` field."""
    data = _object(value, "message content")
    kind = data.get("type")
    message_class = _MESSAGE_TYPES.get(kind) if isinstance(kind, str) else None
    if message_class is None:
        raise InvalidJsonError(f"unknown message type {kind!r}")
    return message_class.from_json(data)


def parse_mentions(value: Any) -> str | Mention | list[Mention] | dict[str, Mention]:
    """Decode a mentions field: a link, one mention, a list or a map of them."""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return _mention_list(value)
    if isinstance(value, dict):
        try:
            return Mention.from_json(value)
        except InvalidJsonError:
            return {key: Mention.from_json(item) for key, item in value.items()}
    raise InvalidJsonError("mentions must be a link, a mention, a list or a map")


def parse_branch(value: Any) -> str | list[str]:
    """Decode a branch field: one hash or a list of hashes."""
    if isinstance(value, str):
        return value
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    raise InvalidJsonError("branch must be a hash or a list of hashes")


@dataclass
class SubsetQuery:
    """An ssb-ql-1 query for subset replication."""

    op: str
    string: str | None = None
    feed: str | None = None
    args: list[SubsetQuery] | None = None

    @classmethod
    def type_(cls, string: str) -> SubsetQuery:
        return cls(op="type", string=string)

    @classmethod
    def author(cls, feed: str) -> SubsetQuery:
        return cls(op="author", feed=feed)

    @classmethod
    def and_(cls, args) -> SubsetQuery:
        return cls(op="and", args=list(args))

    @classmethod
    def or_(cls, args) -> SubsetQuery:
        return cls(op="or", args=list(args))

    def to_json(self) -> dict:
        if self.string is not None:
            return {"op": self.op, "string": self.string}
        if self.feed is not None:
            return {"op": self.op, "feed": self.feed}
        if self.args is not None:
            return {"op": self.op, "args": [query.to_json() for query in self.args]}
        raise ValueError("a subset query needs a string, a feed or args")


@dataclass
class SubsetQueryOptions:
    descending: bool | None = None
    keys: bool | None = None
    page_limit: int | None = None

    def to_json(self) -> dict:
        return _without_none(
            {"descending": self.descending, "keys": self.keys, "pageLimit": self.page_limit}
        )


@dataclass
class RelationshipQuery:
    source: str
    dest: str

    def to_json(self) -> dict:
        return {"source": self.source, "dest": self.dest}


@dataclass
class FriendsHops:
    max: int
    reverse: bool | None = None
    start: str | None = None

    def to_json(self) -> dict:
        return _without_none({"max": self.max, "reverse": self.reverse, "start": self.start})


@dataclass
class InviteCreateOptions:
    uses: int = field(default=1)

    def to_json(self) -> dict:
        return {"uses": self.uses}