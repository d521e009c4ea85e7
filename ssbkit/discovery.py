"""Peer discovery: network id, pub invites and LAN broadcasts."""

from __future__ import annotations

import base64
import ipaddress
import logging
import re
import socket
from dataclasses import dataclass, field

import psutil

from .crypto import to_ed25519_pk, to_ed25519_pk_no_suffix, to_ed25519_sk_no_suffix
from .errors import (
    DiscoveryError,
    InvalidBroadcastMessageError,
    InvalidInviteCodeError,
    SsbError,
)

log = logging.getLogger(__name__)

SSB_NET_ID = "d4a1cb88a66f02f8db635ce26441cc5dac1b08420ceaac230839b755845a9ffb"

BROADCAST_REGEX = re.compile(
    r"net:([0-9]+\.[0-9]+\.[0-9]+\.[0-9]+):([0-9]+)~shs:([0-9a-zA-Z+=/]+)"
)

_PORT_RE = re.compile(r"\+?[0-9]+")
_BROADCAST_HOST = "255.255.255.255"


def ssb_net_id() -> bytes:
    """The 32-byte network key of the main ssb network."""
    return bytes.fromhex(SSB_NET_ID)


def _parse_port(text: str) -> int:
    if not _PORT_RE.fullmatch(text) or int(text) > 0xFFFF:
        raise DiscoveryError("invalid integer")
    return int(text)


def _family(host: str) -> socket.AddressFamily:
    return socket.AF_INET6 if ":" in host else socket.AF_INET


@dataclass(frozen=True)
class Invite:
    """A pub invite code: ``domain:port:@<pub key>.ed25519~<invite key>``."""

    domain: str
    port: int
    pub_pk: bytes
    invite_sk: bytes = field(repr=False)

    @classmethod
    def from_code(cls, code: str) -> Invite:
        parts = code.split(":")
        if len(parts) != 3:
            raise InvalidInviteCodeError()
        domain, port_text, keys = parts
        port = _parse_port(port_text)
        key_parts = keys.split("~")
        if len(key_parts) != 2:
            raise InvalidInviteCodeError()
        return cls(
            domain=domain,
            port=port,
            pub_pk=to_ed25519_pk(key_parts[0][1:]),
            invite_sk=to_ed25519_sk_no_suffix(key_parts[1]),
        )


@dataclass
class LanBroadcast:
    """Announcements of a local server, one per broadcast-capable interface."""

    destination: tuple[str, int]
    packets: list[tuple[tuple[str, int], tuple[str, int], str]] = field(default_factory=list)

    @classmethod
    def create(cls, public_key: bytes, rpc_port: int) -> LanBroadcast:
        """Prepare announcements for every interface that can broadcast."""
        server_pk = base64.b64encode(bytes(public_key)).decode("ascii")
        packets = []
        for addresses in psutil.net_if_addrs().values():
            for address in addresses:
                if address.family not in (socket.AF_INET, socket.AF_INET6):
                    continue
                if address.broadcast is None:
                    continue
                local = address.address
                try:
                    if ipaddress.ip_address(local.split("%")[0]).is_loopback:
                        continue
                except ValueError:
                    continue
                local_addr = (local, rpc_port)
                broadcast_addr = (address.broadcast, rpc_port)
                msg = f"net:{local}:{rpc_port}~shs:{server_pk}"
                try:
                    with socket.socket(_family(local), socket.SOCK_DGRAM) as probe:
                        probe.bind(local_addr)
                except OSError as err:
                    log.warning("cannot broadcast to %r %r", local_addr, err)
                    continue
                packets.append((local_addr, broadcast_addr, msg))
        return cls(destination=(_BROADCAST_HOST, rpc_port), packets=packets)

    def send(self) -> None:
        """Send every announcement to the broadcast address."""
        for local_addr, _, msg in self.packets:
            with socket.socket(_family(local_addr[0]), socket.SOCK_DGRAM) as sock:
                try:
                    sock.bind(local_addr)
                except OSError:
                    continue
                try:
                    sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
                except OSError:
                    pass
                try:
                    sock.sendto(msg.encode("utf-8"), self.destination)
                except OSError as err:
                    log.warning("Error broadcasting %s", err)

    @staticmethod
    def parse(msg: str) -> tuple[str, int, bytes] | None:
        """Extract ``(ip, port, public key)`` from the first valid address in ``msg``."""
        for addr in msg.split(";"):
            try:
                return _parse_shs(addr)
            except SsbError:
                continue
        return None


def _parse_shs(addr: str) -> tuple[str, int, bytes]:
    match = BROADCAST_REGEX.search(addr)
    if match is None:
        raise InvalidBroadcastMessageError()
    ip = match.group(1)
    port = _parse_port(match.group(2))
    server_pk = to_ed25519_pk_no_suffix(match.group(3))
    return ip, port, server_pk