import base64
import socket
from collections import namedtuple
from unittest import mock

import pytest
from nacl.bindings import crypto_sign_keypair

from ssbkit.crypto import to_ed25519_pk_no_suffix
from ssbkit.discovery import Invite, LanBroadcast, ssb_net_id
from ssbkit.errors import CryptoError, DiscoveryError, InvalidInviteCodeError

Addr = namedtuple("Addr", "family address netmask broadcast ptp")

SERVER_KEY_TEXT = "HEqy940T6uB+T+d9Jaa58aNfRzLx9eRWqkZljBmnkmk="


def _b64(data):
    return base64.b64encode(data).decode("ascii")


def test_ssb_net_id():
    net_id = ssb_net_id()
    assert len(net_id) == 32
    assert net_id[:4] == b"\xd4\xa1\xcb\x88"
    assert net_id[-2:] == b"\x9f\xfb"


def test_multiserver_net_address_parsing():
    ms_addr = f"net:192.168.8.136:8008~shs:{SERVER_KEY_TEXT}"
    expected = ("192.168.8.136", 8008, to_ed25519_pk_no_suffix(SERVER_KEY_TEXT))
    assert LanBroadcast.parse(ms_addr) == expected


def test_parse_picks_first_valid_address():
    msg = f"net:10.0.0.1:8008~shs:bad;net:10.0.0.2:9000~shs:{SERVER_KEY_TEXT}"
    result = LanBroadcast.parse(msg)
    assert result is not None
    assert result[:2] == ("10.0.0.2", 9000)


def test_parse_rejects_invalid():
    assert LanBroadcast.parse("hello") is None
    assert LanBroadcast.parse(f"net:10.0.0.1:70000~shs:{SERVER_KEY_TEXT}") is None


def test_invite_from_code():
    pub_key, invite_key = crypto_sign_keypair()
    code = f"pub.example.com:8008:@{_b64(pub_key)}.ed25519~{_b64(invite_key)}"
    invite = Invite.from_code(code)
    assert invite.domain == "pub.example.com"
    assert invite.port == 8008
    assert invite.pub_pk == pub_key
    assert invite.invite_sk == invite_key


@pytest.mark.parametrize("code", ["a:b", "a:1:2:3", "pub.example.com:8008:@x.ed25519"])
def test_invite_bad_shape(code):
    with pytest.raises(InvalidInviteCodeError):
        Invite.from_code(code)


@pytest.mark.parametrize("port", ["abc", "99999", "-1"])
def test_invite_bad_port(port):
    with pytest.raises(DiscoveryError):
        Invite.from_code(f"pub.example.com:{port}:@a.ed25519~b")


def test_invite_bad_key():
    with pytest.raises(CryptoError):
        Invite.from_code("pub.example.com:8008:@abc.ed25519~abc")


def test_create_skips_loopback_and_no_broadcast():
    pub_key, _ = crypto_sign_keypair()
    interfaces = {
        "lo": [Addr(socket.AF_INET, "127.0.0.1", "255.0.0.0", "127.255.255.255", None)],
        "eth0": [Addr(socket.AF_INET, "192.0.2.55", "255.255.255.0", None, None)],
    }
    with mock.patch("psutil.net_if_addrs", return_value=interfaces):
        lan = LanBroadcast.create(pub_key, 8008)
    assert lan.packets == []
    assert lan.destination == ("255.255.255.255", 8008)


def test_create_builds_packet():
    pub_key, _ = crypto_sign_keypair()
    interfaces = {
        "eth0": [Addr(socket.AF_INET, "192.0.2.55", "255.255.255.0", "192.0.2.255", None)],
    }
    with mock.patch("psutil.net_if_addrs", return_value=interfaces), mock.patch(
        "socket.socket"
    ):
        lan = LanBroadcast.create(pub_key, 8008)
    assert lan.packets == [
        (
            ("192.0.2.55", 8008),
            ("192.0.2.255", 8008),
            f"net:192.0.2.55:8008~shs:{_b64(pub_key)}",
        )
    ]


def test_create_skips_unbindable_address():
    pub_key, _ = crypto_sign_keypair()
    interfaces = {
        "eth0": [Addr(socket.AF_INET, "192.0.2.55", "255.255.255.0", "192.0.2.255", None)],
    }
    with mock.patch("psutil.net_if_addrs", return_value=interfaces), mock.patch(
        "socket.socket"
    ) as sock_cls:
        sock_cls.return_value.__enter__.return_value.bind.side_effect = OSError("busy")
        lan = LanBroadcast.create(pub_key, 8008)
    assert lan.packets == []


def test_send_targets_broadcast_address():
    pub_key, _ = crypto_sign_keypair()
    interfaces = {
        "eth0": [Addr(socket.AF_INET, "192.0.2.55", "255.255.255.0", "192.0.2.255", None)],
    }
    with mock.patch("psutil.net_if_addrs", return_value=interfaces), mock.patch(
        "socket.socket"
    ):
        lan = LanBroadcast.create(pub_key, 8008)

    msg = f"net:192.0.2.55:8008~shs:{_b64(pub_key)}"
    assert lan.destination == ("255.255.255.255", 8008)
    assert [packet[2] for packet in lan.packets] == [msg]

    with mock.patch("socket.socket") as sock_cls:
        lan.send()
        sock = sock_cls.return_value.__enter__.return_value
    assert sock.bind.call_args_list == [mock.call(("192.0.2.55", 8008))]
    assert sock.sendto.call_args_list == [
        mock.call(msg.encode("utf-8"), ("255.255.255.255", 8008))
    ]