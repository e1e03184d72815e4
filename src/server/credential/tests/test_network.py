"""
测试 network.py：选择第一个非回环 IPv4 地址，否则回退为回环地址。
"""

import socket
from collections import namedtuple

import psutil

from src.server.credential import network

snicaddr = namedtuple("snicaddr", ["family", "address", "netmask", "broadcast", "ptp"])


def _addr(family, address):
    return snicaddr(family, address, None, None, None)


def test_first_non_loopback_ipv4(monkeypatch):
    monkeypatch.setattr(
        psutil,
        "net_if_addrs",
        lambda: {
            "lo": [_addr(socket.AF_INET, "127.0.0.1")],
            "eth0": [
                _addr(socket.AF_INET6, "fe80::1"),
                _addr(socket.AF_INET, "10.0.0.5"),
            ],
            "wlan0": [_addr(socket.AF_INET, "192.168.1.7")],
        },
    )
    assert network.resolve_local_address() == "10.0.0.5"


def test_fallback_to_loopback(monkeypatch):
    monkeypatch.setattr(
        psutil,
        "net_if_addrs",
        lambda: {
            "lo": [_addr(socket.AF_INET, "127.0.0.1")],
            "eth0": [_addr(socket.AF_INET6, "2001:db8::1")],
        },
    )
    assert network.resolve_local_address() == network.LOOPBACK_ADDRESS


def test_enumeration_failure_never_raises(monkeypatch):
    def boom():
        raise OSError("no permission")

    monkeypatch.setattr(psutil, "net_if_addrs", boom)
    identity = network.resolve_server_identity()
    assert identity.local_address == "127.0.0.1"
