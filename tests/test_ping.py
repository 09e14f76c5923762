# tests/test_ping.py
import socket

import pytest
from scapy.layers.inet import ICMP, IP
from scapy.packet import Raw

from nettrace import ping
from nettrace.errors import InvalidTraceInput, ProbePermissionError


def test_echo_builds_packet_with_ttl_and_payload(monkeypatch):
    sent = []

    def fake_sr1(packet, timeout, verbose):
        sent.append((packet, timeout))
        return IP(src="10.0.0.1", dst="192.168.1.10") / ICMP(type=11)

    monkeypatch.setattr(ping, "sr1", fake_sr1)
    reply = ping.echo("203.0.113.5", timeout_ms=1500, payload_size=32, ttl=7, ident=0x1234)

    packet, timeout = sent[0]
    assert packet[ICMP].id == 0x1234
    assert packet[ICMP].seq == 7
    assert packet[IP].dst == "203.0.113.5"
    assert packet[IP].ttl == 7
    assert packet[ICMP].type == 8
    assert packet[Raw].load == b"\x01" * 32
    assert timeout == 1.5
    assert reply.status == "ttl_expired"
    assert reply.address == "10.0.0.1"
    assert reply.rtt_ms >= 0


def test_echo_reply_is_success(monkeypatch):
    monkeypatch.setattr(ping, "sr1", lambda packet, timeout, verbose: IP(src="203.0.113.5") / ICMP(type=0))
    assert ping.echo("203.0.113.5").status == "success"


def test_echo_other_icmp(monkeypatch):
    monkeypatch.setattr(ping, "sr1", lambda packet, timeout, verbose: IP(src="10.0.0.3") / ICMP(type=3, code=1))
    assert ping.echo("203.0.113.5").status == "other"


def test_echo_timeout_is_none(monkeypatch):
    monkeypatch.setattr(ping, "sr1", lambda packet, timeout, verbose: None)
    assert ping.echo("203.0.113.5", timeout_ms=10) is None


def test_echo_without_privilege(monkeypatch):
    def refuse(packet, timeout, verbose):
        raise PermissionError(1, "Operation not permitted")

    monkeypatch.setattr(ping, "sr1", refuse)
    with pytest.raises(ProbePermissionError):
        ping.echo("203.0.113.5")


def test_ping_rejects_unresolvable_host(monkeypatch):
    def fail(host):
        raise socket.gaierror(-2, "Name or service not known")

    monkeypatch.setattr(ping.socket, "gethostbyname", fail)
    with pytest.raises(InvalidTraceInput):
        ping.ping("no-such-host.invalid")


def test_tcping_returns_elapsed_ms_on_connect():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server:
        server.bind(("127.0.0.1", 0))
        server.listen(1)
        assert ping.tcping("127.0.0.1", server.getsockname()[1], timeout_ms=1000) >= 0


def test_tcping_returns_sentinel_on_failure(monkeypatch):
    def refuse(address, timeout):
        raise ConnectionRefusedError(111, "Connection refused")

    monkeypatch.setattr(ping.socket, "create_connection", refuse)
    assert ping.tcping("203.0.113.5", 80, timeout_ms=100) == -1
