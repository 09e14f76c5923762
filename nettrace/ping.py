# nettrace/ping.py
"""
Single-probe reachability primitives: one ICMP echo (ping) and one timed
TCP connect (tcping). The tracer's echo strategy is built on `echo`.
"""
import os
import socket
from time import perf_counter
from typing import Optional

from loguru import logger
from scapy.layers.inet import ICMP, IP
from scapy.packet import Raw
from scapy.sendrecv import sr1

from nettrace.errors import InvalidTraceInput, ProbePermissionError
from nettrace.schemas import EchoReply, UNREACHABLE_RTT

ICMP_ECHO_REPLY = 0
ICMP_TIME_EXCEEDED = 11
DEFAULT_TTL = 64
PAYLOAD_FILL = b"\x01"


def _echo_packet(address: str, ttl: int, payload_size: int, ident: int) -> IP:
    return IP(dst=address, ttl=ttl) / ICMP(id=ident, seq=ttl) / Raw(PAYLOAD_FILL * payload_size)


def _classify(reply, rtt_ms: int) -> EchoReply:
    icmp_type = reply[ICMP].type if reply.haslayer(ICMP) else None
    if icmp_type == ICMP_ECHO_REPLY:
        status = "success"
    elif icmp_type == ICMP_TIME_EXCEEDED:
        status = "ttl_expired"
    else:
        status = "other"
    return EchoReply(status=status, address=reply[IP].src, rtt_ms=rtt_ms)


def echo(address: str, timeout_ms: int = 2000, payload_size: int = 32, ttl: int = DEFAULT_TTL,
         ident: Optional[int] = None) -> Optional[EchoReply]:
    """
    Send one ICMP echo request to `address` with the given IP TTL and wait
    for a single answer. Returns None when nothing came back in time.

    Replies are matched on the ICMP id and sequence (the TTL), so callers
    running side by side should each pass their own `ident`.
    """
    if ident is None:
        ident = os.getpid()
    packet = _echo_packet(address, ttl, payload_size, ident & 0xFFFF)
    start = perf_counter()
    try:
        reply = sr1(packet, timeout=timeout_ms / 1000.0, verbose=0)
    except PermissionError as e:
        logger.error("raw ICMP send refused: {}", e)
        raise ProbePermissionError(f"cannot send ICMP echo to {address}: {e}") from e
    elapsed_ms = int(round((perf_counter() - start) * 1000))

    if reply is None:
        return None

    return _classify(reply, elapsed_ms)


def ping(host: str, timeout_ms: int = 2000, payload_size: int = 32) -> Optional[EchoReply]:
    """Resolve `host` and send it one echo request."""
    try:
        address = socket.gethostbyname(host)
    except socket.gaierror as e:
        raise InvalidTraceInput(f"cannot resolve host '{host}': {e}") from e
    return echo(address, timeout_ms=timeout_ms, payload_size=payload_size)


def tcping(host: str, port: int, timeout_ms: int = 2000) -> int:
    """
    Time a full TCP connect to host:port in milliseconds.
    Any failure (refused, unreachable, timeout, unresolvable) returns -1.
    """
    start = perf_counter()
    try:
        with socket.create_connection((host, port), timeout=timeout_ms / 1000.0):
            pass
    except OSError as e:
        logger.debug("tcping {}:{} failed: {}", host, port, e)
        return UNREACHABLE_RTT
    return int(round((perf_counter() - start) * 1000))
