# nettrace/prober/icmp.py
"""
Raw ICMP boundary for the connection prober: a listening socket that hands
back whole IPv4 datagrams, and a parser that turns those bytes into an
IcmpReply. Nothing above this module looks at raw bytes.
"""
import socket
from dataclasses import dataclass
from time import perf_counter
from typing import Optional

from loguru import logger
from scapy.layers.inet import ICMP, IP, IPerror, TCPerror

from nettrace.errors import ProbePermissionError

IPPROTO_ICMP = 1
IP_MIN_HEADER = 20
ICMP_HEADER_LEN = 8
ICMP_TIME_EXCEEDED = 11

POLL_INTERVAL_S = 0.02


@dataclass(frozen=True)
class IcmpReply:
    source: str
    icmp_type: int
    code: int = 0
    quoted_dst: Optional[str] = None     # destination of the datagram that triggered this error
    quoted_dport: Optional[int] = None
    quoted_sport: Optional[int] = None   # local port of the connection attempt it quotes
    received_at: float = 0.0

    def is_time_exceeded(self) -> bool:
        return self.icmp_type == ICMP_TIME_EXCEEDED

    def concerns(self, target: str, port: Optional[int] = None, sport: Optional[int] = None) -> bool:
        if self.quoted_dst != target:
            return False
        if sport is not None and self.quoted_sport != sport:
            return False
        return port is None or self.quoted_dport is None or self.quoted_dport == port


def parse_datagram(data: bytes, received_at: float = 0.0) -> Optional[IcmpReply]:
    """
    Classify one raw IPv4 datagram. Returns None for anything that is not a
    well-formed ICMP message.
    """
    if len(data) < IP_MIN_HEADER or data[0] >> 4 != 4:
        return None
    ihl = (data[0] & 0x0F) * 4
    if ihl < IP_MIN_HEADER or len(data) < ihl + ICMP_HEADER_LEN:
        return None
    if data[9] != IPPROTO_ICMP:
        return None

    pkt = IP(data)
    if not pkt.haslayer(ICMP):
        return None

    quoted_dst = pkt[IPerror].dst if pkt.haslayer(IPerror) else None
    quoted_dport = pkt[TCPerror].dport if pkt.haslayer(TCPerror) else None
    quoted_sport = pkt[TCPerror].sport if pkt.haslayer(TCPerror) else None
    return IcmpReply(
        source=pkt.src,
        icmp_type=data[ihl],
        code=pkt[ICMP].code,
        quoted_dst=quoted_dst,
        quoted_dport=quoted_dport,
        quoted_sport=quoted_sport,
        received_at=received_at,
    )


class RawIcmpListener:
    """One raw ICMP socket, opened per probe and closed right after it."""

    def __init__(self, buffer_size: int = 65535):
        self.buffer_size = buffer_size
        try:
            self.sock = socket.socket(socket.AF_INET, socket.SOCK_RAW, socket.IPPROTO_ICMP)
        except PermissionError as e:
            logger.error("raw ICMP socket refused: {}", e)
            raise ProbePermissionError(f"cannot open raw ICMP socket: {e}") from e

    def read(self, timeout_s: float) -> Optional[tuple[bytes, float]]:
        self.sock.settimeout(max(timeout_s, 0.001))
        try:
            data, _addr = self.sock.recvfrom(self.buffer_size)
        except socket.timeout:
            return None
        return data, perf_counter()

    def close(self) -> None:
        self.sock.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def listen_for_reply(listener, target: str, deadline: float, stop, port: Optional[int] = None,
                     sport: Optional[int] = None) -> Optional[IcmpReply]:
    """
    Read datagrams until one answers our probe toward `target`, the deadline
    (a perf_counter() value) passes, or `stop` is set.
    With `sport` set, only errors quoting a segment from that local port count,
    so late replies to earlier probes and other traces are dropped.
    A reply counts if it is a time-exceeded or if the target itself sent it.
    """
    while not stop.is_set():
        remaining = deadline - perf_counter()
        if remaining <= 0:
            return None
        got = listener.read(min(remaining, POLL_INTERVAL_S))
        if got is None:
            continue
        data, received_at = got
        reply = parse_datagram(data, received_at)
        if reply is None or not reply.concerns(target, port, sport):
            continue
        if reply.is_time_exceeded() or reply.source == target:
            return reply
    return None
