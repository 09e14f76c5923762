# nettrace/prober/connect.py
import errno
import select
import socket
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from time import perf_counter
from typing import Callable, Optional

from loguru import logger

from nettrace.prober.base import Prober
from nettrace.prober.icmp import POLL_INTERVAL_S, RawIcmpListener, listen_for_reply
from nettrace.schemas import ProbeOutcome

JOIN_GRACE_S = 0.5
_IN_PROGRESS = (errno.EINPROGRESS, errno.EWOULDBLOCK, errno.EALREADY)


def _connect_state(err: int) -> Optional[str]:
    if err == 0:
        return "open"
    if err == errno.ECONNREFUSED:
        return "refused"
    return None


def open_knock_socket(ttl: int) -> socket.socket:
    """
    A non-blocking TCP socket with the probe TTL, already bound to an
    ephemeral local port so the listener can match quoted errors against it.
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_TTL, ttl)
        sock.bind(("0.0.0.0", 0))
        sock.setblocking(False)
    except OSError:
        sock.close()
        raise
    return sock


def knock(sock: socket.socket, target: str, port: int, wait_s: float,
          give_up: Optional[Callable[[], bool]] = None) -> tuple[Optional[str], float]:
    """
    Start a TCP connection to target:port on `sock` and watch it for at most
    wait_s. The socket is closed before returning; the handshake does not
    need to finish.

    Returns ("open" | "refused" | None, elapsed seconds). "open" and
    "refused" both mean the target itself answered the SYN.
    """
    start = perf_counter()
    try:
        err = sock.connect_ex((target, port))
        deadline = start + wait_s
        while err in _IN_PROGRESS:
            remaining = deadline - perf_counter()
            if remaining <= 0 or (give_up is not None and give_up()):
                return None, perf_counter() - start
            _, writable, _ = select.select([], [sock], [], min(remaining, POLL_INTERVAL_S))
            if writable:
                err = sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        return _connect_state(err), perf_counter() - start
    finally:
        sock.close()


def _ms(seconds: float) -> int:
    return max(0, int(round(seconds * 1000)))


class ConnectProber(Prober):
    """
    TCP connection strategy for paths that filter ICMP echo. Each probe opens
    a fresh raw ICMP listener, fires one connection attempt with the probe
    TTL, and waits for whichever comes first: an ICMP time-exceeded about
    that attempt, the target answering the SYN, or the listen window closing.

    The listen window is listen_timeout_ms, capped by the caller's timeout.
    """
    protocol = "tcp"

    def __init__(self, port: int = 80, listen_timeout_ms: int = 100,
                 open_listener=RawIcmpListener, knocker=knock, open_socket=open_knock_socket):
        self.port = port
        self.listen_timeout_ms = listen_timeout_ms
        self.open_listener = open_listener
        self.knocker = knocker
        self.open_socket = open_socket

    def probe(self, target: str, ttl: int, timeout_ms: int) -> ProbeOutcome:
        window_s = min(timeout_ms, self.listen_timeout_ms) / 1000.0
        stop = threading.Event()

        sock = self.open_socket(ttl)
        try:
            sport = sock.getsockname()[1]
            with self.open_listener() as listener, ThreadPoolExecutor(max_workers=1) as pool:
                sent_at = perf_counter()
                pending = pool.submit(listen_for_reply, listener, target, sent_at + window_s, stop, self.port, sport)

                state, knock_s = self.knocker(sock, target, self.port, window_s, pending.done)
                if state is not None:
                    stop.set()

                try:
                    reply = pending.result(timeout=window_s + JOIN_GRACE_S)
                except FutureTimeout:
                    stop.set()
                    reply = None
        finally:
            sock.close()

        if reply is not None:
            rtt = _ms(reply.received_at - sent_at)
            logger.debug("ttl={} tcp: icmp type {} from {} in {} ms", ttl, reply.icmp_type, reply.source, rtt)
            if reply.source == target:
                return ProbeOutcome.destination_reached(target, rtt, ttl, self.protocol)
            return ProbeOutcome.responded(reply.source, rtt, ttl, self.protocol)

        if state is not None:
            logger.debug("ttl={} tcp: {}:{} {} after {} ms", ttl, target, self.port, state, _ms(knock_s))
            return ProbeOutcome.destination_reached(target, _ms(knock_s), ttl, self.protocol)

        logger.debug("ttl={} tcp: nothing within {} ms", ttl, int(window_s * 1000))
        return ProbeOutcome.timed_out(ttl, protocol=self.protocol)
