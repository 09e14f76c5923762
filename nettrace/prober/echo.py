# nettrace/prober/echo.py
import itertools
import os

from loguru import logger

from nettrace import ping
from nettrace.prober.base import Prober
from nettrace.schemas import ProbeOutcome

_instances = itertools.count(1)


class EchoProber(Prober):
    """
    ICMP echo strategy: one echo request per TTL through `ping.echo`.
    A time-exceeded answer names the router at that distance, an echo reply
    means the target itself answered.
    """
    protocol = "icmp"

    def __init__(self, payload_size: int = 32, sender=None):
        self.payload_size = payload_size
        self.sender = sender or ping.echo
        # distinct per prober; replies are matched on id and seq
        self.ident = (os.getpid() ^ next(_instances)) & 0xFFFF

    def probe(self, target: str, ttl: int, timeout_ms: int) -> ProbeOutcome:
        reply = self.sender(target, timeout_ms, self.payload_size, ttl, ident=self.ident)

        if reply is None or reply.address is None:
            logger.debug("ttl={} echo: no reply", ttl)
            return ProbeOutcome.timed_out(ttl, protocol=self.protocol)

        if reply.status == "success":
            return ProbeOutcome.destination_reached(reply.address, reply.rtt_ms, ttl, self.protocol)

        if reply.status == "ttl_expired":
            # a time-exceeded from the target itself still ends the sweep
            if reply.address == target:
                return ProbeOutcome.destination_reached(reply.address, reply.rtt_ms, ttl, self.protocol)
            return ProbeOutcome.responded(reply.address, reply.rtt_ms, ttl, self.protocol)

        logger.debug("ttl={} echo: ignoring {} reply from {}", ttl, reply.status, reply.address)
        return ProbeOutcome.timed_out(ttl, protocol=self.protocol)
