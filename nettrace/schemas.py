# nettrace/schemas.py
from dataclasses import dataclass, field
from typing import Literal, Optional

ReplyType = Literal["ttl_exceeded", "dest_reached", "timeout"]
EchoStatus = Literal["success", "ttl_expired", "other"]

UNREACHABLE_RTT = -1


@dataclass(frozen=True)
class ProbeOutcome:
    """What one probe at one TTL observed."""
    status: ReplyType
    ttl: int = 0
    hop_ip: Optional[str] = None
    rtt_ms: int = UNREACHABLE_RTT
    protocol: str = "icmp"

    @classmethod
    def responded(cls, hop_ip: str, rtt_ms: int, ttl: int = 0, protocol: str = "icmp") -> "ProbeOutcome":
        return cls("ttl_exceeded", ttl, hop_ip, rtt_ms, protocol)

    @classmethod
    def destination_reached(cls, hop_ip: str, rtt_ms: int, ttl: int = 0, protocol: str = "icmp") -> "ProbeOutcome":
        return cls("dest_reached", ttl, hop_ip, rtt_ms, protocol)

    @classmethod
    def timed_out(cls, ttl: int = 0, protocol: str = "icmp") -> "ProbeOutcome":
        return cls("timeout", ttl, None, UNREACHABLE_RTT, protocol)


@dataclass(frozen=True)
class EchoReply:
    status: EchoStatus
    address: Optional[str]
    rtt_ms: int


@dataclass(frozen=True)
class Hop:
    """One router seen at a given distance. No address means nothing answered."""
    address: Optional[str]
    rtt_ms: int = UNREACHABLE_RTT

    def __post_init__(self):
        if self.address is None and self.rtt_ms != UNREACHABLE_RTT:
            raise ValueError("an unreachable hop carries no round-trip time")
        if self.address is not None and self.rtt_ms < 0:
            raise ValueError(f"hop {self.address} has negative round-trip time {self.rtt_ms}")

    @classmethod
    def unreachable(cls) -> "Hop":
        return cls(None, UNREACHABLE_RTT)

    def is_unreachable(self) -> bool:
        return self.address is None


@dataclass(frozen=True)
class Route:
    """
    Result of one trace. `reached` and `total_rtt_ms` are derived from the
    hops and the target when the route is built.
    """
    target: str
    hops: tuple[Hop, ...]
    stop_reason: str = "max_ttl"
    probes_used: int = 0
    reached: bool = field(init=False)
    total_rtt_ms: int = field(init=False)

    def __post_init__(self):
        hops = tuple(self.hops)
        if not hops:
            raise ValueError("a route needs at least one hop")
        object.__setattr__(self, "hops", hops)

        last = hops[-1]
        reached = not last.is_unreachable() and last.address == self.target
        object.__setattr__(self, "reached", reached)
        object.__setattr__(self, "total_rtt_ms", last.rtt_ms if reached else UNREACHABLE_RTT)

    def is_reached(self) -> bool:
        return self.reached

    def total_round_trip_time(self) -> int:
        return self.total_rtt_ms

    def to_dict(self) -> dict:
        return {
            "target": self.target,
            "reached": self.reached,
            "total_rtt_ms": self.total_rtt_ms,
            "stop_reason": self.stop_reason,
            "probes_used": self.probes_used,
            "hops": [
                {"ttl": i, "address": h.address, "rtt_ms": h.rtt_ms}
                for i, h in enumerate(self.hops, start=1)
            ],
        }
