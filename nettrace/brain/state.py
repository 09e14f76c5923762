# nettrace/brain/state.py
from dataclasses import dataclass, field

from nettrace.schemas import Hop


@dataclass
class SweepState:
    target: str
    max_ttl: int
    ttl: int = 1
    probes_used: int = 0
    stop_reason: str | None = None
    hops: list[Hop] = field(default_factory=list)
