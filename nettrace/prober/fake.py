# nettrace/prober/fake.py
from collections import deque

from nettrace.prober.base import Prober
from nettrace.schemas import ProbeOutcome


class FakeProber(Prober):
    """
    script: dict[ttl] -> either one ProbeOutcome returned on every call for that
    ttl, or a list of outcomes handed out one per call.
    Anything unscripted (or an exhausted list) is a timeout.
    """
    protocol = "fake"

    def __init__(self, script=None):
        self.script = {}
        self.calls = []
        if script:
            for k, v in script.items():
                self.script[k] = deque(v) if isinstance(v, (list, tuple)) else v

    def probe(self, target: str, ttl: int, timeout_ms: int) -> ProbeOutcome:
        self.calls.append((target, ttl, timeout_ms))
        entry = self.script.get(ttl)
        if isinstance(entry, ProbeOutcome):
            return entry
        if entry:
            return entry.popleft()
        return ProbeOutcome.timed_out(ttl, protocol=self.protocol)
