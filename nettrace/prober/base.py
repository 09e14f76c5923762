# nettrace/prober/base.py
from abc import ABC, abstractmethod

from nettrace.schemas import ProbeOutcome


class Prober(ABC):
    protocol: str = "icmp"

    @abstractmethod
    def probe(self, target: str, ttl: int, timeout_ms: int) -> ProbeOutcome:
        """Send exactly one probe for target@ttl and return what came back.

        Silence at this TTL is a normal ProbeOutcome.timed_out(), never an exception.
        """
        raise NotImplementedError

    def close(self) -> None:
        """Release anything held across probes. Most probers hold nothing."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
