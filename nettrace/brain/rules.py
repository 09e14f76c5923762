# nettrace/brain/rules.py
import ipaddress

from nettrace.errors import InvalidTraceInput
from nettrace.schemas import Hop, ProbeOutcome

MAX_TTL_LIMIT = 255


def ends_sweep(outcome: ProbeOutcome, target: str) -> bool:
    """The target answered, whatever kind of reply it used."""
    return outcome.status == "dest_reached" or (
        outcome.status == "ttl_exceeded" and outcome.hop_ip == target
    )


def hop_from_outcome(outcome: ProbeOutcome, target: str) -> Hop:
    if ends_sweep(outcome, target):
        return Hop(target, outcome.rtt_ms)
    if outcome.status == "ttl_exceeded" and outcome.hop_ip:
        return Hop(outcome.hop_ip, outcome.rtt_ms)
    return Hop.unreachable()


def check_target(target) -> str:
    """Normalize an IPv4 address string; anything else is rejected."""
    try:
        addr = ipaddress.ip_address(str(target).strip())
    except ValueError:
        raise InvalidTraceInput(f"not an IP address: {target!r}")
    if addr.version != 4:
        raise InvalidTraceInput(f"only IPv4 targets are supported, got {addr}")
    return str(addr)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def check_limits(timeout_ms: int, max_hops: int) -> None:
    if not _is_int(timeout_ms) or timeout_ms <= 0:
        raise InvalidTraceInput(f"timeout must be a positive integer number of milliseconds, got {timeout_ms!r}")
    if not _is_int(max_hops) or not 1 <= max_hops <= MAX_TTL_LIMIT:
        raise InvalidTraceInput(f"max hops must be an integer between 1 and {MAX_TTL_LIMIT}, got {max_hops!r}")
