# tests/test_schemas.py
import dataclasses

import pytest

from nettrace.schemas import Hop, ProbeOutcome, Route, UNREACHABLE_RTT


def test_unreachable_hop_carries_sentinel():
    hop = Hop.unreachable()
    assert hop.is_unreachable()
    assert hop.address is None
    assert hop.rtt_ms == UNREACHABLE_RTT


def test_hop_invariant_is_enforced():
    with pytest.raises(ValueError):
        Hop(None, 12)
    with pytest.raises(ValueError):
        Hop("10.0.0.1", -1)


def test_hop_is_immutable():
    hop = Hop("10.0.0.1", 4)
    with pytest.raises(dataclasses.FrozenInstanceError):
        hop.rtt_ms = 5


def test_route_needs_a_hop():
    with pytest.raises(ValueError):
        Route("192.0.2.1", ())


def test_route_reached_when_last_hop_is_target():
    route = Route("192.0.2.1", (Hop("10.0.0.1", 3), Hop("192.0.2.1", 17)), stop_reason="dest_reached")
    assert route.is_reached()
    assert route.total_round_trip_time() == 17


def test_route_not_reached_when_last_hop_is_router():
    route = Route("192.0.2.1", [Hop("10.0.0.1", 3), Hop("10.0.0.2", 17)])
    assert not route.is_reached()
    assert route.total_round_trip_time() == UNREACHABLE_RTT
    assert isinstance(route.hops, tuple)


def test_route_not_reached_when_last_hop_silent():
    route = Route("192.0.2.1", (Hop("192.0.2.1", 3), Hop.unreachable()))
    assert not route.is_reached()
    assert route.total_round_trip_time() == UNREACHABLE_RTT


def test_route_to_dict_numbers_hops_from_one():
    route = Route("192.0.2.1", (Hop.unreachable(), Hop("192.0.2.1", 8)), stop_reason="dest_reached", probes_used=2)
    assert route.to_dict() == {
        "target": "192.0.2.1",
        "reached": True,
        "total_rtt_ms": 8,
        "stop_reason": "dest_reached",
        "probes_used": 2,
        "hops": [
            {"ttl": 1, "address": None, "rtt_ms": -1},
            {"ttl": 2, "address": "192.0.2.1", "rtt_ms": 8},
        ],
    }


def test_probe_outcome_constructors():
    assert ProbeOutcome.timed_out(4) == ProbeOutcome("timeout", 4, None, UNREACHABLE_RTT, "icmp")
    out = ProbeOutcome.responded("10.0.0.1", 9, 2, "tcp")
    assert (out.status, out.hop_ip, out.rtt_ms, out.ttl, out.protocol) == ("ttl_exceeded", "10.0.0.1", 9, 2, "tcp")
    assert ProbeOutcome.destination_reached("192.0.2.1", 1, 3).status == "dest_reached"
