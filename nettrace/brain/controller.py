# nettrace/brain/controller.py

import time
from dataclasses import replace

from loguru import logger

from nettrace.brain.rules import check_limits, check_target, ends_sweep, hop_from_outcome
from nettrace.brain.state import SweepState
from nettrace.config import Settings
from nettrace.errors import InvalidTraceInput
from nettrace.prober.base import Prober
from nettrace.prober.connect import ConnectProber
from nettrace.prober.echo import EchoProber
from nettrace.schemas import Route


class PathTracer:
    """
    Sequential TTL sweep over any Prober. One probe per TTL, each fully
    resolved before the next is sent.
    """

    def __init__(self, prober: Prober, settings: Settings | None = None):
        self.prober = prober
        self.s = settings or Settings()

    def run(self, dest: str, timeout_ms: int | None = None, max_hops: int | None = None, cancel=None) -> Route:
        timeout_ms = self.s.timeout_ms if timeout_ms is None else timeout_ms
        max_hops = self.s.max_ttl if max_hops is None else max_hops
        target = check_target(dest)
        check_limits(timeout_ms, max_hops)

        run = SweepState(target=target, max_ttl=max_hops)
        logger.info("tracing {} via {} (max {} hops, {} ms)", target, self.prober.protocol, max_hops, timeout_ms)

        while run.ttl <= run.max_ttl:
            if run.hops:
                # cancellation and pacing only ever happen between probes
                if cancel is not None and cancel.is_set():
                    run.stop_reason = "cancelled"
                    break
                if self.s.pace_ms > 0:
                    time.sleep(self.s.pace_ms / 1000.0)

            ttl = run.ttl
            outcome = self.prober.probe(target, ttl, timeout_ms)
            run.probes_used += 1

            hop = hop_from_outcome(outcome, target)
            run.hops.append(hop)
            logger.debug("ttl={} {} -> {} ({} ms)", ttl, outcome.status, hop.address or "*", hop.rtt_ms)

            # destination before max_ttl: reaching it on the last ttl still counts
            if ends_sweep(outcome, target):
                run.stop_reason = "dest_reached"
                break

            run.ttl += 1

        route = Route(target, tuple(run.hops), stop_reason=run.stop_reason or "max_ttl", probes_used=run.probes_used)
        logger.info(
            "trace to {} done: {} hops, reached={}, stop_reason={}",
            target, len(route.hops), route.reached, route.stop_reason,
        )
        return route


def build_prober(settings: Settings) -> Prober:
    method = (settings.method or "").lower()
    if method == "icmp":
        return EchoProber(payload_size=settings.payload_size)
    if method == "tcp":
        return ConnectProber(port=settings.port, listen_timeout_ms=settings.listen_timeout_ms)
    raise InvalidTraceInput(f"unknown protocol {settings.method!r}, expected 'icmp' or 'tcp'")


def trace(target: str, timeout_ms: int | None = None, max_hops: int | None = None, protocol: str | None = None,
          port: int | None = None, settings: Settings | None = None, cancel=None) -> Route:
    """
    Discover the path to `target` (an IPv4 address string).

    protocol "icmp" sends echo requests, "tcp" sends connection attempts to
    `port`. Arguments left as None come from `settings` (defaults: 2000 ms,
    30 hops, icmp, port 80); the ones given override it.
    `cancel` is an optional threading.Event checked between hops.
    """
    overrides = {
        "method": protocol,
        "max_ttl": max_hops,
        "timeout_ms": timeout_ms,
        "port": port,
    }
    s = replace(settings or Settings(), **{k: v for k, v in overrides.items() if v is not None})
    target = check_target(target)
    check_limits(s.timeout_ms, s.max_ttl)

    with build_prober(s) as prober:
        return PathTracer(prober, s).run(target, cancel=cancel)
