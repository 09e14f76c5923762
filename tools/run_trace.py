# tools/run_trace.py
# Usage examples:
#   sudo python3 -m tools.run_trace 8.8.8.8
#   sudo python3 -m tools.run_trace 1.1.1.1 --protocol tcp --port 443 --max-hops 20
#   python3 -m tools.run_trace fake

import argparse
import json
import socket
import sys

from nettrace.brain.controller import PathTracer, trace
from nettrace.config import Settings
from nettrace.errors import TraceError
from nettrace.log import configure_logging
from nettrace.schemas import ProbeOutcome


def run_with_fake(args):
    from nettrace.prober.fake import FakeProber
    target = "192.0.2.1"
    script = {}
    for ttl in range(1, 5):
        script[ttl] = ProbeOutcome.responded(f"10.0.0.{ttl}", 10 + ttl, ttl, "fake")
    script[3] = ProbeOutcome.timed_out(3, "fake")
    script[5] = ProbeOutcome.destination_reached(target, 40, 5, "fake")

    s = settings_from_args(args)
    return PathTracer(FakeProber(script=script), s).run(target)


def run_for_real(args):
    try:
        target = socket.gethostbyname(args.target)
    except socket.gaierror as e:
        raise TraceError(f"cannot resolve {args.target}: {e}") from e
    s = settings_from_args(args)
    return trace(target, timeout_ms=s.timeout_ms, max_hops=s.max_ttl,
                 protocol=s.method, port=s.port, settings=s)


def settings_from_args(args) -> Settings:
    return Settings(
        method=args.protocol,
        max_ttl=args.max_hops,
        timeout_ms=args.timeout_ms,
        port=args.port,
        payload_size=args.payload_size,
        listen_timeout_ms=args.listen_timeout_ms,
        pace_ms=args.pace_ms,
    )


def build_argparser():
    ap = argparse.ArgumentParser(description="TTL-sweep traceroute (ICMP echo or TCP connect)")
    ap.add_argument("target", nargs="?", help="Destination host/IP (or 'fake' to use FakeProber)")
    ap.add_argument("--protocol", default="icmp", choices=["icmp", "tcp"], help="Probe strategy")
    ap.add_argument("--max-hops", type=int, default=30, help="Maximum TTL to probe")
    ap.add_argument("--timeout-ms", type=int, default=2000, help="Per-hop timeout (milliseconds)")
    ap.add_argument("--port", type=int, default=80, help="Destination port for --protocol tcp")
    ap.add_argument("--payload-size", type=int, default=32, help="ICMP echo payload bytes")
    ap.add_argument("--listen-timeout-ms", type=int, default=100,
                    help="Raw ICMP listen window per tcp probe (milliseconds)")
    ap.add_argument("--pace-ms", type=int, default=0, help="Pause between probes (milliseconds)")
    ap.add_argument("--log-level", default="WARNING", help="DEBUG, INFO, WARNING or ERROR")
    return ap


if __name__ == "__main__":
    ap = build_argparser()
    args = ap.parse_args()
    configure_logging(args.log_level)

    if not args.target:
        ap.error("Provide a target (e.g., 8.8.8.8) or 'fake'")
    try:
        route = run_with_fake(args) if args.target == "fake" else run_for_real(args)
    except TraceError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(2)
    print(json.dumps(route.to_dict(), indent=2))
