# tools/reachability.py
# Usage:
#   sudo python3 -m tools.reachability ping <host> [timeout_ms] [payload_size]
#   python3 -m tools.reachability tcping <host> <port> [timeout_ms]
#
# Prints one JSON object: the echo reply (or null on timeout) for ping,
# the connect time in ms (-1 if unreachable) for tcping.

import sys
import json
from dataclasses import asdict

from nettrace.errors import TraceError
from nettrace.log import configure_logging
from nettrace.ping import ping, tcping

def main():
    if len(sys.argv) < 3 or sys.argv[1] not in ("ping", "tcping"):
        print("Usage: python3 -m tools.reachability ping <host> [timeout_ms] [payload_size]")
        print("       python3 -m tools.reachability tcping <host> <port> [timeout_ms]")
        sys.exit(1)

    configure_logging("INFO")
    mode, host = sys.argv[1], sys.argv[2]

    if mode == "ping":
        timeout_ms = int(sys.argv[3]) if len(sys.argv) >= 4 else 2000
        size = int(sys.argv[4]) if len(sys.argv) >= 5 else 32
        try:
            reply = ping(host, timeout_ms=timeout_ms, payload_size=size)
        except TraceError as e:
            print(f"error: {e}", file=sys.stderr)
            sys.exit(2)
        print(json.dumps({"host": host, "reply": asdict(reply) if reply else None}, indent=2))
    else:
        if len(sys.argv) < 4:
            print("tcping needs a port")
            sys.exit(1)
        port = int(sys.argv[3])
        timeout_ms = int(sys.argv[4]) if len(sys.argv) >= 5 else 2000
        print(json.dumps({"host": host, "port": port, "rtt_ms": tcping(host, port, timeout_ms)}, indent=2))

if __name__ == "__main__":
    main()
