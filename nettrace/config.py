from dataclasses import dataclass

@dataclass
class Settings:
    method: str = "icmp"          # "icmp" (echo) or "tcp" (connection)
    max_ttl: int = 30
    timeout_ms: int = 2000        # per-hop wait for echo probes
    port: int = 80                # destination port for tcp probes
    payload_size: int = 32        # echo payload bytes

    # raw ICMP listen window per tcp probe, independent of timeout_ms
    listen_timeout_ms: int = 100

    # pause between consecutive probes
    pace_ms: int = 0
