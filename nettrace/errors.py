"""Errors raised before or while setting up a trace.

Per-hop silence is never an error; it ends up as an unreachable Hop.
"""


class TraceError(Exception):
    """Base class for nettrace failures."""


class InvalidTraceInput(TraceError, ValueError):
    """Bad target, timeout, hop count or protocol. Raised before probing."""


class ProbePermissionError(TraceError, PermissionError):
    """The host refused us a raw socket or raw packet send."""

    def __init__(self, message: str, suggestion: str = "run as root or grant CAP_NET_RAW"):
        self.message = message
        self.suggestion = suggestion
        super().__init__(f"{message} ({suggestion})")
