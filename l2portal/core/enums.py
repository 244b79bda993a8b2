"""Endpoint liveness states."""

import enum


class EndpointState(str, enum.Enum):
    """Last-known state of a monitored TCP endpoint."""

    UNKNOWN = "unknown"  # No probe completed yet
    CHECKING = "checking"  # Probe in flight
    UP = "up"
    DOWN = "down"  # Timeout or connect error
    ERROR = "error"  # Probe itself failed unexpectedly


# States that carry a diagnostic message
ERROR_STATES = frozenset({EndpointState.DOWN, EndpointState.ERROR})
