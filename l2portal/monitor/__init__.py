"""Service liveness: TCP probe, per-endpoint status table, background monitor."""

from l2portal.monitor.monitor import LivenessMonitor, build_monitor
from l2portal.monitor.probe import ProbeResult, probe
from l2portal.monitor.status import EndpointSnapshot, EndpointStatus, StatusTable

__all__ = [
    "LivenessMonitor",
    "build_monitor",
    "ProbeResult",
    "probe",
    "EndpointSnapshot",
    "EndpointStatus",
    "StatusTable",
]
