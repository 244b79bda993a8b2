"""Liveness monitor: one poll loop per registered TCP endpoint, non-blocking status reads."""

import asyncio
import logging
from typing import Awaitable, Callable, Dict, Optional

from l2portal.core.enums import EndpointState
from l2portal.core.lifecycle import WorkerLifecycle, WorkerState
from l2portal.core.logging_utils import log_status_transition
from l2portal.monitor.probe import DEFAULT_PROBE_TIMEOUT, ProbeResult, probe
from l2portal.monitor.status import EndpointSnapshot, EndpointStatus, StatusTable

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 3.0

ProbeFn = Callable[[str, int, float], Awaitable[ProbeResult]]
SleepFn = Callable[[float], Awaitable[None]]


class LivenessMonitor:
    """Polls each registered endpoint on its own asyncio task.

    Each loop probes, commits the result, then sleeps poll_interval, so ticks
    for one endpoint never overlap and the interval counts from the end of the
    previous probe. probe_fn and sleep are injectable for tests.
    """

    def __init__(
        self,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
        probe_fn: ProbeFn = probe,
        sleep: SleepFn = asyncio.sleep,
        table: Optional[StatusTable] = None,
    ):
        self.poll_interval = float(poll_interval)
        self.probe_timeout = float(probe_timeout)
        self._probe = probe_fn
        self._sleep = sleep
        self.table = table if table is not None else StatusTable()
        self._lifecycle = WorkerLifecycle("liveness_monitor")
        self._tasks: Dict[str, asyncio.Task] = {}

    @property
    def state(self) -> WorkerState:
        return self._lifecycle.current

    def register(self, endpoint_id: str, host: str, port: int) -> EndpointStatus:
        """Add an endpoint in UNKNOWN state. If already running, its loop starts now."""
        record = self.table.add(endpoint_id, host, port)
        logger.info("Monitoring %s at %s:%s", endpoint_id, host, port)
        if self._lifecycle.is_running():
            self._spawn(record)
        return record

    def start(self) -> None:
        """Launch one poll task per registered endpoint. Restarts a stopped monitor. Needs a running loop."""
        if not self._lifecycle.restart():
            return
        for _, record in self.table.items():
            self._spawn(record)
        logger.info(
            "Liveness monitor running (endpoints=%s, interval=%.1fs, timeout=%.1fs)",
            len(self.table),
            self.poll_interval,
            self.probe_timeout,
        )

    async def stop(self) -> None:
        """Cancel all poll loops and wait for them to finish."""
        if not self._lifecycle.request_stop():
            return
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.debug("Poll task raised before cancel: %s", e)
        self._tasks.clear()
        if self._lifecycle.current == WorkerState.STOPPING:
            self._lifecycle.transition(WorkerState.STOPPED)
        logger.info("Liveness monitor stopped")

    def status_of(self, endpoint_id: str) -> Optional[EndpointSnapshot]:
        """Latest committed status, or None for an unregistered id. Never waits on the network."""
        return self.table.snapshot(endpoint_id)

    def statuses(self) -> Dict[str, EndpointSnapshot]:
        return self.table.snapshots()

    async def check_once(self, endpoint_id: str) -> EndpointSnapshot:
        """Run a single tick for one endpoint outside the poll loop."""
        record = self.table.get(endpoint_id)
        if record is None:
            raise KeyError(endpoint_id)
        return await self._tick(record)

    def _spawn(self, record: EndpointStatus) -> None:
        self._tasks[record.endpoint_id] = asyncio.create_task(
            self._poll_loop(record), name=f"poll:{record.endpoint_id}"
        )

    async def _tick(self, record: EndpointStatus) -> EndpointSnapshot:
        record.commit(EndpointState.CHECKING)
        try:
            result = await self._probe(record.host, record.port, self.probe_timeout)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(
                "Probe %s (%s:%s) failed unexpectedly: %s",
                record.endpoint_id,
                record.host,
                record.port,
                e,
                exc_info=True,
            )
            record.commit(EndpointState.ERROR, str(e) or type(e).__name__)
        else:
            if not result.is_up:
                logger.debug("%s down: %s", record.endpoint_id, result.error)
            record.commit(result.state, result.error)
        return record.snapshot()

    async def _poll_loop(self, record: EndpointStatus) -> None:
        last_state = record.state
        while self._lifecycle.is_running():
            try:
                snap = await self._tick(record)
                if snap.state != last_state:
                    previous, last_state = last_state, snap.state
                    log_status_transition(
                        record.endpoint_id, previous.value, snap.state.value, error=snap.error
                    )
                await self._sleep(self.poll_interval)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning("Poll loop %s failed: %s", record.endpoint_id, e, exc_info=True)
                # Fall back to the real clock so a failing sleep cannot spin
                await asyncio.sleep(self.poll_interval)


def build_monitor(monitor_cfg: dict, **kwargs) -> LivenessMonitor:
    """Create a LivenessMonitor from get_monitor_config() output and register its endpoints."""
    monitor = LivenessMonitor(
        poll_interval=monitor_cfg["poll_interval_ms"] / 1000.0,
        probe_timeout=monitor_cfg["probe_timeout_ms"] / 1000.0,
        **kwargs,
    )
    for endpoint_id, ep in monitor_cfg["endpoints"].items():
        monitor.register(endpoint_id, ep["host"], int(ep["port"]))
    return monitor
