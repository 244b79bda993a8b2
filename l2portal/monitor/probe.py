"""TCP probe: one bounded connect attempt against host:port."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from l2portal.core.enums import EndpointState

logger = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT = 3.0
TIMEOUT_REASON = "Connection timeout"


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of one probe: UP, or DOWN with a reason."""

    state: EndpointState
    error: Optional[str] = None

    @property
    def is_up(self) -> bool:
        return self.state == EndpointState.UP


async def _close(writer: asyncio.StreamWriter) -> None:
    writer.close()
    try:
        await writer.wait_closed()
    except OSError as e:
        # Peer reset during close still counts as reachable
        logger.debug("close after probe: %s", e)


async def probe(host: str, port: int, timeout: float = DEFAULT_PROBE_TIMEOUT) -> ProbeResult:
    """Attempt a TCP connection to host:port within timeout seconds.

    Returns UP if the connection completes (it is closed right away), DOWN with
    "Connection timeout" if the deadline passes first, or DOWN with the OS error
    text if connect fails. wait_for cancels the pending connect on timeout, so
    the socket is torn down before this returns. No retries.

    Anything other than a timeout or OSError propagates; the monitor records it
    as ERROR.
    """
    try:
        _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=timeout)
    except asyncio.TimeoutError:
        # Checked before OSError: TimeoutError subclasses OSError on 3.11+
        return ProbeResult(EndpointState.DOWN, TIMEOUT_REASON)
    except OSError as e:
        return ProbeResult(EndpointState.DOWN, str(e) or type(e).__name__)
    await _close(writer)
    return ProbeResult(EndpointState.UP)
