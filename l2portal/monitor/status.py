"""Per-endpoint status records and the table that owns them."""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

from l2portal.core.enums import ERROR_STATES, EndpointState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EndpointSnapshot:
    """Immutable copy of an endpoint's status, safe to hand to callers."""

    endpoint_id: str
    host: str
    port: int
    state: EndpointState
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.endpoint_id,
            "host": self.host,
            "port": self.port,
            "state": self.state.value,
            "error": self.error,
        }


class EndpointStatus:
    """Thread-safe status of one endpoint. Single writer (its poll loop), many readers."""

    def __init__(self, endpoint_id: str, host: str, port: int):
        self._lock = threading.Lock()
        self.endpoint_id = endpoint_id
        self.host = host
        self.port = int(port)
        self._state = EndpointState.UNKNOWN
        self._error: Optional[str] = None

    def commit(self, state: EndpointState, error: Optional[str] = None) -> EndpointState:
        """Set state and error together. Returns the previous state.

        Error text is only kept for DOWN/ERROR so a reader never sees UP with a
        stale error.
        """
        if state not in ERROR_STATES:
            error = None
        with self._lock:
            previous = self._state
            self._state = state
            self._error = error
            return previous

    def snapshot(self) -> EndpointSnapshot:
        with self._lock:
            return EndpointSnapshot(
                endpoint_id=self.endpoint_id,
                host=self.host,
                port=self.port,
                state=self._state,
                error=self._error,
            )

    @property
    def state(self) -> EndpointState:
        with self._lock:
            return self._state


class StatusTable:
    """Map of endpoint id -> EndpointStatus. Records are never removed once added."""

    def __init__(self):
        self._lock = threading.Lock()
        self._records: Dict[str, EndpointStatus] = {}

    def add(self, endpoint_id: str, host: str, port: int) -> EndpointStatus:
        with self._lock:
            if endpoint_id in self._records:
                raise ValueError(f"endpoint {endpoint_id!r} already registered")
            record = EndpointStatus(endpoint_id, host, port)
            self._records[endpoint_id] = record
            return record

    def get(self, endpoint_id: str) -> Optional[EndpointStatus]:
        with self._lock:
            return self._records.get(endpoint_id)

    def snapshot(self, endpoint_id: str) -> Optional[EndpointSnapshot]:
        """Snapshot of one endpoint, or None if the id is not registered."""
        record = self.get(endpoint_id)
        if record is None:
            return None
        return record.snapshot()

    def snapshots(self) -> Dict[str, EndpointSnapshot]:
        return {endpoint_id: record.snapshot() for endpoint_id, record in self.items()}

    def items(self) -> Iterator[Tuple[str, EndpointStatus]]:
        with self._lock:
            items = list(self._records.items())
        return iter(items)

    def __contains__(self, endpoint_id: object) -> bool:
        with self._lock:
            return endpoint_id in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
