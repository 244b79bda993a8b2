"""State machine for background worker lifecycle: IDLE -> RUNNING -> STOPPING -> STOPPED (-> IDLE on restart)."""

import enum
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class WorkerState(str, enum.Enum):
    """Lifecycle states shared by the liveness monitor and the token sweeper."""

    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


# Valid transitions: from_state -> set of allowed to_states
_TRANSITIONS: dict[WorkerState, set[WorkerState]] = {
    WorkerState.IDLE: {WorkerState.RUNNING, WorkerState.STOPPED},
    WorkerState.RUNNING: {WorkerState.STOPPING},
    WorkerState.STOPPING: {WorkerState.STOPPED},
    WorkerState.STOPPED: {WorkerState.IDLE},
}


class WorkerLifecycle:
    """Tracks lifecycle state and rejects invalid transitions."""

    def __init__(
        self,
        name: str,
        on_transition: Optional[Callable[[WorkerState, WorkerState], None]] = None,
    ):
        self.name = name
        self._current = WorkerState.IDLE
        self._on_transition = on_transition

    @property
    def current(self) -> WorkerState:
        return self._current

    def can_transition_to(self, to_state: WorkerState) -> bool:
        return to_state in _TRANSITIONS.get(self._current, set())

    def transition(self, to_state: WorkerState) -> bool:
        """
        Transition to new state if valid. Returns True on success, False otherwise.
        Calls on_transition(from, to) callback if provided.
        """
        if not self.can_transition_to(to_state):
            logger.warning(
                "%s: invalid transition %s -> %s (allowed: %s)",
                self.name,
                self._current.value,
                to_state.value,
                [s.value for s in _TRANSITIONS.get(self._current, set())],
            )
            return False
        from_state = self._current
        self._current = to_state
        logger.debug("%s: %s -> %s", self.name, from_state.value, to_state.value)
        if self._on_transition:
            try:
                self._on_transition(from_state, to_state)
            except Exception as e:
                logger.debug("on_transition callback error: %s", e)
        return True

    def is_running(self) -> bool:
        return self._current == WorkerState.RUNNING

    def request_stop(self) -> bool:
        """RUNNING -> STOPPING, or IDLE -> STOPPED. Returns True if a transition applied."""
        if self._current == WorkerState.RUNNING:
            return self.transition(WorkerState.STOPPING)
        if self._current == WorkerState.IDLE:
            return self.transition(WorkerState.STOPPED)
        return False

    def restart(self) -> bool:
        """Begin running again. STOPPED goes back through IDLE first. Returns True if now RUNNING."""
        if self._current == WorkerState.STOPPED:
            self.transition(WorkerState.IDLE)
        return self.transition(WorkerState.RUNNING)
