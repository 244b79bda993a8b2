"""Structured logging for endpoint status transitions and captcha events."""

import logging
import uuid
from typing import Optional

logger = logging.getLogger(__name__)


def _ensure_trace_id(extra: dict) -> str:
    trace_id = extra.get("trace_id")
    if not trace_id:
        trace_id = str(uuid.uuid4())[:8]
        extra["trace_id"] = trace_id
    return trace_id


def log_status_transition(
    endpoint_id: str,
    from_state: str,
    to_state: str,
    error: Optional[str] = None,
    trace_id: Optional[str] = None,
    extra: Optional[dict] = None,
) -> None:
    """Log endpoint state change: endpoint, from_state, to_state, error.

    Only called when the committed state actually changes, so a healthy endpoint
    does not log every poll.
    """
    extra = extra or {}
    if trace_id:
        extra["trace_id"] = trace_id
    _ensure_trace_id(extra)
    extra["endpoint"] = endpoint_id
    extra["from_state"] = from_state
    extra["to_state"] = to_state
    if error:
        extra["error"] = repr(error)
    msg = "endpoint_status " + " ".join(f"{k}={v}" for k, v in sorted(extra.items()))
    logger.info(msg)


def log_captcha_event(
    event: str,
    captcha_id: Optional[str] = None,
    outcome: Optional[str] = None,
    extra: Optional[dict] = None,
) -> None:
    """Log captcha issue/validate. Only a token prefix is logged, never the answer."""
    extra = extra or {}
    _ensure_trace_id(extra)
    extra["event"] = event
    if captcha_id:
        extra["captcha"] = captcha_id[:8]
    if outcome:
        extra["outcome"] = outcome
    msg = "captcha " + " ".join(f"{k}={v}" for k, v in sorted(extra.items()))
    logger.debug(msg)
