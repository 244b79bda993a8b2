"""Captcha issuance and single-use validation."""

import logging
import secrets
import string
from dataclasses import dataclass
from typing import Callable, Optional

from l2portal.captcha.render import render_png, to_data_uri
from l2portal.captcha.store import ExpiringTokenStore
from l2portal.core.logging_utils import log_captcha_event

logger = logging.getLogger(__name__)

DEFAULT_SIZE = 5
DEFAULT_TTL = 600.0  # 10 minutes
AMBIGUOUS_CHARS = "0o1iIl"
CHARSET = "".join(c for c in string.ascii_letters + string.digits if c not in AMBIGUOUS_CHARS)


@dataclass(frozen=True)
class Challenge:
    """Issued captcha: opaque token plus rendered image (data URI)."""

    token: str
    image: str


def generate_answer(size: int = DEFAULT_SIZE, charset: str = CHARSET) -> str:
    return "".join(secrets.choice(charset) for _ in range(size))


class ChallengeIssuer:
    """Issues captchas into an ExpiringTokenStore and validates answers exactly once."""

    def __init__(
        self,
        store: ExpiringTokenStore,
        ttl: float = DEFAULT_TTL,
        size: int = DEFAULT_SIZE,
        renderer: Optional[Callable[[str], str]] = None,
        render_options: Optional[dict] = None,
    ):
        self.store = store
        self.ttl = float(ttl)
        self.size = int(size)
        self._render_options = render_options or {}
        self._renderer = renderer or self._render

    def _render(self, text: str) -> str:
        return to_data_uri(render_png(text, **self._render_options))

    def issue(self) -> Challenge:
        """Generate an answer, render it, store token -> lower(answer) for ttl seconds."""
        answer = generate_answer(self.size)
        image = self._renderer(answer)
        token = secrets.token_urlsafe(16)
        self.store.put(token, answer.lower(), self.ttl)
        log_captcha_event("issue", captcha_id=token)
        return Challenge(token=token, image=image)

    def validate(self, token: Optional[str], answer: Optional[str]) -> bool:
        """True only if token is live and answer matches (case-insensitive).

        The token is consumed on every call, so a wrong guess also burns it.
        Unknown, expired and already-used tokens all return False.
        """
        if not token:
            log_captcha_event("validate", outcome="missing_token")
            return False
        expected = self.store.take(token)
        if expected is None:
            log_captcha_event("validate", captcha_id=token, outcome="not_found")
            return False
        if answer is None or answer.strip().lower() != expected:
            log_captcha_event("validate", captcha_id=token, outcome="mismatch")
            return False
        log_captcha_event("validate", captcha_id=token, outcome="ok")
        return True
