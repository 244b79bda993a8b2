"""Captcha challenges: TTL token store, PNG renderer, issuer/validator."""

from l2portal.captcha.issuer import CHARSET, Challenge, ChallengeIssuer
from l2portal.captcha.store import ExpiringTokenStore

__all__ = ["CHARSET", "Challenge", "ChallengeIssuer", "ExpiringTokenStore"]
