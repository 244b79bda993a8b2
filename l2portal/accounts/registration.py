"""Registration flow: captcha first, then input checks, then storage."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from l2portal.accounts.base import AccountConflict, AccountStore, AccountStoreError
from l2portal.captcha.issuer import ChallengeIssuer

logger = logging.getLogger(__name__)

MSG_INVALID_CAPTCHA = "Invalid captcha"
MSG_REQUIRED = "Login and password are required"
MSG_CONFLICT = "Account with this login already exists"
MSG_CREATED = "Account created successfully"
MSG_INTERNAL = "Internal server error"


@dataclass
class RegistrationResult:
    status_code: int
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status_code == 201


def _failed(status_code: int, message: str) -> RegistrationResult:
    return RegistrationResult(status_code, {"status": "failed", "message": message})


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def register_account(
    issuer: ChallengeIssuer,
    accounts: AccountStore,
    body: Dict[str, Any],
) -> RegistrationResult:
    """Validate the captcha (consuming it), then create the account.

    Captcha failures are reported the same way whether the token was unknown,
    expired, already used or the answer was wrong. Storage is not touched
    unless the captcha passed.
    """
    if not issuer.validate(_text(body.get("captchaId")), _text(body.get("captchaCode"))):
        return _failed(400, MSG_INVALID_CAPTCHA)

    login = _text(body.get("login"))
    password = _text(body.get("password"))
    if not login or not password:
        return _failed(400, MSG_REQUIRED)

    try:
        if accounts.account_exists(login):
            return _failed(409, MSG_CONFLICT)
        account_id = accounts.create_account(login, password)
    except AccountConflict:
        return _failed(409, MSG_CONFLICT)
    except AccountStoreError:
        logger.exception("Registration error for login %r", login)
        return _failed(500, MSG_INTERNAL)

    logger.info("Account created: login=%s id=%s", login, account_id)
    return RegistrationResult(201, {"status": "success", "message": MSG_CREATED})
