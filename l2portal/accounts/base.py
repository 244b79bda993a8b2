"""AccountStore abstract interface: the storage collaborator behind POST /account."""

from abc import ABC, abstractmethod
from typing import Any


class AccountStoreError(Exception):
    """Storage failure other than a duplicate login."""


class AccountConflict(AccountStoreError):
    """An account with this login already exists."""

    def __init__(self, login: str):
        super().__init__(f"account {login!r} already exists")
        self.login = login


class AccountStore(ABC):
    """Minimal account storage used by registration.

    Implementations raise AccountConflict from create_account when the login is
    taken, even if account_exists said otherwise a moment earlier.
    """

    @abstractmethod
    def account_exists(self, login: str) -> bool:
        ...

    @abstractmethod
    def create_account(self, login: str, password: str) -> Any:
        """Insert the account and return its id."""
        ...

    def close(self) -> None:
        return
