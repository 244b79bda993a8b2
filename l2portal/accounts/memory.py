"""In-process AccountStore for tests and local runs without PostgreSQL."""

import itertools
import threading
from typing import Dict, Tuple

from l2portal.accounts.base import AccountConflict, AccountStore


class InMemoryAccountStore(AccountStore):
    def __init__(self):
        self._lock = threading.Lock()
        self._accounts: Dict[str, Tuple[int, str]] = {}
        self._ids = itertools.count(1)

    def account_exists(self, login: str) -> bool:
        with self._lock:
            return login in self._accounts

    def create_account(self, login: str, password: str) -> int:
        with self._lock:
            if login in self._accounts:
                raise AccountConflict(login)
            account_id = next(self._ids)
            self._accounts[login] = (account_id, password)
            return account_id

    def __len__(self) -> int:
        with self._lock:
            return len(self._accounts)
