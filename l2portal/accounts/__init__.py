"""Account storage collaborator and the captcha-gated registration flow."""

from l2portal.accounts.base import AccountConflict, AccountStore, AccountStoreError
from l2portal.accounts.memory import InMemoryAccountStore
from l2portal.accounts.registration import RegistrationResult, register_account


# Lazy import so the package loads without psycopg2
def __getattr__(name: str):
    if name == "PostgresAccountStore":
        from l2portal.accounts.postgres_store import PostgresAccountStore
        return PostgresAccountStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "AccountConflict",
    "AccountStore",
    "AccountStoreError",
    "InMemoryAccountStore",
    "PostgresAccountStore",
    "RegistrationResult",
    "register_account",
]
