"""Registration flow: captcha gate, input checks, storage outcomes."""

import pytest

from l2portal.accounts.base import AccountConflict, AccountStore, AccountStoreError
from l2portal.accounts.memory import InMemoryAccountStore
from l2portal.accounts.registration import register_account


class RecordingStore(AccountStore):
    """Counts storage calls; optionally fails."""

    def __init__(self, exists=False, create_error=None):
        self.exists = exists
        self.create_error = create_error
        self.calls = []

    def account_exists(self, login):
        self.calls.append(("exists", login))
        return self.exists

    def create_account(self, login, password):
        self.calls.append(("create", login))
        if self.create_error is not None:
            raise self.create_error
        return 42


def _body(challenge, answer, login="hero", password="secret1"):
    return {"login": login, "password": password, "captchaId": challenge.token, "captchaCode": answer}


class TestRegisterAccount:
    def test_success(self, issuer, renderer):
        accounts = InMemoryAccountStore()
        challenge = issuer.issue()
        result = register_account(issuer, accounts, _body(challenge, renderer.last))
        assert result.ok
        assert result.status_code == 201
        assert result.payload == {"status": "success", "message": "Account created successfully"}
        assert accounts.account_exists("hero")

    def test_bad_captcha_never_touches_storage(self, issuer):
        store = RecordingStore()
        challenge = issuer.issue()
        result = register_account(issuer, store, _body(challenge, "nope!"))
        assert result.status_code == 400
        assert result.payload == {"status": "failed", "message": "Invalid captcha"}
        assert store.calls == []

    def test_expired_and_wrong_look_the_same(self, issuer, renderer, clock):
        store = RecordingStore()
        expired = issuer.issue()
        expired_answer = renderer.last
        clock.advance(601)
        wrong = issuer.issue()
        r1 = register_account(issuer, store, _body(expired, expired_answer))
        r2 = register_account(issuer, store, _body(wrong, "zzzzz"))
        assert (r1.status_code, r1.payload) == (r2.status_code, r2.payload)

    def test_captcha_reuse_rejected(self, issuer, renderer):
        accounts = InMemoryAccountStore()
        challenge = issuer.issue()
        answer = renderer.last
        assert register_account(issuer, accounts, _body(challenge, answer)).ok
        again = register_account(issuer, accounts, _body(challenge, answer, login="other"))
        assert again.status_code == 400
        assert not accounts.account_exists("other")

    @pytest.mark.parametrize("login,password", [("", "pw"), ("hero", ""), (None, "pw"), ("hero", None)])
    def test_login_and_password_required(self, issuer, renderer, login, password):
        store = RecordingStore()
        challenge = issuer.issue()
        result = register_account(issuer, store, _body(challenge, renderer.last, login=login, password=password))
        assert result.status_code == 400
        assert result.payload["message"] == "Login and password are required"
        assert store.calls == []

    def test_existing_login(self, issuer, renderer):
        store = RecordingStore(exists=True)
        challenge = issuer.issue()
        result = register_account(issuer, store, _body(challenge, renderer.last))
        assert result.status_code == 409
        assert store.calls == [("exists", "hero")]

    def test_conflict_on_insert_race(self, issuer, renderer):
        store = RecordingStore(create_error=AccountConflict("hero"))
        challenge = issuer.issue()
        result = register_account(issuer, store, _body(challenge, renderer.last))
        assert result.status_code == 409
        assert result.payload["message"] == "Account with this login already exists"

    def test_storage_failure_is_generic_500(self, issuer, renderer):
        store = RecordingStore(create_error=AccountStoreError("connection reset by peer"))
        challenge = issuer.issue()
        result = register_account(issuer, store, _body(challenge, renderer.last))
        assert result.status_code == 500
        assert result.payload == {"status": "failed", "message": "Internal server error"}


class TestInMemoryAccountStore:
    def test_create_and_conflict(self):
        store = InMemoryAccountStore()
        assert store.create_account("a", "pw") == 1
        assert store.create_account("b", "pw") == 2
        with pytest.raises(AccountConflict):
            store.create_account("a", "other")
        assert len(store) == 2
