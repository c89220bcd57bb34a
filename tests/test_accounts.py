from __future__ import annotations

import pytest

from ledger.accounts import SESSION_KEY, AccountService
from ledger.errors import DuplicateEmailError, NotAuthenticatedError, UserNotFoundError
from ledger.store import LedgerStore


def test_register_creates_user_and_session(accounts, backend) -> None:
    user = accounts.register("Owner", "owner@example.com")

    assert user.id == "1704099600000"
    assert user.role == "admin"
    assert backend.get(SESSION_KEY) == "owner@example.com"
    assert accounts.current_user() == user


def test_register_rejects_duplicate_email(accounts) -> None:
    accounts.register("Owner", "owner@example.com")
    with pytest.raises(DuplicateEmailError):
        accounts.register("Someone", "owner@example.com")


def test_login_unknown_email(accounts) -> None:
    with pytest.raises(UserNotFoundError):
        accounts.login("ghost@example.com")
    assert accounts.current_user() is None


def test_login_is_exact_email_match(accounts) -> None:
    accounts.register("Owner", "owner@example.com")
    accounts.logout()

    with pytest.raises(UserNotFoundError):
        accounts.login("Owner@Example.com")
    assert accounts.login("owner@example.com").name == "Owner"


def test_logout_clears_session(accounts) -> None:
    accounts.register("Owner", "owner@example.com")

    accounts.logout()

    assert accounts.current_user() is None
    with pytest.raises(NotAuthenticatedError):
        accounts.require_user()


def test_session_survives_reopening(accounts, backend, clock) -> None:
    user = accounts.register("Owner", "owner@example.com")

    reopened = AccountService(LedgerStore(backend, clock=clock), backend)

    assert reopened.require_user() == user
