# =============================================================================
# ledger/accounts.py  —  Email identity and the session string
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Registers agency accounts, logs them in by email, and remembers who is
#   logged in.
#
# HOW LIGHT IT IS:
#   Identity is an exact email lookup.  No password is stored or checked.
#   The "session" is one string (the email) kept in the key-value backend
#   under SESSION_KEY.  This is single-tenant desk software, not a
#   multi-user service.
# =============================================================================

import logging
from typing import Optional

from ledger.errors import DuplicateEmailError, NotAuthenticatedError, UserNotFoundError
from ledger.models import User
from ledger.persistence import KeyValueStore
from ledger.store import LedgerStore


logger = logging.getLogger(__name__)

SESSION_KEY = "TUC_SESSION_EMAIL"


class AccountService:
    def __init__(self, store: LedgerStore, backend: KeyValueStore):
        self.store = store
        self.backend = backend

    def register(
        self,
        name: str,
        email: str,
        role: str = "admin",
        phone: Optional[str] = None,
    ) -> User:
        """Create an account and start a session for it.

        Raises:
            DuplicateEmailError: the email already has an account.
        """
        if self.store.find_user_by_email(email) is not None:
            raise DuplicateEmailError(f"An account for '{email}' already exists.")
        user = self.store.create_user(name=name, email=email, role=role, phone=phone)
        self.backend.set(SESSION_KEY, user.email)
        return user

    def login(self, email: str) -> User:
        """Start a session for an existing account.

        Raises:
            UserNotFoundError: no account uses this email.
        """
        user = self.store.find_user_by_email(email)
        if user is None:
            raise UserNotFoundError(email)
        self.backend.set(SESSION_KEY, user.email)
        logger.info("Logged in %s", user.email)
        return user

    def logout(self) -> None:
        self.backend.remove(SESSION_KEY)

    def current_user(self) -> Optional[User]:
        """The logged-in user, or None.

        A session naming an email that no longer has an account counts as
        logged out.
        """
        email = self.backend.get(SESSION_KEY)
        if not email:
            return None
        return self.store.find_user_by_email(email)

    def require_user(self) -> User:
        user = self.current_user()
        if user is None:
            raise NotAuthenticatedError("Log in or register first.")
        return user
