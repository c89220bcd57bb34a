"""Errors raised by the store and account layers.

The aggregator never raises; these cover lookups and writes only.
"""


class LedgerError(Exception):
    """Base class for ledger failures."""


class TourNotFoundError(LedgerError, KeyError):
    def __init__(self, tour_id: str):
        super().__init__(tour_id)
        self.tour_id = tour_id

    def __str__(self) -> str:
        return f"Tour '{self.tour_id}' not found."


class UserNotFoundError(LedgerError, KeyError):
    def __init__(self, email: str):
        super().__init__(email)
        self.email = email

    def __str__(self) -> str:
        return f"No account registered for '{self.email}'."


class DuplicateEmailError(LedgerError, ValueError):
    pass


class NotAuthenticatedError(LedgerError):
    pass
