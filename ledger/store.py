# =============================================================================
# ledger/store.py  —  The Ledger Store (owned collections + add/delete)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Owns the four collections (users, tours, guests, expenses) and is the
#   only thing that changes them.  Each change is written straight through
#   to the injected KeyValueStore as one JSON blob.
#
# LIFECYCLE:
#   Records are created by create_*() (which assigns the id, created_at and
#   the owner keys) and removed by delete_*().  There is no update.
#
#   delete_tour() removes the tour, its guests and its expenses, then
#   persists once.  No guest or expense can outlive its tour.
#
# READS:
#   load_all(user_id) returns a LedgerSnapshot of immutable tuples.  The
#   aggregator works on snapshots, so it never sees a half-applied change.
# =============================================================================

import json
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from ledger import aggregator
from ledger.errors import TourNotFoundError
from ledger.models import (
    DEFAULT_TOTAL_SEATS,
    EXPENSE_CATEGORIES,
    PAYMENT_STATUSES,
    USER_ROLES,
    DateRange,
    Expense,
    Guest,
    LedgerSnapshot,
    LedgerStats,
    RangeStats,
    RawAmount,
    Tour,
    TourFinancials,
    User,
)
from ledger.persistence import KeyValueStore
from ledger.sanitize import parse_amount


logger = logging.getLogger(__name__)

DATA_KEY = "TUC_DATA_STORE"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _require_non_negative(field: str, value: RawAmount, whole: bool = False) -> None:
    # Only new records are checked; rows loaded from storage pass through.
    number = parse_amount(value)
    if number is None or number < 0:
        raise ValueError(f"{field} must be a non-negative number, got {value!r}")
    if whole and not number.is_integer():
        raise ValueError(f"{field} must be a whole number, got {value!r}")


class LedgerStore:
    """Collections for every account, persisted through a key-value backend.

    Args:
        backend: Where the blob is read from and written to.
        clock: Returns the current time.  Injected so tests get stable ids
            and timestamps.
    """

    def __init__(
        self,
        backend: KeyValueStore,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.backend = backend
        self._clock = clock or _utc_now
        self.users: list[User] = []
        self.tours: list[Tour] = []
        self.guests: list[Guest] = []
        self.expenses: list[Expense] = []
        self.reload()

    # -------------------------------------------------------------------------
    # Blob I/O
    # -------------------------------------------------------------------------
    def reload(self) -> None:
        """Replace the in-memory collections with what the backend holds."""
        raw = self.backend.get(DATA_KEY)
        blob: dict = {}
        if raw:
            try:
                blob = json.loads(raw)
            except json.JSONDecodeError as exc:
                logger.warning("Stored ledger is not valid JSON (%s); starting empty", exc)
                blob = {}
            if not isinstance(blob, dict):
                logger.warning("Stored ledger is not an object; starting empty")
                blob = {}

        def rows(name: str) -> list[dict]:
            items = blob.get(name)
            if items is None:
                return []
            if not isinstance(items, list):
                logger.warning("Stored ledger '%s' is not a list; starting it empty", name)
                return []
            return [item for item in items if isinstance(item, dict)]

        self.users = [User.from_dict(d) for d in rows("users")]
        self.tours = [Tour.from_dict(d) for d in rows("tours")]
        self.guests = [Guest.from_dict(d) for d in rows("guests")]
        self.expenses = [Expense.from_dict(d) for d in rows("expenses")]
        logger.debug(
            "Loaded ledger: %d users, %d tours, %d guests, %d expenses",
            len(self.users), len(self.tours), len(self.guests), len(self.expenses),
        )

    def _commit(self, **changes: list) -> None:
        """Write the collections with ``changes`` applied, then adopt them.

        Memory is only updated once the backend accepted the write, so a
        failed write leaves the store as it was.
        """
        collections = {
            "users": self.users,
            "tours": self.tours,
            "guests": self.guests,
            "expenses": self.expenses,
            **changes,
        }
        blob = {name: [row.to_dict() for row in rows] for name, rows in collections.items()}
        self.backend.set(DATA_KEY, json.dumps(blob))
        for name, rows in changes.items():
            setattr(self, name, rows)

    # -------------------------------------------------------------------------
    # Ids and timestamps
    # -------------------------------------------------------------------------
    def _timestamp(self) -> str:
        return self._clock().isoformat()

    def _new_id(self, prefix: str, existing: list) -> str:
        # "<prefix>_<epoch ms>", bumped past any id already taken.
        taken = {row.id for row in existing}
        millis = int(self._clock().timestamp() * 1000)
        while True:
            candidate = f"{prefix}_{millis}" if prefix else str(millis)
            if candidate not in taken:
                return candidate
            millis += 1

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------
    def find_user_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self.users if u.email == email), None)

    def create_user(
        self,
        name: str,
        email: str,
        role: str = "admin",
        phone: Optional[str] = None,
    ) -> User:
        if role not in USER_ROLES:
            raise ValueError(f"role must be one of {USER_ROLES}, got {role!r}")
        user = User(
            id=self._new_id("", self.users),
            name=name,
            email=email,
            role=role,
            phone=phone,
            created_at=self._timestamp(),
        )
        self._commit(users=[*self.users, user])
        logger.info("Created user %s (%s)", user.id, user.email)
        return user

    # -------------------------------------------------------------------------
    # Tours
    # -------------------------------------------------------------------------
    def get_tour(self, tour_id: str) -> Tour:
        for tour in self.tours:
            if tour.id == tour_id:
                return tour
        raise TourNotFoundError(tour_id)

    def tours_for(self, user_id: str) -> list[Tour]:
        return [t for t in self.tours if t.user_id == user_id]

    def create_tour(
        self,
        user_id: str,
        tour_name: str,
        tour_date: str,
        host_name: str = "",
        total_seats: RawAmount = DEFAULT_TOTAL_SEATS,
        price_per_seat: RawAmount = 0,
        description: str = "",
    ) -> Tour:
        _require_non_negative("total_seats", total_seats, whole=True)
        _require_non_negative("price_per_seat", price_per_seat)
        tour = Tour(
            id=self._new_id("tour", self.tours),
            user_id=user_id,
            tour_name=tour_name,
            tour_date=tour_date,
            host_name=host_name,
            total_seats=total_seats,
            price_per_seat=price_per_seat,
            description=description,
            created_at=self._timestamp(),
        )
        self._commit(tours=[*self.tours, tour])
        logger.info("Created tour %s '%s' on %s", tour.id, tour.tour_name, tour.tour_date)
        return tour

    def delete_tour(self, tour_id: str) -> None:
        """Remove a tour with all of its guests and expenses in one write."""
        guests = [g for g in self.guests if g.tour_id != tour_id]
        expenses = [e for e in self.expenses if e.tour_id != tour_id]
        dropped = (len(self.guests) - len(guests), len(self.expenses) - len(expenses))
        self._commit(
            tours=[t for t in self.tours if t.id != tour_id],
            guests=guests,
            expenses=expenses,
        )
        logger.info("Deleted tour %s (%d guests, %d expenses cascaded)", tour_id, *dropped)

    # -------------------------------------------------------------------------
    # Guests
    # -------------------------------------------------------------------------
    def guests_for_tour(self, tour_id: str) -> list[Guest]:
        return [g for g in self.guests if g.tour_id == tour_id]

    def create_guest(
        self,
        tour_id: str,
        user_id: str,
        guest_name: str,
        mobile_number: str = "",
        seat_number: str = "",
        paid_amount: RawAmount = 0,
        payment_status: str = "Unpaid",
    ) -> Guest:
        self.get_tour(tour_id)
        if payment_status not in PAYMENT_STATUSES:
            raise ValueError(
                f"payment_status must be one of {PAYMENT_STATUSES}, got {payment_status!r}"
            )
        _require_non_negative("paid_amount", paid_amount)
        guest = Guest(
            id=self._new_id("guest", self.guests),
            tour_id=tour_id,
            user_id=user_id,
            guest_name=guest_name,
            mobile_number=mobile_number,
            seat_number=seat_number,
            paid_amount=paid_amount,
            payment_status=payment_status,
            created_at=self._timestamp(),
        )
        self._commit(guests=[*self.guests, guest])
        logger.info("Added guest %s to tour %s", guest.id, tour_id)
        return guest

    def delete_guest(self, guest_id: str) -> None:
        self._commit(guests=[g for g in self.guests if g.id != guest_id])

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------
    def expenses_for_tour(self, tour_id: str) -> list[Expense]:
        return [e for e in self.expenses if e.tour_id == tour_id]

    def create_expense(
        self,
        tour_id: str,
        user_id: str,
        category: str = "Other",
        amount: RawAmount = 0,
        note: str = "",
    ) -> Expense:
        self.get_tour(tour_id)
        if category not in EXPENSE_CATEGORIES:
            raise ValueError(f"category must be one of {EXPENSE_CATEGORIES}, got {category!r}")
        _require_non_negative("amount", amount)
        expense = Expense(
            id=self._new_id("exp", self.expenses),
            tour_id=tour_id,
            user_id=user_id,
            category=category,
            amount=amount,
            note=note,
            created_at=self._timestamp(),
        )
        self._commit(expenses=[*self.expenses, expense])
        logger.info("Logged %s expense %s on tour %s", category, expense.id, tour_id)
        return expense

    def delete_expense(self, expense_id: str) -> None:
        self._commit(expenses=[e for e in self.expenses if e.id != expense_id])

    # -------------------------------------------------------------------------
    # Snapshots and derived figures
    # -------------------------------------------------------------------------
    def load_all(self, user_id: str) -> LedgerSnapshot:
        """Everything one user owns, as immutable tuples.

        Guests and expenses are selected through the user's tours, not by
        their own user_id.
        """
        tours = self.tours_for(user_id)
        tour_ids = {t.id for t in tours}
        return LedgerSnapshot(
            tours=tuple(tours),
            guests=tuple(g for g in self.guests if g.tour_id in tour_ids),
            expenses=tuple(e for e in self.expenses if e.tour_id in tour_ids),
        )

    def global_stats(self, user_id: str) -> LedgerStats:
        return aggregator.compute_global_stats(
            tuple(self.tours), tuple(self.guests), tuple(self.expenses), user_id
        )

    def tour_financials(self, tour_id: str) -> TourFinancials:
        tour = self.get_tour(tour_id)
        return aggregator.compute_tour_financials(
            tour, tuple(self.guests_for_tour(tour_id)), tuple(self.expenses_for_tour(tour_id))
        )

    def range_stats(self, user_id: str, date_range: Optional[DateRange] = None) -> RangeStats:
        snapshot = self.load_all(user_id)
        return aggregator.compute_range_filtered_stats(
            snapshot.tours, snapshot.guests, snapshot.expenses, date_range
        )
