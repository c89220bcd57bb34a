# =============================================================================
# ledger/models.py  —  Data Models (the "nouns" of the ledger)
# =============================================================================
#
# These dataclasses define the shape of every record the back office keeps
# and every summary the aggregator hands back.  Records carry no financial
# behavior; the math lives in aggregator.py.
#
# STORED FORMAT:
#   Records are persisted with camelCase keys ("tourId", "paidAmount", ...)
#   so blobs written by earlier versions of the app load unchanged.  Each
#   record has a to_dict()/from_dict() pair for that translation.
#
# LEGACY NUMBERS:
#   Amount fields are typed as RawAmount, not float.  Old blobs hold values
#   such as "400" or "" in those fields.  We keep them as loaded and let
#   sanitize.to_amount() coerce them at the aggregator boundary.
# =============================================================================

from dataclasses import dataclass, field
from typing import Any, Optional, Union


RawAmount = Union[int, float, str, None]

USER_ROLES = ("admin", "staff")
PAYMENT_STATUSES = ("Paid", "Partial", "Unpaid")
EXPENSE_CATEGORIES = ("Transport", "Hotel", "Food", "Guide", "Other")

DEFAULT_TOTAL_SEATS = 20


# -----------------------------------------------------------------------------
# User — an agency account
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class User:
    """An agency owner or staff member.  Owns zero or more tours."""

    id: str
    name: str
    email: str
    role: str = "admin"
    phone: Optional[str] = None
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        data = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "createdAt": self.created_at,
        }
        if self.phone is not None:
            data["phone"] = self.phone
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        return cls(
            id=str(data.get("id", "")),
            name=data.get("name", ""),
            email=data.get("email", ""),
            role=data.get("role", "admin"),
            phone=data.get("phone"),
            created_at=data.get("createdAt", ""),
        )


# -----------------------------------------------------------------------------
# Tour — a bookable travel event
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Tour:
    """A bookable travel event with a fixed per-seat price and seat capacity."""

    id: str
    user_id: str                       # Owner.  Authoritative for scoping.
    tour_name: str
    tour_date: str                     # ISO date: "2024-03-05"
    host_name: str = ""
    total_seats: RawAmount = DEFAULT_TOTAL_SEATS
    price_per_seat: RawAmount = 0
    description: str = ""
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "tourName": self.tour_name,
            "tourDate": self.tour_date,
            "hostName": self.host_name,
            "totalSeats": self.total_seats,
            "pricePerSeat": self.price_per_seat,
            "description": self.description,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Tour":
        return cls(
            id=str(data.get("id", "")),
            user_id=str(data.get("userId", "")),
            tour_name=data.get("tourName", ""),
            tour_date=data.get("tourDate", ""),
            host_name=data.get("hostName", ""),
            total_seats=data.get("totalSeats", DEFAULT_TOTAL_SEATS),
            price_per_seat=data.get("pricePerSeat", 0),
            description=data.get("description", ""),
            created_at=data.get("createdAt", ""),
        )


# -----------------------------------------------------------------------------
# Guest — a booking on one tour
# -----------------------------------------------------------------------------
# payment_status is whatever the operator picked in the form.  It is NOT
# derived from paid_amount, and the two can disagree (a guest marked "Paid"
# who has paid less than the seat price).  Nothing here reconciles them.
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Guest:
    """A booking record tied to one tour, carrying payment progress."""

    id: str
    tour_id: str
    user_id: str                       # Who entered it.  Not used for scoping.
    guest_name: str
    mobile_number: str = ""
    seat_number: str = ""
    paid_amount: RawAmount = 0
    payment_status: str = "Unpaid"
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tourId": self.tour_id,
            "userId": self.user_id,
            "guestName": self.guest_name,
            "mobileNumber": self.mobile_number,
            "seatNumber": self.seat_number,
            "paidAmount": self.paid_amount,
            "paymentStatus": self.payment_status,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Guest":
        return cls(
            id=str(data.get("id", "")),
            tour_id=str(data.get("tourId", "")),
            user_id=str(data.get("userId", "")),
            guest_name=data.get("guestName", ""),
            mobile_number=data.get("mobileNumber", ""),
            seat_number=data.get("seatNumber", ""),
            paid_amount=data.get("paidAmount", 0),
            payment_status=data.get("paymentStatus", "Unpaid"),
            created_at=data.get("createdAt", ""),
        )


# -----------------------------------------------------------------------------
# Expense — money spent running a tour
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Expense:
    """A cost logged against one tour."""

    id: str
    tour_id: str
    user_id: str
    category: str = "Other"
    amount: RawAmount = 0
    note: str = ""
    created_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tourId": self.tour_id,
            "userId": self.user_id,
            "category": self.category,
            "amount": self.amount,
            "note": self.note,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Expense":
        return cls(
            id=str(data.get("id", "")),
            tour_id=str(data.get("tourId", "")),
            user_id=str(data.get("userId", "")),
            category=data.get("category", "Other"),
            amount=data.get("amount", 0),
            note=data.get("note", ""),
            created_at=data.get("createdAt", ""),
        )


# =============================================================================
# Derived summaries
# =============================================================================
# Everything below is produced by aggregator.py.  All money figures are
# floats that have already been through sanitize.to_amount().
# =============================================================================


@dataclass(frozen=True)
class DateRange:
    """Inclusive report window.  Either bound may be None (unbounded)."""

    start: Optional[str] = None        # ISO date
    end: Optional[str] = None          # ISO date


@dataclass(frozen=True)
class TourFinancials:
    """Money picture of a single tour."""

    total_collected: float = 0.0
    total_unpaid: float = 0.0          # Sum of per-guest dues, each clamped at 0
    projected_revenue: float = 0.0     # collected + unpaid (booked seats only)
    total_expenses: float = 0.0
    current_net_profit: float = 0.0
    projected_net_profit: float = 0.0
    guest_count: int = 0
    average_collection_per_seat: int = 0


@dataclass(frozen=True)
class LedgerStats:
    """Totals across a set of tours."""

    total_tours: int = 0
    total_guests: int = 0
    total_income: float = 0.0
    total_expenses: float = 0.0
    net_profit: float = 0.0


@dataclass(frozen=True)
class RangeStats(LedgerStats):
    """LedgerStats for a date window, plus the tours that fell inside it."""

    tours: tuple[Tour, ...] = field(default_factory=tuple)
    guest_count: int = 0


@dataclass(frozen=True)
class GuestDue:
    """One row of the dues monitor."""

    guest_id: str
    guest_name: str
    paid: float
    due: float
    paid_percent: float
    fully_paid: bool


@dataclass(frozen=True)
class SeatOccupancy:
    booked: int
    total_seats: int
    percent: float


@dataclass(frozen=True)
class TourStatement:
    """One row of the detailed tour statements report."""

    tour_id: str
    tour_name: str
    tour_date: str
    guest_count: int
    revenue: float
    expenses: float
    profit: float


@dataclass(frozen=True)
class LedgerSnapshot:
    """Read-only view of one user's collections at a point in time."""

    tours: tuple[Tour, ...] = field(default_factory=tuple)
    guests: tuple[Guest, ...] = field(default_factory=tuple)
    expenses: tuple[Expense, ...] = field(default_factory=tuple)
