# =============================================================================
# ledger/aggregator.py  —  Financial Aggregation (the heart of the ledger)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Derives every money figure the back office shows: per-tour financials,
#   per-user totals, date-range reports, the dues monitor and the per-tour
#   statement rows.
#
# RULES THAT HOLD EVERYWHERE:
#   - Pure functions.  No I/O, no caching, no mutation of the inputs.
#     Each call recomputes from the collections it is given.
#   - Every stored number passes through sanitize.to_amount() first.
#   - Nothing here raises.  Empty inputs give zeros, and every division
#     is guarded.
#   - Guests and expenses are attached to tours by tour_id only.  The
#     user_id on a guest or expense row is never used for ownership.
#
# DUES:
#   A guest's due is max(0, price_per_seat - paid_amount).  The clamp is
#   applied per guest BEFORE summing, so one guest who overpaid never hides
#   another guest's shortfall.
#
#   projected_revenue = collected + dues.  It covers booked seats only;
#   empty seats (total_seats - guests) are not counted.
# =============================================================================

from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ledger.models import (
    DateRange,
    Expense,
    Guest,
    GuestDue,
    LedgerStats,
    RangeStats,
    SeatOccupancy,
    Tour,
    TourFinancials,
    TourStatement,
)
from ledger.sanitize import js_round, to_amount, to_count


# -----------------------------------------------------------------------------
# Small reducers
# -----------------------------------------------------------------------------
def _sum_paid(guests: Iterable[Guest]) -> float:
    return sum((to_amount(g.paid_amount) for g in guests), 0.0)


def _sum_expenses(expenses: Iterable[Expense]) -> float:
    return sum((to_amount(e.amount) for e in expenses), 0.0)


def _guest_due(price_per_seat: float, guest: Guest) -> float:
    return max(0.0, price_per_seat - to_amount(guest.paid_amount))


def _belonging_to(rows, tour_ids: set[str]) -> list:
    return [row for row in rows if row.tour_id in tour_ids]


# =============================================================================
# Per-tour figures
# =============================================================================
def compute_tour_financials(
    tour: Tour,
    guests: Sequence[Guest],
    expenses: Sequence[Expense],
) -> TourFinancials:
    """Compute the money picture for one tour.

    Rows for other tours may be passed in; they are filtered out by
    tour_id, so callers can hand over a whole user's collections.

    Args:
        tour: The tour being summarised.
        guests: Guest rows (any tour).
        expenses: Expense rows (any tour).

    Returns:
        A TourFinancials.  With no guests every guest-derived figure is 0,
        including average_collection_per_seat.

    Example:
        price 1000, guests paid 1000 / 400 / 1200, one expense of 500:
          collected 2600, unpaid 600, projected 3200,
          current profit 2100, projected profit 2700.
    """
    price = to_amount(tour.price_per_seat)
    tour_guests = [g for g in guests if g.tour_id == tour.id]
    tour_expenses = [e for e in expenses if e.tour_id == tour.id]

    total_collected = _sum_paid(tour_guests)
    total_unpaid = sum((_guest_due(price, g) for g in tour_guests), 0.0)
    projected_revenue = total_collected + total_unpaid
    total_expenses = _sum_expenses(tour_expenses)

    guest_count = len(tour_guests)
    average = js_round(total_collected / guest_count) if guest_count else 0

    return TourFinancials(
        total_collected=total_collected,
        total_unpaid=total_unpaid,
        projected_revenue=projected_revenue,
        total_expenses=total_expenses,
        current_net_profit=total_collected - total_expenses,
        projected_net_profit=projected_revenue - total_expenses,
        guest_count=guest_count,
        average_collection_per_seat=average,
    )


def compute_guest_dues(tour: Tour, guests: Sequence[Guest]) -> list[GuestDue]:
    """Build the dues monitor: one row per guest on the tour, in input order.

    paid_percent is capped at 100.  A tour priced at 0 has nothing to owe,
    so every guest on it reports 100.
    """
    price = to_amount(tour.price_per_seat)
    rows = []
    for guest in guests:
        if guest.tour_id != tour.id:
            continue
        paid = to_amount(guest.paid_amount)
        due = _guest_due(price, guest)
        if price > 0:
            percent = min(100.0, max(0.0, paid * 100.0 / price))
        else:
            percent = 100.0
        rows.append(GuestDue(
            guest_id=guest.id,
            guest_name=guest.guest_name,
            paid=paid,
            due=due,
            paid_percent=percent,
            fully_paid=due == 0,
        ))
    return rows


def compute_seat_occupancy(tour: Tour, guests: Sequence[Guest]) -> SeatOccupancy:
    """Booked seats against capacity.  percent is capped at 100."""
    booked = sum(1 for g in guests if g.tour_id == tour.id)
    total_seats = to_count(tour.total_seats)
    percent = min(100.0, booked * 100.0 / total_seats) if total_seats else 0.0
    return SeatOccupancy(booked=booked, total_seats=total_seats, percent=percent)


# =============================================================================
# Multi-tour figures
# =============================================================================
def _stats_for(
    tours: Sequence[Tour],
    guests: Sequence[Guest],
    expenses: Sequence[Expense],
) -> tuple[list[Guest], LedgerStats]:
    tour_ids = {t.id for t in tours}
    member_guests = _belonging_to(guests, tour_ids)
    member_expenses = _belonging_to(expenses, tour_ids)

    total_income = _sum_paid(member_guests)
    total_expenses = _sum_expenses(member_expenses)

    stats = LedgerStats(
        total_tours=len(tours),
        total_guests=len(member_guests),
        total_income=total_income,
        total_expenses=total_expenses,
        net_profit=total_income - total_expenses,
    )
    return member_guests, stats


def compute_global_stats(
    tours: Sequence[Tour],
    guests: Sequence[Guest],
    expenses: Sequence[Expense],
    user_id: str,
) -> LedgerStats:
    """Totals for everything a user owns.

    Tours are filtered by owner first.  Guests and expenses count when their
    tour_id is one of those tours; their own user_id is ignored.
    Zero tours gives LedgerStats() (all zeros).
    """
    owned = [t for t in tours if t.user_id == user_id]
    _, stats = _stats_for(owned, guests, expenses)
    return stats


def _normalise_bound(value) -> Optional[str]:
    # Accepts a date, a datetime, an ISO string, or blank.
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    return text or None


def filter_tours_by_date(tours: Sequence[Tour], date_range: DateRange) -> list[Tour]:
    """Keep tours whose date falls inside the inclusive window.

    ISO dates compare correctly as strings, so no parsing is needed.
    """
    start = _normalise_bound(date_range.start)
    end = _normalise_bound(date_range.end)
    selected = []
    for tour in tours:
        tour_date = str(tour.tour_date or "")
        if start is not None and not tour_date >= start:
            continue
        if end is not None and not tour_date <= end:
            continue
        selected.append(tour)
    return selected


def compute_range_filtered_stats(
    tours: Sequence[Tour],
    guests: Sequence[Guest],
    expenses: Sequence[Expense],
    date_range: Optional[DateRange] = None,
) -> RangeStats:
    """Report totals for the tours inside a date window.

    Both bounds are optional and inclusive.  No bounds returns every tour.
    An empty window is not an error; it yields zeros and an empty tours tuple.
    """
    selected = filter_tours_by_date(tours, date_range or DateRange())
    member_guests, stats = _stats_for(selected, guests, expenses)
    return RangeStats(
        total_tours=stats.total_tours,
        total_guests=stats.total_guests,
        total_income=stats.total_income,
        total_expenses=stats.total_expenses,
        net_profit=stats.net_profit,
        tours=tuple(selected),
        guest_count=len(member_guests),
    )


def build_tour_statements(
    tours: Sequence[Tour],
    guests: Sequence[Guest],
    expenses: Sequence[Expense],
) -> list[TourStatement]:
    """One statement row per tour: guests, revenue, expenses, profit."""
    statements = []
    for tour in tours:
        tour_guests = [g for g in guests if g.tour_id == tour.id]
        revenue = _sum_paid(tour_guests)
        cost = _sum_expenses(e for e in expenses if e.tour_id == tour.id)
        statements.append(TourStatement(
            tour_id=tour.id,
            tour_name=tour.tour_name,
            tour_date=tour.tour_date,
            guest_count=len(tour_guests),
            revenue=revenue,
            expenses=cost,
            profit=revenue - cost,
        ))
    return statements


def search_tours(tours: Sequence[Tour], term: str = "") -> list[Tour]:
    """Case-insensitive substring match on tour name or host name."""
    needle = (term or "").strip().lower()
    if not needle:
        return list(tours)
    return [
        t for t in tours
        if needle in (t.tour_name or "").lower() or needle in (t.host_name or "").lower()
    ]
