# =============================================================================
# tools/mcp_server.py  —  FastMCP Tool Server (ALL ledger tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Exposes the ledger's read-only figures as MCP tools the advisor agent
#   can call.  Each tool is a thin wrapper around ledger/: it opens the
#   store, calls the aggregator, and formats the result as a dict.
#
# HOW IT WORKS (the flow):
#   1. The advisor decides it needs a figure (e.g., one tour's dues)
#   2. It calls a tool by name via MCP (e.g., "get_guest_dues")
#   3. FastMCP routes the call to the decorated function below
#   4. The function re-reads the store, computes, and returns a dict
#
# TOOL NAMING CONVENTIONS:
#   - get_*  → Read-only retrieval (idempotent, safe to retry)
#   - list_* → Read-only listing with an optional filter
#   There are no write tools.  Creating and deleting records happens in the
#   app, never through the agent.
#
# FRESH READS:
#   Every tool opens the store again.  The app may have added a guest since
#   the last call, and nothing here caches figures between calls.
#
# RUNNING THIS SERVER:
#   a) Standalone:  python -m tools.mcp_server
#   b) Launched by the advisor agent over stdio transport
# =============================================================================

import json
import logging
import sys
from dataclasses import asdict

from dotenv import load_dotenv
from fastmcp import FastMCP

# --- Import ledger logic ---
# The tools layer depends on ledger/ and nothing else.
from ledger import aggregator
from ledger.errors import TourNotFoundError
from ledger.models import DateRange
from ledger.persistence import JsonFileKeyValueStore
from ledger.sanitize import to_amount
from ledger.settings import Settings
from ledger.store import LedgerStore

# =============================================================================
# Logging Setup
# =============================================================================
# We log to STDERR because the MCP server talks to the agent over STDOUT.
# A log line on stdout would corrupt the MCP JSON stream.
#
#   CYAN   → incoming requests (tool name + parameters)
#   GREEN  → response JSON
#   YELLOW → intermediate status messages
# =============================================================================

_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"

# Rows returned by list-style tools are capped to keep responses small.
_MAX_ROWS = 20

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [MCP] %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items())
    logging.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logging.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, result: dict) -> dict:
    """Log the tool response as compact JSON in GREEN, then return it."""
    logging.info(f"{_GREEN}  ← {tool_name} response: {json.dumps(result, separators=(',', ':'))}{_RESET}")
    return result


def _open_store() -> LedgerStore:
    settings = Settings.from_env()
    return LedgerStore(JsonFileKeyValueStore(settings.data_file))


def _tour_not_found(tool_name: str, exc: TourNotFoundError) -> dict:
    _log_status(str(exc))
    return _log_response(tool_name, {
        "error": str(exc),
        "hint": "Call list_tours with the user's id to see valid tour ids.",
    })


# =============================================================================
# Create the FastMCP server instance
# =============================================================================
load_dotenv()
mcp = FastMCP("tour-ledger")


# =============================================================================
# TOOL 1: get_global_stats
# =============================================================================
# The dashboard numbers.  The advisor should start here: it says how big the
# business is before drilling into any one tour.
# =============================================================================
@mcp.tool()
def get_global_stats(user_id: str) -> dict:
    """Get the agency-wide totals for one account.

    WHEN TO CALL THIS: First.  These are the headline figures shown on the
    dashboard.

    Args:
        user_id: The account id whose tours should be totalled.

    Returns:
        A dict with:
          - total_tours, total_guests: Counts
          - total_income: Money collected from guests so far
          - total_expenses: Money spent across all tours
          - net_profit: total_income - total_expenses
    """
    _log_request("get_global_stats", user_id=user_id)

    store = _open_store()
    stats = store.global_stats(user_id)
    _log_status(f"{stats.total_tours} tours, {stats.total_guests} guests")
    return _log_response("get_global_stats", asdict(stats))


# =============================================================================
# TOOL 2: list_tours
# =============================================================================
@mcp.tool()
def list_tours(user_id: str, search: str = "") -> dict:
    """List an account's tours with their per-tour statement figures.

    WHEN TO CALL THIS: After get_global_stats, to find which tours drive the
    totals and to get tour ids for the per-tour tools.

    Args:
        user_id: The account id.
        search: Optional text matched against tour name and host name
                (case-insensitive).  Empty returns every tour.

    Returns:
        A dict with:
          - count: Number of matching tours
          - tours: Up to 20 rows of {tour_id, tour_name, tour_date,
            guest_count, revenue, expenses, profit}
          - truncated: True when more tours matched than were returned
    """
    _log_request("list_tours", user_id=user_id, search=search)

    snapshot = _open_store().load_all(user_id)
    matches = aggregator.search_tours(snapshot.tours, search)
    statements = aggregator.build_tour_statements(matches, snapshot.guests, snapshot.expenses)
    _log_status(f"{len(statements)} tours matched")

    return _log_response("list_tours", {
        "count": len(statements),
        "tours": [asdict(s) for s in statements[:_MAX_ROWS]],
        "truncated": len(statements) > _MAX_ROWS,
    })


# =============================================================================
# TOOL 3: get_tour_financials
# =============================================================================
# The tour summary tab: collected vs. due vs. projected.
# =============================================================================
@mcp.tool()
def get_tour_financials(tour_id: str) -> dict:
    """Get the full money picture for one tour.

    WHEN TO CALL THIS: When a specific tour needs explaining (a loss, a lot
    of outstanding dues, low bookings).

    Args:
        tour_id: The tour id (from list_tours).

    Returns:
        A dict with:
          - tour_name, tour_date, price_per_seat
          - total_collected: Paid so far
          - total_unpaid: Outstanding dues (overpayments never offset others)
          - projected_revenue: collected + dues, booked seats only
          - total_expenses
          - current_net_profit, projected_net_profit
          - guest_count, average_collection_per_seat
          - seats: {booked, total_seats, percent}
    """
    _log_request("get_tour_financials", tour_id=tour_id)

    store = _open_store()
    try:
        tour = store.get_tour(tour_id)
    except TourNotFoundError as exc:
        return _tour_not_found("get_tour_financials", exc)

    guests = store.guests_for_tour(tour_id)
    financials = aggregator.compute_tour_financials(tour, guests, store.expenses_for_tour(tour_id))
    occupancy = aggregator.compute_seat_occupancy(tour, guests)
    _log_status(f"collected={financials.total_collected}, unpaid={financials.total_unpaid}")

    result = {
        "tour_name": tour.tour_name,
        "tour_date": tour.tour_date,
        "price_per_seat": to_amount(tour.price_per_seat),
        **asdict(financials),
        "seats": asdict(occupancy),
    }
    return _log_response("get_tour_financials", result)


# =============================================================================
# TOOL 4: get_guest_dues
# =============================================================================
@mcp.tool()
def get_guest_dues(tour_id: str) -> dict:
    """Get who still owes money on a tour.

    WHEN TO CALL THIS: When a tour has a non-zero total_unpaid and the user
    wants to know who to chase.

    Args:
        tour_id: The tour id (from list_tours).

    Returns:
        A dict with:
          - outstanding: Up to 20 guests who still owe, largest due first,
            each {guest_id, guest_name, paid, due, paid_percent, fully_paid}
          - fully_paid_count: Guests with nothing left to pay
    """
    _log_request("get_guest_dues", tour_id=tour_id)

    store = _open_store()
    try:
        tour = store.get_tour(tour_id)
    except TourNotFoundError as exc:
        return _tour_not_found("get_guest_dues", exc)

    dues = aggregator.compute_guest_dues(tour, store.guests_for_tour(tour_id))
    outstanding = sorted((d for d in dues if not d.fully_paid), key=lambda d: d.due, reverse=True)
    _log_status(f"{len(outstanding)} of {len(dues)} guests still owe")

    return _log_response("get_guest_dues", {
        "outstanding": [asdict(d) for d in outstanding[:_MAX_ROWS]],
        "fully_paid_count": len(dues) - len(outstanding),
    })


# =============================================================================
# TOOL 5: get_range_report
# =============================================================================
@mcp.tool()
def get_range_report(user_id: str, start: str = "", end: str = "") -> dict:
    """Get report totals for tours dated inside a window.

    WHEN TO CALL THIS: When the user asks about a period ("last month",
    "this season").  Convert the period to ISO dates first.

    Args:
        user_id: The account id.
        start: First tour date to include (ISO, inclusive).  Empty = no lower bound.
        end: Last tour date to include (ISO, inclusive).  Empty = no upper bound.

    Returns:
        A dict with total_tours, total_guests, total_income, total_expenses,
        net_profit, guest_count and statements (up to 20 per-tour rows).
    """
    _log_request("get_range_report", user_id=user_id, start=start, end=end)

    snapshot = _open_store().load_all(user_id)
    date_range = DateRange(start=start or None, end=end or None)
    report = aggregator.compute_range_filtered_stats(
        snapshot.tours, snapshot.guests, snapshot.expenses, date_range
    )
    statements = aggregator.build_tour_statements(report.tours, snapshot.guests, snapshot.expenses)
    _log_status(f"{report.total_tours} tours in range")

    result = asdict(report)
    # Statement rows carry what the agent needs; full tour records don't.
    result.pop("tours", None)
    result["statements"] = [asdict(s) for s in statements[:_MAX_ROWS]]
    return _log_response("get_range_report", result)


# =============================================================================
# Server entry point
# =============================================================================
if __name__ == "__main__":
    mcp.run()
