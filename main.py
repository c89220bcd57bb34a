# =============================================================================
# main.py  —  Entry Point for the Tour Ledger console
# =============================================================================
#
# HOW TO RUN:
#   python main.py
#
# WHAT HAPPENS:
#   1. Loads .env and builds Settings (ledger/settings.py)
#   2. Opens the store from the JSON data file
#   3. Resumes the saved session, or asks for an email (login / register)
#   4. Prints the dashboard totals, then the advisor's insight
#      (or the fallback line when the advisor is unavailable)
#   5. Runs a small loop:
#        report [START] [END]  → date-range report with per-tour rows
#        logout                → clear the session and exit
#        quit                  → exit
#        anything else         → asked to the advisor agent
# =============================================================================

import asyncio
import logging

from dotenv import load_dotenv

# Must run before Settings.from_env() and before LiteLlm reads API keys.
load_dotenv()

from advisor.insight_agent import AdvisorSession, generate_dashboard_insight
from ledger import aggregator
from ledger.accounts import AccountService
from ledger.errors import UserNotFoundError
from ledger.models import DateRange, LedgerStats, User
from ledger.persistence import JsonFileKeyValueStore
from ledger.settings import Settings
from ledger.store import LedgerStore


def _sign_in(accounts: AccountService) -> User:
    """Resume the saved session, or log in / register by email."""
    user = accounts.current_user()
    if user is not None:
        return user

    email = input("📧 Email: ").strip()
    try:
        return accounts.login(email)
    except UserNotFoundError:
        print("   No account for that email yet. Registering a new one.")
        name = input("🧑 Your name: ").strip() or email
        return accounts.register(name=name, email=email)


def _print_stats(title: str, stats: LedgerStats) -> None:
    print(f"\n📊 {title}")
    print(f"   Tours:     {stats.total_tours}")
    print(f"   Guests:    {stats.total_guests}")
    print(f"   Income:    {stats.total_income:,.2f}")
    print(f"   Expenses:  {stats.total_expenses:,.2f}")
    print(f"   Net:       {stats.net_profit:,.2f}")


def _print_report(store: LedgerStore, user: User, args: list[str]) -> None:
    start = args[0] if len(args) > 0 else None
    end = args[1] if len(args) > 1 else None
    snapshot = store.load_all(user.id)
    report = aggregator.compute_range_filtered_stats(
        snapshot.tours, snapshot.guests, snapshot.expenses, DateRange(start=start, end=end)
    )
    _print_stats(f"Report {start or '…'} to {end or '…'}", report)

    if not report.tours:
        print("   No tour data available for this range.")
        return
    for row in aggregator.build_tour_statements(report.tours, snapshot.guests, snapshot.expenses):
        print(
            f"   • {row.tour_date}  {row.tour_name:<28} guests={row.guest_count:<3} "
            f"revenue={row.revenue:,.2f}  expenses={row.expenses:,.2f}  profit={row.profit:,.2f}"
        )


async def run_console() -> None:
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    backend = JsonFileKeyValueStore(settings.data_file)
    store = LedgerStore(backend)
    accounts = AccountService(store, backend)

    print("=" * 70)
    print("  TOUR LEDGER")
    print("=" * 70)

    user = _sign_in(accounts)
    print(f"\n✅ Signed in as {user.name} ({user.email})")

    stats = store.global_stats(user.id)
    _print_stats("Dashboard", stats)

    insight = await generate_dashboard_insight(stats, user.id, settings)
    print(f"\n💡 {insight}")

    print("\n💬 Commands: report [START] [END] · logout · quit · or ask the advisor anything")
    print("-" * 70)

    advisor = None
    try:
        while True:
            try:
                line = input("\n🧑 > ").strip()
            except (EOFError, KeyboardInterrupt):
                print("\n\n👋 Goodbye!")
                break

            if not line:
                continue

            command, *args = line.split()
            command = command.lower()

            if command in ("quit", "exit", "q"):
                print("\n👋 Goodbye!")
                break
            if command == "logout":
                accounts.logout()
                print("\n👋 Logged out.")
                break
            if command == "report":
                store.reload()
                _print_report(store, user, args)
                continue

            if advisor is None:
                advisor = await AdvisorSession.start(settings, user.id)
            print("\n🤖 Advisor is thinking...")
            answer = await advisor.ask(line)
            if answer:
                print(f"\n🤖 {answer}")
            else:
                print("\n⚠️  No response generated. The advisor may have encountered an error.")
    finally:
        if advisor is not None:
            await advisor.close()


if __name__ == "__main__":
    asyncio.run(run_console())
