# =============================================================================
# ledger/__init__.py
# =============================================================================
# This package contains ALL business logic for the tour ledger.
#
# ARCHITECTURAL RULE:
#   Nothing in this package imports Google ADK, FastMCP, or any orchestration
#   framework.  Every module here is plain Python and can be imported in a
#   bare REPL with no network access.
#
#   models.py      →  the nouns (users, tours, guests, expenses, summaries)
#   sanitize.py    →  the single place legacy numbers are coerced
#   aggregator.py  →  pure financial derivations
#   persistence.py →  key-value backends
#   store.py       →  the owned collections + add/delete
#   accounts.py    →  email identity and the session string
#   settings.py    →  environment-driven configuration
# =============================================================================
