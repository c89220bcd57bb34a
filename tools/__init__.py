# =============================================================================
# tools/__init__.py
# =============================================================================
# This package contains the FastMCP tool server.
#
# ARCHITECTURAL ROLE:
#   tools/ is the translation layer between the advisor agent and ledger/.
#   Each tool:
#     1. Opens the store and reads a fresh snapshot
#     2. Calls a pure function from ledger/aggregator.py
#     3. Converts dataclasses → dicts for JSON
#     4. Caps list output so responses stay small
#
# WHAT TOOLS DO NOT DO:
#   - They do NOT compute money figures themselves (ledger/ does)
#   - They do NOT write to the store
#   - They do NOT know about Google ADK
# =============================================================================
