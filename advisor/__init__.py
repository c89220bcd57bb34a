# =============================================================================
# advisor/__init__.py
# =============================================================================
# This package contains the Google ADK agent that talks about the ledger.
#
# ARCHITECTURAL ROLE:
#   The advisor reads figures through the MCP tools (tools/mcp_server.py)
#   and turns them into a few sentences an agency owner can act on.
#
# WHAT THE ADVISOR IS NOT:
#   - It is NOT the financial logic (that's in ledger/aggregator.py)
#   - It does NOT write to the store; every tool it can reach is read-only
#   - It is NOT required: when it fails, the app shows FALLBACK_INSIGHT
# =============================================================================
