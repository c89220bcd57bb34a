# =============================================================================
# advisor/insight_agent.py  —  Google ADK Agent Configuration (with LiteLlm)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Creates the ADK agent that reads the ledger through MCP tools, and wraps
#   it in two calls the app uses:
#
#     generate_dashboard_insight()  →  one or two sentences for the dashboard
#     ask_agent()                   →  a free-form question from the console
#
# HOW IT FITS TOGETHER:
#
#   ┌────────────────────────────────────────────────────────────┐
#   │                     Google ADK Agent                       │
#   │  system prompt ──▶ LLM (LiteLlm) ──▶ MCPToolset (stdio)    │
#   └────────────────────────────────────────────────────────────┘
#                                            │
#                                            ▼
#                               ┌─────────────────────────┐
#                               │ tools/mcp_server.py     │
#                               │ (read-only ledger tools)│
#                               └─────────────────────────┘
#                                            │
#                                            ▼
#                               ┌─────────────────────────┐
#                               │ ledger/ (pure Python)   │
#                               └─────────────────────────┘
#
# THE FALLBACK:
#   The insight is decoration on top of the numbers.  If the advisor is
#   switched off, times out, raises, or answers with nothing, the dashboard
#   shows FALLBACK_INSIGHT instead.  generate_dashboard_insight() never
#   raises, and the stats on screen never wait on it.
# =============================================================================

import asyncio
import logging
import os
import sys
from typing import Awaitable, Callable, Optional

from google.adk.agents import Agent
from google.adk.models.lite_llm import LiteLlm
from google.adk.runners import Runner
from google.adk.sessions import InMemorySessionService
from google.adk.tools.mcp_tool import MCPToolset
from google.genai import types
from mcp import StdioServerParameters

from advisor.prompt import build_insight_request, get_advisor_prompt
from ledger.models import LedgerStats
from ledger.settings import Settings


logger = logging.getLogger(__name__)

APP_NAME = "tour_ledger"

FALLBACK_INSIGHT = (
    "Collect outstanding dues before each tour date and log expenses as they "
    "happen, so projected profit stays close to what you actually bank."
)

AskFn = Callable[[str], Awaitable[str]]


def create_toolset(settings: Settings) -> MCPToolset:
    """Connect to the ledger tool server.

    The MCP server is started as a subprocess of this interpreter
    (``python -m tools.mcp_server``) from the project root.  The subprocess
    gets the full environment, with the data file made absolute, so it
    reads the same store as the app.

    The caller owns the returned toolset and must ``await toolset.close()``
    to stop the subprocess.
    """
    project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

    # The MCP stdio client passes only a minimal environment by default;
    # the server needs ours to find the data file and API keys.
    server_env = dict(os.environ)
    server_env["TOUR_LEDGER_DATA_FILE"] = os.path.abspath(settings.data_file)

    return MCPToolset(
        connection_params=StdioServerParameters(
            command=sys.executable,
            args=["-m", "tools.mcp_server"],
            cwd=project_root,
            env=server_env,
        ),
    )


def create_agent(settings: Settings, toolset: MCPToolset) -> Agent:
    """Create the ledger advisor agent on top of an open toolset."""
    return Agent(
        name="tour_ledger_advisor",
        model=LiteLlm(model=settings.model),
        instruction=get_advisor_prompt(),
        tools=[toolset],
    )


class AdvisorSession:
    """One conversation with the advisor: agent, runner and ADK session.

    Use ``await AdvisorSession.start(settings, user_id)``, then ``ask()`` as
    many times as needed, and ``await close()`` when done.
    """

    def __init__(self, runner: Runner, session, user_id: str, toolset: MCPToolset):
        self.runner = runner
        self.session = session
        self.user_id = user_id
        self.toolset = toolset

    @classmethod
    async def start(cls, settings: Settings, user_id: str) -> "AdvisorSession":
        toolset = create_toolset(settings)
        session_service = InMemorySessionService()
        runner = Runner(
            agent=create_agent(settings, toolset),
            app_name=APP_NAME,
            session_service=session_service,
        )
        session = await session_service.create_session(app_name=APP_NAME, user_id=user_id)
        return cls(runner, session, user_id, toolset)

    async def ask(self, text: str) -> str:
        return await ask_agent(self.runner, self.session, self.user_id, text)

    async def close(self) -> None:
        """Stop the tool server subprocess."""
        await self.toolset.close()


async def ask_agent(runner: Runner, session, user_id: str, text: str) -> str:
    """Send one message and return the agent's last text reply.

    Tool calls made along the way are logged at INFO.  Returns "" if the
    agent produced no text.
    """
    message = types.Content(role="user", parts=[types.Part(text=text)])

    final_text = ""
    async for event in runner.run_async(
        user_id=user_id,
        session_id=session.id,
        new_message=message,
    ):
        if not (event.content and event.content.parts):
            continue
        for part in event.content.parts:
            if getattr(part, "text", None):
                final_text = part.text
            if getattr(part, "function_call", None):
                logger.info("Advisor called tool: %s", part.function_call.name)

    return final_text.strip()


async def generate_dashboard_insight(
    stats: LedgerStats,
    user_id: str,
    settings: Settings,
    ask: Optional[AskFn] = None,
) -> str:
    """Return a short insight for the dashboard, or FALLBACK_INSIGHT.

    Args:
        stats: The headline totals already on screen.
        user_id: Whose ledger the advisor may read.
        settings: Controls whether the call happens and how long it may take.
        ask: Sends one prompt and returns the reply.  Defaults to a fresh
            AdvisorSession; tests pass a stub.

    Returns:
        The advisor's text, or FALLBACK_INSIGHT when disabled, failed,
        timed out, or empty.  Never raises.
    """
    if not settings.insight_enabled:
        logger.info("Advisor insight disabled; using fallback")
        return FALLBACK_INSIGHT

    async def _default_ask(text: str) -> str:
        advisor = await AdvisorSession.start(settings, user_id)
        try:
            return await advisor.ask(text)
        finally:
            # Also runs when wait_for cancels the call on timeout.
            await advisor.close()

    ask = ask or _default_ask
    request = build_insight_request(stats, user_id)

    try:
        reply = await asyncio.wait_for(ask(request), timeout=settings.insight_timeout_seconds)
    except asyncio.TimeoutError:
        logger.warning(
            "Advisor insight timed out after %.0fs; using fallback",
            settings.insight_timeout_seconds,
        )
        return FALLBACK_INSIGHT
    except Exception:
        logger.warning("Advisor insight failed; using fallback", exc_info=True)
        return FALLBACK_INSIGHT

    reply = (reply or "").strip()
    if not reply:
        logger.info("Advisor returned no text; using fallback")
        return FALLBACK_INSIGHT
    return reply
