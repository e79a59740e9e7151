"""Lore Agent - the tool-use loop behind Lore conversations.

A turn drives the model until it stops asking for tools:

- ``pause_turn``: the provider paused a long server-side step (web search);
  the partial response is echoed back and the model is called again.
- ``tool_use``: every requested tool runs in order and all results go back
  in one user message.
- ``end_turn``: the text blocks form the answer.
- anything else ends the turn with no answer.

Whatever happens, the turn writes exactly one assistant message to the
transcript, so the UI never waits on a turn that silently died.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..models.llm import ModelResponse
from ..models.lore import ToolCallRecord, TranscriptMessage
from .config import AppConfig, get_config
from .model_provider import ModelProvider, get_model_provider
from .prompt_loader import PromptLoader
from .tool_executor import WEB_SEARCH_TOOL, ToolExecutor, get_tool_executor
from .transcript_service import TranscriptService, get_transcript_service

logger = logging.getLogger(__name__)

ERROR_MESSAGE_TEMPLATE = "Sorry, I ran into an error: {error}"
ROUND_LIMIT_MESSAGE = (
    "Sorry, I couldn't finish this request: it needed more steps than I'm allowed "
    "in a single turn. Try breaking it into smaller requests."
)
TITLE_MAX_TOKENS = 20
TITLE_SOURCE_CHARS = 100


class LoopState(str, Enum):
    AWAITING_MODEL = "awaiting_model"
    EXECUTING_TOOLS = "executing_tools"
    DONE = "done"
    FAILED = "failed"


@dataclass
class TurnResult:
    """Outcome of one Lore turn."""

    state: LoopState = LoopState.AWAITING_MODEL
    content: str = ""
    thinking: Optional[str] = None
    tool_calls: List[ToolCallRecord] = field(default_factory=list)
    failure_reason: Optional[str] = None
    rounds: int = 0
    message: Optional[TranscriptMessage] = None


def _web_search_output(result_block: Dict[str, Any], query: Any) -> Dict[str, Any]:
    content = result_block.get("content")
    if isinstance(content, dict):
        # web_search_tool_result_error
        return {"query": query, "results": [], "error": content.get("error_code", "unknown")}

    results = []
    for item in content if isinstance(content, list) else []:
        if not isinstance(item, dict):
            continue
        page_age = item.get("page_age")
        results.append(
            {
                "title": item.get("title"),
                "url": item.get("url"),
                "snippet": f"Updated: {page_age}" if page_age else None,
            }
        )
    return {"query": query, "results": results}


def collect_web_searches(
    response: ModelResponse,
    pending: Dict[str, Dict[str, Any]],
) -> List[ToolCallRecord]:
    """Pair server-side web searches with their results.

    ``pending`` carries searches whose result has not been seen yet, so a
    search split across a ``pause_turn`` boundary is still recorded.
    """
    records: List[ToolCallRecord] = []
    for block in response.content:
        block_type = block.get("type")
        if block_type == "server_tool_use" and block.get("name") == WEB_SEARCH_TOOL:
            pending[block.get("id")] = block
        elif block_type == "web_search_tool_result":
            call = pending.pop(block.get("tool_use_id"), None)
            if call is None:
                continue
            tool_input = call.get("input") or {}
            records.append(
                ToolCallRecord(
                    tool_name=WEB_SEARCH_TOOL,
                    input=tool_input,
                    output=_web_search_output(block, tool_input.get("query")),
                    duration_ms=0,
                )
            )
    return records


class LoreAgent:
    """Runs Lore turns against a model provider and the note tools."""

    def __init__(
        self,
        provider: Optional[ModelProvider] = None,
        tool_executor: Optional[ToolExecutor] = None,
        transcripts: Optional[TranscriptService] = None,
        prompt_loader: Optional[PromptLoader] = None,
        config: Optional[AppConfig] = None,
    ) -> None:
        self.config = config or get_config()
        self.provider = provider or get_model_provider()
        self.tool_executor = tool_executor or get_tool_executor()
        self.transcripts = transcripts or get_transcript_service()
        self.prompt_loader = prompt_loader or PromptLoader()

    @staticmethod
    def _build_messages(history: List[TranscriptMessage], user_message: str) -> List[Dict[str, Any]]:
        # Empty assistant messages (silent stops) are not valid provider input
        messages: List[Dict[str, Any]] = [
            {"role": message.role, "content": message.content}
            for message in history
            if message.content.strip()
        ]
        messages.append({"role": "user", "content": user_message})
        return messages

    async def run_turn(self, session_id: str, user_message: str) -> TurnResult:
        """Run one user turn to completion and persist the assistant reply.

        Args:
            session_id: Lore session the turn belongs to
            user_message: The user's new message

        Returns:
            TurnResult with the final state and the persisted assistant message
        """
        result = TurnResult()
        thinking_parts: List[str] = []
        first_exchange = False

        try:
            history = self.transcripts.list_messages(session_id)
            first_exchange = not history
            messages = self._build_messages(history, user_message)
            self.transcripts.add_message(session_id, "user", user_message)

            await self._run_loop(session_id, messages, result, thinking_parts)
        except Exception as e:
            logger.exception(
                f"Lore turn failed: {e}",
                extra={"session_id": session_id, "rounds": result.rounds},
            )
            result.state = LoopState.FAILED
            result.failure_reason = "error"
            result.content = ERROR_MESSAGE_TEMPLATE.format(error=str(e))

        result.thinking = "\n\n".join(thinking_parts) or None

        if result.state is LoopState.DONE and first_exchange:
            await self._generate_title(session_id, user_message)

        result.message = self.transcripts.add_message(
            session_id,
            "assistant",
            result.content,
            thinking_content=result.thinking,
            tool_calls=result.tool_calls or None,
        )
        logger.info(
            f"Lore turn finished: {result.state.value}",
            extra={
                "session_id": session_id,
                "rounds": result.rounds,
                "tool_calls": len(result.tool_calls),
                "failure_reason": result.failure_reason,
            },
        )
        return result

    async def _run_loop(
        self,
        session_id: str,
        messages: List[Dict[str, Any]],
        result: TurnResult,
        thinking_parts: List[str],
    ) -> None:
        system_prompt = self.prompt_loader.load(
            "lore/system.md", {"web_search": self.config.enable_web_search}
        )
        tools = self.tool_executor.get_tool_schemas(
            enable_web_search=self.config.enable_web_search,
            web_search_max_uses=self.config.web_search_max_uses,
        )
        pending_searches: Dict[str, Dict[str, Any]] = {}

        while result.rounds < self.config.max_rounds:
            result.state = LoopState.AWAITING_MODEL
            result.rounds += 1
            logger.debug(f"Lore round {result.rounds}/{self.config.max_rounds}")

            response = await self.provider.create_message(
                system=system_prompt,
                messages=messages,
                tools=tools,
                max_tokens=self.config.max_tokens,
            )
            if response.thinking:
                thinking_parts.append(response.thinking)
            result.tool_calls.extend(collect_web_searches(response, pending_searches))

            if response.stop_reason == "pause_turn":
                messages.append({"role": "assistant", "content": response.content})
                continue

            if response.stop_reason == "end_turn":
                result.content = response.text
                result.state = LoopState.DONE
                return

            if response.stop_reason == "tool_use":
                messages.append({"role": "assistant", "content": response.content})
                result.state = LoopState.EXECUTING_TOOLS
                tool_results = await self._execute_tools(session_id, response.tool_uses, result)
                messages.append({"role": "user", "content": tool_results})
                continue

            logger.warning(
                f"Unexpected stop reason: {response.stop_reason}",
                extra={"session_id": session_id, "rounds": result.rounds},
            )
            result.state = LoopState.FAILED
            result.failure_reason = "unexpected_stop_reason"
            return

        logger.warning(
            f"Lore turn hit the round limit ({self.config.max_rounds})",
            extra={"session_id": session_id},
        )
        result.state = LoopState.FAILED
        result.failure_reason = "round_limit_exceeded"
        result.content = ROUND_LIMIT_MESSAGE

    async def _execute_tools(
        self,
        session_id: str,
        tool_uses: List[Dict[str, Any]],
        result: TurnResult,
    ) -> List[Dict[str, Any]]:
        """Run tool calls one at a time, in the order the model asked for them.

        Later calls see the effects of earlier ones in the same batch.
        """
        tool_results: List[Dict[str, Any]] = []
        for block in tool_uses:
            name = block.get("name", "unknown")
            tool_input = block.get("input") or {}

            started = time.perf_counter()
            try:
                output: Any = await self.tool_executor.execute(name, tool_input, session_id=session_id)
            except Exception as e:
                logger.exception(f"Tool execution failed: {name}")
                output = {"error": str(e)}
            duration_ms = int((time.perf_counter() - started) * 1000)

            result.tool_calls.append(
                ToolCallRecord(tool_name=name, input=tool_input, output=output, duration_ms=duration_ms)
            )

            tool_result: Dict[str, Any] = {
                "type": "tool_result",
                "tool_use_id": block.get("id"),
                "content": json.dumps(output, default=str),
            }
            if isinstance(output, dict) and "error" in output:
                tool_result["is_error"] = True
            tool_results.append(tool_result)

        return tool_results

    async def _generate_title(self, session_id: str, user_message: str) -> None:
        """Name the session after its opening message. Best effort, never retried."""
        try:
            prompt = self.prompt_loader.load(
                "lore/title.md", {"message": user_message[:TITLE_SOURCE_CHARS]}
            )
            title = await self.provider.generate_text(
                prompt.strip(),
                max_tokens=TITLE_MAX_TOKENS,
                model=self.config.title_model,
            )
            title = title.strip().strip('"').strip()
            if title:
                self.transcripts.rename_session(session_id, title)
        except Exception as e:
            logger.warning(f"Title generation failed for session {session_id}: {e}")


# Singleton instance for dependency injection
_lore_agent: Optional[LoreAgent] = None


def get_lore_agent() -> LoreAgent:
    """Get or create the Lore agent singleton."""
    global _lore_agent
    if _lore_agent is None:
        _lore_agent = LoreAgent()
    return _lore_agent


__all__ = [
    "LoopState",
    "TurnResult",
    "LoreAgent",
    "collect_web_searches",
    "get_lore_agent",
    "ERROR_MESSAGE_TEMPLATE",
    "ROUND_LIMIT_MESSAGE",
]
