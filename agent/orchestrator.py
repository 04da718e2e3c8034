"""
Streaming tool-calling agent.

One turn alternates between an ``agent`` step, which streams the chat model
over the running message list, and a ``tools`` step, which executes every
tool call the model asked for. The turn ends when the model answers without
tool calls or the iteration guard trips.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)
from langchain_ollama import ChatOllama

from knowledge_manager.core.config import Config
from knowledge_manager.core.exceptions import MalformedContentError
from knowledge_manager.core.models import AgentResponse
from retrieval.results import ErrorResult, ToolResult, parse_tool_result, to_json

from .citations import extract_citations
from .memory import ConversationMemoryStore, HistoryLoader
from .prompts import SERVICE_UNAVAILABLE_MESSAGE, SYSTEM_PROMPT

logger = logging.getLogger(__name__)

TokenCallback = Callable[[str], None]


@dataclass
class GraphRun:
    """Outcome of running the agent/tools loop once."""
    final: Optional[AIMessage] = None
    results: List[ToolResult] = field(default_factory=list)


def _text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            part if isinstance(part, str) else part.get("text", "")
            for part in content
            if isinstance(part, (str, dict))
        )
    return ""


def build_chat_model(config: Config) -> ChatOllama:
    return ChatOllama(
        model=config.CHAT_MODEL,
        base_url=config.CHAT_BASE_URL,
        temperature=config.CHAT_TEMPERATURE,
        client_kwargs={"timeout": config.MODEL_TIMEOUT_SECONDS},
    )


class AgentOrchestrator:
    """Run chat turns against the user's connected sources.

    Parameters
    ----------
    model : Any
        Chat model supporting ``bind_tools``; the bound model must offer
        ``stream`` and ``invoke``.
    memory : ConversationMemoryStore
        Holds per-conversation history between turns.
    tools_factory : Callable[[str], Sequence[Any]]
        Builds the LangChain tools bound to one user.
    history_loader : Optional[HistoryLoader]
        Reads persisted messages for a conversation the first time it is seen.
    max_iterations : int
        Upper bound on agent steps per graph run.
    """

    def __init__(
        self,
        model: Any,
        memory: ConversationMemoryStore,
        tools_factory: Callable[[str], Sequence[Any]],
        history_loader: Optional[HistoryLoader] = None,
        max_iterations: int = 25,
    ) -> None:
        self.model = model
        self.memory = memory
        self.tools_factory = tools_factory
        self.history_loader = history_loader
        self.max_iterations = max_iterations

    # ------------------------------------------------------------------
    def _agent_step(self, bound: Any, messages: List[BaseMessage],
                    on_token: Optional[TokenCallback]) -> AIMessage:
        if on_token is None:
            response = bound.invoke(messages)
            return AIMessage(content=response.content, tool_calls=getattr(response, "tool_calls", []) or [])

        aggregate = None
        for chunk in bound.stream(messages):
            token = chunk.content
            if isinstance(token, str) and token:
                on_token(token)
            aggregate = chunk if aggregate is None else aggregate + chunk
        if aggregate is None:
            return AIMessage(content="")
        return AIMessage(content=aggregate.content, tool_calls=aggregate.tool_calls or [])

    def _tools_step(self, tools_by_name: Dict[str, Any], ai_message: AIMessage,
                    results: List[ToolResult]) -> List[ToolMessage]:
        tool_messages = []
        for call in ai_message.tool_calls:
            name = call["name"]
            tool = tools_by_name.get(name)
            if tool is None:
                output = to_json(ErrorResult(f"Unknown tool: {name}"))
            else:
                try:
                    output = tool.invoke(call.get("args") or {})
                except Exception as exc:
                    logger.error(f"Tool {name} raised: {exc}", exc_info=True)
                    output = to_json(ErrorResult(f"Tool {name} failed: {exc}"))
            if not isinstance(output, str):
                output = str(output)

            artifact = None
            try:
                artifact = parse_tool_result(name, output)
                results.append(artifact)
            except MalformedContentError as exc:
                logger.warning(f"Ignoring malformed output from {name}: {exc}")

            tool_messages.append(
                ToolMessage(content=output, tool_call_id=call.get("id") or name, name=name, artifact=artifact)
            )
        return tool_messages

    def _run_graph(self, bound: Any, tools_by_name: Dict[str, Any], messages: List[BaseMessage],
                   on_token: Optional[TokenCallback]) -> GraphRun:
        run = GraphRun()
        for iteration in range(self.max_iterations):
            ai_message = self._agent_step(bound, messages, on_token)
            messages.append(ai_message)
            run.final = ai_message
            if not ai_message.tool_calls:
                return run
            messages.extend(self._tools_step(tools_by_name, ai_message, run.results))
        logger.warning(f"Agent stopped after {self.max_iterations} iterations without a final answer")
        return run

    # ------------------------------------------------------------------
    def run_turn(self, user_message: str, user_id: str, conversation_id: str,
                 on_token: Optional[TokenCallback] = None) -> AgentResponse:
        """Answer one user message, streaming tokens through ``on_token``."""
        on_token = on_token or (lambda token: None)

        try:
            self.memory.ensure_initialized(conversation_id, self.history_loader)
        except Exception as exc:
            logger.error(f"Could not load history for conversation {conversation_id}: {exc}", exc_info=True)

        human = HumanMessage(content=user_message)
        base: List[BaseMessage] = [SystemMessage(content=SYSTEM_PROMPT), *self.memory.get(conversation_id), human]

        tools = list(self.tools_factory(user_id))
        tools_by_name = {t.name: t for t in tools}
        streamed: List[str] = []

        def emit(token: str) -> None:
            streamed.append(token)
            on_token(token)

        try:
            bound = self.model.bind_tools(tools)
            run = self._run_graph(bound, tools_by_name, list(base), emit)
            results = list(run.results)
            if streamed:
                content = "".join(streamed)
            else:
                # Nothing streamed; produce the answer with a blocking run
                fallback = self._run_graph(bound, tools_by_name, list(base), None)
                results.extend(fallback.results)
                content = _text(fallback.final.content) if fallback.final else ""
                if content:
                    on_token(content)
        except Exception as exc:
            logger.error(f"Chat model call failed for conversation {conversation_id}: {exc}", exc_info=True)
            return AgentResponse(content=SERVICE_UNAVAILABLE_MESSAGE, citations=[], error=True)

        self.memory.append(conversation_id, human, AIMessage(content=content))
        citations = extract_citations(results)
        logger.info(
            f"Turn complete for conversation {conversation_id}: "
            f"{len(content)} chars, {len(results)} tool results, {len(citations)} citations"
        )
        return AgentResponse(content=content, citations=citations)
