"""
Niche Analysis Agent

Drives the LLM through a bounded tool-use loop against the user's connected
toolkits, watches every tool result for bot challenges, and turns the final
narrative into a structured AnalysisResult.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage
from langchain_openai import ChatOpenAI

from chart_data import ChartDataSynthesizer, message_text
from config import ScoutConfig
from connectors import ConnectorSession, ToolSpec, create_user_session, get_default_user_id
from gates import filter_tools, is_challenge_response
from mock_data import DEMO_FALLBACK_RECOMMENDATION, MOCK_ANALYSIS_RESULTS
from models import AnalysisResult, OpportunityLevel, Trend
from prompts import build_analysis_task, build_system_prompt
from response_parser import extract_signals

logger = logging.getLogger(__name__)

BLOCKED_REVENUE = "N/A - API Blocked"

SessionFactory = Callable[[str], Awaitable[ConnectorSession]]


@dataclass
class ToolResult:
    call_id: str
    tool_name: str
    result: Any


@dataclass
class ToolStep:
    """One reasoning turn: tool calls issued, their results, and any text."""
    index: int
    text: str = ""
    finish_reason: Optional[str] = None
    tool_calls: List[Dict[str, Any]] = field(default_factory=list)
    tool_results: List[ToolResult] = field(default_factory=list)


@dataclass
class LoopOutcome:
    final_text: str = ""
    step_count: int = 0
    challenge_detected: bool = False
    challenge_count: int = 0


@dataclass
class ChatReply:
    text: str
    steps: int
    challenge_detected: bool = False


def blocked_recommendation(partial_text: str) -> str:
    partial = partial_text if partial_text.strip() else "(no partial output)"
    return (
        "⚠️ **Analysis Incomplete - CAPTCHA Detected**\n\n"
        "The Jungle Scout API returned a CAPTCHA challenge instead of data. This typically means:\n\n"
        "1. **Rate limiting**: Too many requests in a short time\n"
        "2. **Bot detection**: The API thinks this is automated traffic\n"
        "3. **Connection issues**: The API credentials may need to be re-authenticated\n\n"
        "**Partial agent output:**\n\n"
        f"{partial}\n\n"
        "**What to try:**\n"
        "- Wait a few minutes and run the analysis again\n"
        "- Reconnect Jungle Scout from the connections panel\n"
        "- Switch to demo mode to explore the dashboard with sample data"
    )


class NicheAnalysisAgent:
    """Single entry point for demo and live product-niche analyses."""

    def __init__(
        self,
        openai_api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        llm: Any = None,
        session_factory: SessionFactory = create_user_session,
        chart_synthesizer: Optional[ChartDataSynthesizer] = None,
        max_steps: Optional[int] = None,
        mock_delay: Optional[float] = None,
        trace_mode: bool = False,
    ):
        self.openai_api_key = openai_api_key or ScoutConfig.OPENAI_API_KEY
        self.model_name = model_name or ScoutConfig.DEFAULT_MODEL
        self._llm = llm
        self.session_factory = session_factory
        self.chart_synthesizer = chart_synthesizer or ChartDataSynthesizer(api_key=self.openai_api_key)
        self.max_steps = max_steps or ScoutConfig.MAX_AGENT_STEPS
        self.mock_delay = ScoutConfig.MOCK_DELAY_SECONDS if mock_delay is None else mock_delay
        self.trace_mode = trace_mode

    @property
    def llm(self) -> Any:
        if self._llm is None:
            llm_params = {
                "api_key": self.openai_api_key,
                "model": self.model_name,
                "temperature": ScoutConfig.MODEL_TEMPERATURE,
                "timeout": ScoutConfig.LLM_TIMEOUT_SECONDS,
            }
            if ScoutConfig.OPENAI_ORGANIZATION:
                llm_params["openai_organization"] = ScoutConfig.OPENAI_ORGANIZATION
            self._llm = ChatOpenAI(**llm_params)
        return self._llm

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def analyze_product(
        self, product_name: str, use_mock_data: bool = True, user_id: Optional[str] = None
    ) -> AnalysisResult:
        if use_mock_data:
            return await self.run_mock_analysis(product_name)
        return await self.run_real_analysis(product_name, user_id or get_default_user_id())

    async def run_mock_analysis(self, product_name: str) -> AnalysisResult:
        await asyncio.sleep(self.mock_delay)
        needle = product_name.lower()
        for key, record in MOCK_ANALYSIS_RESULTS.items():
            if needle in key.lower() or key.lower() in needle:
                logger.info("Demo mode: %r matched canned record %r", product_name, key)
                return record.model_copy(deep=True)

        return AnalysisResult(
            product_name=product_name,
            demand_score=50,
            revenue="Unknown",
            trend=Trend.STABLE,
            opportunity_level=OpportunityLevel.MEDIUM,
            recommendation=DEMO_FALLBACK_RECOMMENDATION,
        )

    async def run_real_analysis(self, product_name: str, user_id: str) -> AnalysisResult:
        self._trace("run_real_analysis:start", {"product": product_name, "user_id": user_id})
        session = await self.session_factory(user_id)
        tools = filter_tools(await session.tools())
        self._trace("tools:filtered", sorted(tools))

        messages: List[BaseMessage] = [
            SystemMessage(content=build_system_prompt()),
            HumanMessage(content=build_analysis_task(product_name)),
        ]
        outcome = await self._run_tool_loop(session, tools, messages)
        logger.info(
            "Agent finished %r in %d step(s); challenges=%d",
            product_name,
            outcome.step_count,
            outcome.challenge_count,
        )

        if outcome.challenge_detected:
            return self._blocked_result(product_name, outcome.final_text)
        return await self.parse_agent_response(outcome.final_text, product_name)

    async def parse_agent_response(self, text: str, product_name: str = "Analysis") -> AnalysisResult:
        """Structure a finished narrative; also used to re-parse stored transcripts."""
        signals = extract_signals(text)
        charts = await self.chart_synthesizer.synthesize(text, product_name)
        return AnalysisResult(
            product_name=product_name,
            demand_score=signals.demand_score,
            revenue=signals.revenue,
            trend=signals.trend,
            opportunity_level=signals.opportunity_level,
            recommendation=text or "",
            revenue_history=charts.revenue_history,
            traffic_distribution=charts.traffic_distribution,
            competitors=signals.competitors,
        )

    async def chat(self, messages: List[Mapping[str, Any]], user_id: str) -> ChatReply:
        """Conversational variant: same prompt and loop over a role/content history."""
        session = await self.session_factory(user_id)
        tools = filter_tools(await session.tools())
        history: List[BaseMessage] = [SystemMessage(content=build_system_prompt())]
        history.extend(self._history_message(item) for item in messages)
        outcome = await self._run_tool_loop(session, tools, history)
        return ChatReply(
            text=outcome.final_text,
            steps=outcome.step_count,
            challenge_detected=outcome.challenge_detected,
        )

    # ------------------------------------------------------------------
    # Orchestration loop
    # ------------------------------------------------------------------
    async def _run_tool_loop(
        self,
        session: ConnectorSession,
        tools: Dict[str, ToolSpec],
        messages: List[BaseMessage],
    ) -> LoopOutcome:
        bound = self.llm.bind_tools([spec.to_openai_tool() for spec in tools.values()]) if tools else self.llm
        outcome = LoopOutcome()

        for index in range(self.max_steps):
            response = await bound.ainvoke(messages)
            messages.append(response)
            step = ToolStep(
                index=index,
                text=message_text(response),
                finish_reason=(getattr(response, "response_metadata", None) or {}).get("finish_reason"),
                tool_calls=list(getattr(response, "tool_calls", None) or []),
            )
            for call in step.tool_calls:
                result = await self._execute_tool(session, tools, call)
                step.tool_results.append(result)
                messages.append(ToolMessage(content=self._serialize(result.result), tool_call_id=result.call_id))

            outcome.step_count = index + 1
            outcome.final_text = step.text
            self._inspect_step(step, outcome)
            if not step.tool_calls:
                break
        else:
            logger.warning("Agent hit the %d-step budget before a final answer", self.max_steps)

        return outcome

    async def _execute_tool(
        self, session: ConnectorSession, tools: Dict[str, ToolSpec], call: Mapping[str, Any]
    ) -> ToolResult:
        name = call.get("name", "")
        call_id = call.get("id") or name
        logger.info("[Tool call: %s]", name)
        if name not in tools:
            return ToolResult(call_id, name, {"error": f"Tool {name} is not available"})
        try:
            result = await session.execute(name, dict(call.get("args") or {}))
        except Exception as exc:
            logger.warning("Tool %s failed: %s", name, exc)
            result = {"error": f"{type(exc).__name__}: {exc}"}
        self._trace(f"tool_result:{name}", result)
        return ToolResult(call_id, name, result)

    def _inspect_step(self, step: ToolStep, outcome: LoopOutcome) -> None:
        # Sticky: the loop keeps running after a challenge.
        if any(is_challenge_response(item.result) for item in step.tool_results):
            outcome.challenge_detected = True
            outcome.challenge_count += 1
            logger.warning("Bot challenge detected in step %d tool results", step.index + 1)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _blocked_result(self, product_name: str, partial_text: str) -> AnalysisResult:
        return AnalysisResult(
            product_name=product_name,
            demand_score=0,
            revenue=BLOCKED_REVENUE,
            trend=Trend.STABLE,
            opportunity_level=OpportunityLevel.LOW,
            recommendation=blocked_recommendation(partial_text),
        )

    def _history_message(self, item: Mapping[str, Any]) -> BaseMessage:
        role = item.get("role", "user")
        content = item.get("content")
        if content is None:
            # UI clients send text blocks under "parts"
            content = item.get("parts") or ""
        if not isinstance(content, str):
            content = message_text(content)
        if role == "assistant":
            return AIMessage(content=content)
        if role == "system":
            return SystemMessage(content=content)
        return HumanMessage(content=content)

    def _serialize(self, payload: Any) -> str:
        if isinstance(payload, str):
            return payload
        try:
            return json.dumps(payload, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            return str(payload)

    def _trace(self, label: str, payload: Any = None) -> None:
        emit = self.trace_mode or logger.isEnabledFor(logging.DEBUG)
        if not emit:
            return
        target = logger.info if self.trace_mode else logger.debug
        if payload is None:
            target("[TRACE] %s", label)
            return
        serialized = self._serialize(payload)
        max_len = ScoutConfig.TRACE_MAX_CHARS
        if len(serialized) > max_len:
            serialized = serialized[: max_len - 3] + "..."
        target("[TRACE] %s: %s", label, serialized)


async def analyze_product(
    product_name: str, use_mock_data: bool = True, user_id: Optional[str] = None
) -> AnalysisResult:
    return await NicheAnalysisAgent().analyze_product(product_name, use_mock_data, user_id)
