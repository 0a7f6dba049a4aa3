import asyncio
import os

import pytest
from langchain_core.messages import AIMessage, ToolMessage

os.environ.setdefault("OPENAI_API_KEY", "test-key")

import niche_agent as agent_mod
from connectors import AuthorizationRequest, ConnectorSession, ToolSpec, ToolkitInfo
from models import ChartData, OpportunityLevel, RevenuePoint, Trend
from niche_agent import BLOCKED_REVENUE, NicheAnalysisAgent

CAPTCHA_PAYLOAD = {"url": "https://geo.captcha-delivery.com/x", "status": 403}
SALES_PAYLOAD = {"data": [{"asin": "B0001", "estimated_units_sold": 900, "revenue": 52000}]}
FINAL_REPORT = (
    "Demand PASS: estimated revenue $52,000/mo and the niche is growing.\n"
    "Competitors: glamglow.com relies on paid ads, kiehls.com ranks organically.\n"
    "Recommendation: enter with a bundled starter kit."
)


class FakeSession(ConnectorSession):
    def __init__(self, results=None, error=None, user_id="user-1"):
        self.user_id = user_id
        self.results = results or {}
        self.error = error
        self.executed = []

    async def tools(self):
        names = (
            "COMPOSIO_SEARCH_TOOLS",
            "COMPOSIO_MULTI_EXECUTE_TOOL",
            "COMPOSIO_REMOTE_BASH_TOOL",
            "COMPOSIO_REMOTE_WORKBENCH",
        )
        return {name: ToolSpec(name=name, description=f"{name} tool") for name in names}

    async def toolkits(self):
        return [ToolkitInfo(slug="junglescout", connected=True)]

    async def authorize(self, toolkit):
        return AuthorizationRequest(redirect_url=f"https://connect.example/{toolkit}")

    async def execute(self, tool_name, arguments):
        self.executed.append((tool_name, arguments))
        if self.error is not None:
            raise self.error
        return self.results.get(tool_name, SALES_PAYLOAD)


class ScriptedLLM:
    """Replays responses in order; the last one repeats once the script runs out."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []
        self.bound_tools = None

    def bind_tools(self, tools):
        self.bound_tools = tools
        return self

    async def ainvoke(self, messages):
        self.calls.append(list(messages))
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


class FakeCharts:
    def __init__(self, charts=None):
        self.charts = charts or ChartData()
        self.calls = []

    async def synthesize(self, analysis_text, product_name):
        self.calls.append((analysis_text, product_name))
        return self.charts


def _tool_call(name="COMPOSIO_MULTI_EXECUTE_TOOL", call_id="call-1", args=None):
    return AIMessage(content="", tool_calls=[{"name": name, "args": args or {}, "id": call_id}])


def _agent(responses, session=None, charts=None, max_steps=None):
    session = session or FakeSession()

    async def factory(user_id):
        session.user_id = user_id
        return session

    agent = NicheAnalysisAgent(
        llm=ScriptedLLM(responses),
        session_factory=factory,
        chart_synthesizer=charts or FakeCharts(),
        max_steps=max_steps,
        mock_delay=0,
    )
    return agent, session


def test_final_answer_without_tools_is_parsed():
    charts = FakeCharts(ChartData(revenue_history=[RevenuePoint(month="Jan", value=52000)]))
    agent, _ = _agent([AIMessage(content=FINAL_REPORT)], charts=charts)
    result = asyncio.run(agent.analyze_product("Clay Mask", use_mock_data=False, user_id="user-1"))

    assert result.product_name == "Clay Mask"
    assert result.revenue == "$52,000/mo"
    assert result.trend == Trend.UP
    assert result.opportunity_level == OpportunityLevel.HIGH
    assert result.demand_score == 80
    assert result.recommendation == FINAL_REPORT
    assert [item.domain for item in result.competitors] == ["glamglow.com", "kiehls.com"]
    assert len(result.revenue_history) == 1
    assert charts.calls == [(FINAL_REPORT, "Clay Mask")]


def test_tool_results_are_fed_back_to_the_model():
    agent, session = _agent([_tool_call(args={"tools": []}), AIMessage(content=FINAL_REPORT)])
    asyncio.run(agent.analyze_product("Clay Mask", use_mock_data=False, user_id="user-1"))

    assert session.executed == [("COMPOSIO_MULTI_EXECUTE_TOOL", {"tools": []})]
    second_call = agent.llm.calls[1]
    tool_messages = [message for message in second_call if isinstance(message, ToolMessage)]
    assert len(tool_messages) == 1
    assert tool_messages[0].tool_call_id == "call-1"
    assert "52000" in tool_messages[0].content


def test_excluded_tools_are_never_offered():
    agent, _ = _agent([AIMessage(content=FINAL_REPORT)])
    asyncio.run(agent.analyze_product("Clay Mask", use_mock_data=False, user_id="user-1"))

    offered = sorted(tool["function"]["name"] for tool in agent.llm.bound_tools)
    assert offered == ["COMPOSIO_MULTI_EXECUTE_TOOL", "COMPOSIO_SEARCH_TOOLS"]


def test_excluded_tool_call_is_refused_without_execution():
    agent, session = _agent([_tool_call(name="COMPOSIO_REMOTE_BASH_TOOL"), AIMessage(content=FINAL_REPORT)])
    asyncio.run(agent.analyze_product("Clay Mask", use_mock_data=False, user_id="user-1"))

    assert session.executed == []
    tool_message = [m for m in agent.llm.calls[1] if isinstance(m, ToolMessage)][0]
    assert "not available" in tool_message.content


def test_challenge_produces_blocked_result():
    session = FakeSession(results={"COMPOSIO_MULTI_EXECUTE_TOOL": CAPTCHA_PAYLOAD})
    charts = FakeCharts()
    partial = "Jungle Scout returned an unexpected page; revenue is growing at $52,000/mo."
    agent, _ = _agent([_tool_call(), AIMessage(content=partial)], session=session, charts=charts)
    result = asyncio.run(agent.analyze_product("Clay Mask", use_mock_data=False, user_id="user-1"))

    assert result.demand_score == 0
    assert result.revenue == BLOCKED_REVENUE
    assert "API Blocked" in result.revenue
    assert result.opportunity_level == OpportunityLevel.LOW
    assert result.trend == Trend.STABLE
    assert result.competitors == []
    assert result.revenue_history == []
    assert result.traffic_distribution == []
    assert "CAPTCHA Detected" in result.recommendation
    assert partial in result.recommendation
    assert charts.calls == []


def test_challenge_flag_is_sticky_and_loop_continues():
    results = iter([CAPTCHA_PAYLOAD, SALES_PAYLOAD])

    class AlternatingSession(FakeSession):
        async def execute(self, tool_name, arguments):
            self.executed.append((tool_name, arguments))
            return next(results)

    session = AlternatingSession()
    agent, _ = _agent(
        [_tool_call(call_id="a"), _tool_call(call_id="b"), AIMessage(content=FINAL_REPORT)],
        session=session,
    )
    result = asyncio.run(agent.analyze_product("Clay Mask", use_mock_data=False, user_id="user-1"))

    assert len(agent.llm.calls) == 3
    assert len(session.executed) == 2
    assert result.revenue == BLOCKED_REVENUE
    assert FINAL_REPORT in result.recommendation


def test_step_budget_bounds_the_loop():
    agent, session = _agent([_tool_call()], max_steps=3)
    result = asyncio.run(agent.analyze_product("Clay Mask", use_mock_data=False, user_id="user-1"))

    assert len(agent.llm.calls) == 3
    assert len(session.executed) == 3
    assert result.revenue == "See analysis"


def test_default_step_budget_is_fifteen():
    agent, _ = _agent([_tool_call()])
    asyncio.run(agent.analyze_product("Clay Mask", use_mock_data=False, user_id="user-1"))
    assert len(agent.llm.calls) == 15


def test_tool_failure_is_reported_to_the_model():
    session = FakeSession(error=RuntimeError("connector timeout"))
    agent, _ = _agent([_tool_call(), AIMessage(content=FINAL_REPORT)], session=session)
    result = asyncio.run(agent.analyze_product("Clay Mask", use_mock_data=False, user_id="user-1"))

    tool_message = [m for m in agent.llm.calls[1] if isinstance(m, ToolMessage)][0]
    assert "connector timeout" in tool_message.content
    assert result.recommendation == FINAL_REPORT


def test_session_failure_propagates():
    async def failing_factory(user_id):
        raise ConnectionError("connector service unavailable")

    agent = NicheAnalysisAgent(
        llm=ScriptedLLM([AIMessage(content=FINAL_REPORT)]),
        session_factory=failing_factory,
        chart_synthesizer=FakeCharts(),
        mock_delay=0,
    )
    with pytest.raises(ConnectionError):
        asyncio.run(agent.analyze_product("Clay Mask", use_mock_data=False, user_id="user-1"))


def test_model_failure_propagates():
    agent, _ = _agent([RuntimeError("model overloaded")])
    with pytest.raises(RuntimeError):
        asyncio.run(agent.analyze_product("Clay Mask", use_mock_data=False, user_id="user-1"))


def test_default_user_id_used_when_missing(monkeypatch):
    monkeypatch.setattr(agent_mod, "get_default_user_id", lambda: "shopify_demo_user")
    agent, session = _agent([AIMessage(content=FINAL_REPORT)])
    asyncio.run(agent.analyze_product("Clay Mask", use_mock_data=False))
    assert session.user_id == "shopify_demo_user"


def test_system_prompt_leads_the_conversation():
    agent, _ = _agent([AIMessage(content=FINAL_REPORT)])
    asyncio.run(agent.analyze_product("Clay Mask", use_mock_data=False, user_id="user-1"))
    first_call = agent.llm.calls[0]
    assert "MANDATORY EXECUTION ORDER" in first_call[0].content
    assert "Clay Mask" in first_call[1].content


def test_parse_agent_response_uses_default_product_name():
    agent, _ = _agent([AIMessage(content=FINAL_REPORT)])
    result = asyncio.run(agent.parse_agent_response("Low demand, insufficient volume."))
    assert result.product_name == "Analysis"
    assert result.opportunity_level == OpportunityLevel.LOW
    assert result.demand_score == 25


def test_chat_replays_history_through_the_loop():
    agent, _ = _agent([_tool_call(), AIMessage(content="Clay masks clear the threshold.")])
    history = [
        {"role": "user", "content": "Is clay mask a good niche?"},
        {"role": "assistant", "content": "Let me check."},
        {"role": "user", "parts": [{"type": "text", "text": "Go ahead."}]},
    ]
    reply = asyncio.run(agent.chat(history, "user-1"))

    assert reply.text == "Clay masks clear the threshold."
    assert reply.steps == 2
    assert reply.challenge_detected is False
    first_call = agent.llm.calls[0]
    assert isinstance(first_call[2], AIMessage)
    assert first_call[3].content == "Go ahead."
