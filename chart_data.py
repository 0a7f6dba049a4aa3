"""
Chart data synthesis.

A second, narrowly scoped LLM call turns the agent's narrative into the two
numeric series the dashboard plots. Any failure degrades to empty series.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from pydantic import ValidationError

from config import ScoutConfig
from models import ChartData
from prompts import CHART_SYSTEM_PROMPT, build_chart_prompt

logger = logging.getLogger(__name__)


def build_chart_llm(api_key: Optional[str] = None, model_name: Optional[str] = None) -> ChatOpenAI:
    organization = ScoutConfig.OPENAI_ORGANIZATION
    llm_params = {
        "api_key": api_key or ScoutConfig.OPENAI_API_KEY,
        "model": model_name or ScoutConfig.CHART_MODEL,
        "temperature": ScoutConfig.CHART_TEMPERATURE,
        "response_format": ScoutConfig.CHART_RESPONSE_FORMAT,
        "timeout": ScoutConfig.LLM_TIMEOUT_SECONDS,
    }
    if organization:
        llm_params["openai_organization"] = organization
    return ChatOpenAI(**llm_params)


def message_text(message: Any) -> str:
    """Plain text of a chat message whose content may be a string or content blocks."""
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return "" if content is None else str(content)


def parse_chart_payload(raw: str) -> ChartData:
    """Decode the model's JSON; a missing key becomes an empty series. Raises on malformed input."""
    data = json.loads(raw)
    return ChartData(
        revenue_history=data.get("revenueHistory") or [],
        traffic_distribution=data.get("trafficDistribution") or [],
    )


class ChartDataSynthesizer:
    """Second-stage extraction whose failure never fails the analysis."""

    def __init__(self, llm: Any = None, api_key: Optional[str] = None, model_name: Optional[str] = None):
        self._llm = llm
        self.api_key = api_key
        self.model_name = model_name
        self.input_limit = ScoutConfig.CHART_INPUT_LIMIT

    @property
    def llm(self) -> Any:
        if self._llm is None:
            self._llm = build_chart_llm(self.api_key, self.model_name)
        return self._llm

    async def synthesize(self, analysis_text: str, product_name: str) -> ChartData:
        excerpt = (analysis_text or "")[: self.input_limit]
        messages = [
            SystemMessage(content=CHART_SYSTEM_PROMPT),
            HumanMessage(content=build_chart_prompt(excerpt, product_name)),
        ]
        try:
            response = await self.llm.ainvoke(messages)
            return parse_chart_payload(message_text(response))
        except (json.JSONDecodeError, ValidationError, AttributeError, TypeError) as exc:
            logger.warning("Chart data for %r was not usable JSON: %s", product_name, exc)
        except Exception as exc:
            logger.warning("Chart data generation failed for %r: %s", product_name, exc)
        return ChartData()


async def synthesize_charts(analysis_text: str, product_name: str, llm: Any = None) -> ChartData:
    return await ChartDataSynthesizer(llm=llm).synthesize(analysis_text, product_name)
