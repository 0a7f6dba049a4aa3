"""
Niche Scout Configuration

Single configuration surface for the product-niche analysis service.
Values come from the environment (optionally a local .env file) so the same
code runs in demo mode, against live connectors, and under test.
"""

import os
from typing import List, Tuple

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() not in ("0", "false", "no", "off")


class ScoutConfig:
    """Runtime configuration shared by the agent, the HTTP layer and the CLI."""

    APP_NAME = "Shopify Competitive Agent"

    # LLM driver
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
    OPENAI_ORGANIZATION = os.getenv("OPENAI_ORGANIZATION")
    DEFAULT_MODEL = os.getenv("SCOUT_MODEL", "gpt-4o-mini")
    CHART_MODEL = os.getenv("SCOUT_CHART_MODEL", "gpt-4o-mini")
    MODEL_TEMPERATURE = float(os.getenv("SCOUT_MODEL_TEMPERATURE", "0.2"))
    CHART_TEMPERATURE = float(os.getenv("SCOUT_CHART_TEMPERATURE", "0.1"))
    CHART_RESPONSE_FORMAT = {"type": "json_object"}
    LLM_TIMEOUT_SECONDS = float(os.getenv("SCOUT_LLM_TIMEOUT", "120"))

    # Orchestration loop
    MAX_AGENT_STEPS = int(os.getenv("SCOUT_MAX_STEPS", "15"))
    CHART_INPUT_LIMIT = int(os.getenv("SCOUT_CHART_INPUT_LIMIT", "3000"))
    DEMAND_THRESHOLD_USD = int(os.getenv("SCOUT_DEMAND_THRESHOLD", "10000"))
    LOOKBACK_DAYS = 31
    TRACE_MAX_CHARS = 4000

    # Demo mode
    USE_MOCK_DATA = _env_flag("SCOUT_USE_MOCK_DATA", "true")
    MOCK_DELAY_SECONDS = float(os.getenv("SCOUT_MOCK_DELAY", "2.0"))

    # Connector sessions
    COMPOSIO_API_KEY = os.getenv("COMPOSIO_API_KEY")
    DEFAULT_USER_ID = os.getenv("DEFAULT_USER_ID", "shopify_demo_user")
    REQUIRED_TOOLKITS: Tuple[str, ...] = ("junglescout", "semrush")
    OPTIONAL_TOOLKITS: Tuple[str, ...] = ("shopify",)
    EXCLUDED_TOOL_NAMES: Tuple[str, ...] = (
        "COMPOSIO_REMOTE_BASH_TOOL",
        "COMPOSIO_REMOTE_WORKBENCH",
    )
    ALLOWED_META_TOOLS: Tuple[str, ...] = (
        "COMPOSIO_SEARCH_TOOLS",
        "COMPOSIO_MULTI_EXECUTE_TOOL",
    )

    # HTTP boundary
    USER_ID_COOKIE = os.getenv("SCOUT_USER_COOKIE", "shopify_user_id")
    USER_COOKIE_MAX_AGE = 60 * 60 * 24 * 365
    SECURE_COOKIES = os.getenv("SCOUT_ENV", "development") == "production"
    RATE_LIMIT_WINDOW_SECONDS = float(os.getenv("SCOUT_RATE_LIMIT_WINDOW", "60"))
    RATE_LIMIT_MAX_REQUESTS = int(os.getenv("SCOUT_RATE_LIMIT_MAX", "10"))
    CHAT_MAX_MESSAGES = 100

    # Logging
    LOG_DIR = os.getenv("SCOUT_LOG_DIR", "scout_logs")

    @classmethod
    def all_toolkits(cls) -> List[str]:
        return list(cls.REQUIRED_TOOLKITS) + list(cls.OPTIONAL_TOOLKITS)

    @classmethod
    def is_required_toolkit(cls, slug: str) -> bool:
        return slug in cls.REQUIRED_TOOLKITS
