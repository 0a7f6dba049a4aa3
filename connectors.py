"""
Connector sessions

Per-user access to the demand, SEO and store toolkits. The analysis agent only
depends on the ConnectorSession interface; ComposioSession is the production
implementation, reaching the provider's tool router over MCP.
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional

from composio import Composio
from mcp import ClientSession
from mcp.client.streamable_http import streamablehttp_client

from config import ScoutConfig

logger = logging.getLogger(__name__)

REQUIRED_TOOLKITS = ScoutConfig.REQUIRED_TOOLKITS
OPTIONAL_TOOLKITS = ScoutConfig.OPTIONAL_TOOLKITS
ALL_TOOLKITS = tuple(ScoutConfig.all_toolkits())

_composio_client: Optional[Composio] = None


@dataclass
class ToolSpec:
    """A discovered tool; the agent treats it opaquely apart from its name."""
    name: str
    description: str = ""
    parameters: Dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )

    def to_openai_tool(self) -> Dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters or {"type": "object", "properties": {}},
            },
        }


@dataclass
class ToolkitInfo:
    slug: str
    connected: bool = False
    connected_account: Optional[str] = None


@dataclass
class AuthorizationRequest:
    redirect_url: Optional[str]
    instructions: Optional[str] = None


class ConnectorSession(ABC):
    """Capability handle for one user's connected toolkits."""

    user_id: str

    @abstractmethod
    async def tools(self) -> Dict[str, ToolSpec]:
        ...

    @abstractmethod
    async def toolkits(self) -> List[ToolkitInfo]:
        ...

    @abstractmethod
    async def authorize(self, toolkit: str) -> AuthorizationRequest:
        ...

    @abstractmethod
    async def execute(self, tool_name: str, arguments: Dict[str, Any]) -> Any:
        ...


def get_default_user_id() -> str:
    return ScoutConfig.DEFAULT_USER_ID or "shopify_demo_user"


def get_composio_client() -> Composio:
    global _composio_client
    if _composio_client is None:
        _composio_client = Composio(api_key=ScoutConfig.COMPOSIO_API_KEY)
    return _composio_client


def _field(obj: Any, *names: str) -> Any:
    for name in names:
        if isinstance(obj, dict) and name in obj:
            return obj[name]
        if hasattr(obj, name):
            return getattr(obj, name)
    return None


def _normalize_tool_result(result: Any) -> Any:
    """Prefer structured content, then JSON-decoded text, then raw text."""
    structured = getattr(result, "structuredContent", None)
    if structured:
        payload: Any = structured
    else:
        texts = [item.text for item in (getattr(result, "content", None) or []) if hasattr(item, "text")]
        payload = "\n".join(texts)
        try:
            payload = json.loads(payload)
        except (TypeError, ValueError):
            pass
    if getattr(result, "isError", False):
        return {"error": payload}
    return payload


class ComposioSession(ConnectorSession):
    def __init__(self, handle: Any, user_id: str):
        self._handle = handle
        self.user_id = user_id

    @property
    def mcp_url(self) -> str:
        return _field(_field(self._handle, "mcp"), "url")

    @property
    def mcp_headers(self) -> Dict[str, str]:
        return dict(_field(_field(self._handle, "mcp"), "headers") or {})

    @asynccontextmanager
    async def _mcp_client(self) -> AsyncIterator[ClientSession]:
        async with streamablehttp_client(self.mcp_url, headers=self.mcp_headers) as (read, write, _):
            async with ClientSession(read, write) as client:
                await client.initialize()
                yield client

    async def tools(self) -> Dict[str, ToolSpec]:
        async with self._mcp_client() as client:
            response = await client.list_tools()
        discovered = {
            tool.name: ToolSpec(
                name=tool.name,
                description=tool.description or "",
                parameters=tool.inputSchema or {"type": "object", "properties": {}},
            )
            for tool in response.tools
        }
        logger.debug("Discovered %d tools for user %s", len(discovered), self.user_id)
        return discovered

    async def execute(self, tool_name: str, arguments: Dict[str, Any]) -> Any:
        async with self._mcp_client() as client:
            result = await client.call_tool(tool_name, arguments=arguments)
        return _normalize_tool_result(result)

    async def toolkits(self) -> List[ToolkitInfo]:
        listing = await asyncio.to_thread(self._handle.toolkits)
        items = _field(listing, "items")
        if items is None:
            items = listing or []
        toolkits = []
        for item in items:
            connection = _field(item, "connection")
            account = _field(connection, "connected_account", "connectedAccount") if connection else None
            account_id = _field(account, "id") if account is not None and not isinstance(account, str) else account
            toolkits.append(
                ToolkitInfo(slug=_field(item, "slug"), connected=bool(account), connected_account=account_id)
            )
        return toolkits

    async def authorize(self, toolkit: str) -> AuthorizationRequest:
        request = await asyncio.to_thread(self._handle.authorize, toolkit)
        return AuthorizationRequest(
            redirect_url=_field(request, "redirect_url", "redirectUrl"),
            instructions=_field(request, "instructions"),
        )


async def create_user_session(user_id: str) -> ComposioSession:
    client = get_composio_client()
    handle = await asyncio.to_thread(
        client.create,
        user_id=user_id,
        toolkits=list(ALL_TOOLKITS),
        manage_connections=False,
    )
    return ComposioSession(handle, user_id)
