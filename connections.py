"""Toolkit connection status, authorization links and disconnects."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from config import ScoutConfig
from connectors import ALL_TOOLKITS, ConnectorSession, create_user_session, get_composio_client

logger = logging.getLogger(__name__)

SessionFactory = Callable[[str], Awaitable[ConnectorSession]]


@dataclass
class ConnectionStatus:
    toolkit: str
    connected: bool
    required: bool


@dataclass
class ConnectionSummary:
    status: List[ConnectionStatus] = field(default_factory=list)
    required_connected: int = 0
    required_total: int = 0
    optional_connected: int = 0
    optional_total: int = 0
    can_analyze: bool = False
    shopify_connected: bool = False

    def to_payload(self) -> Dict[str, Any]:
        return {
            "status": [asdict(item) for item in self.status],
            "requiredConnected": self.required_connected,
            "requiredTotal": self.required_total,
            "optionalConnected": self.optional_connected,
            "optionalTotal": self.optional_total,
            "canAnalyze": self.can_analyze,
            "shopifyConnected": self.shopify_connected,
        }


def validate_toolkit(toolkit: str) -> str:
    if toolkit not in ALL_TOOLKITS:
        raise ValueError(f"Invalid toolkit: {toolkit}")
    return toolkit


async def get_connection_status(
    user_id: str, session_factory: SessionFactory = create_user_session
) -> ConnectionSummary:
    session = await session_factory(user_id)
    connected = {info.slug for info in await session.toolkits() if info.connected}

    status = [
        ConnectionStatus(
            toolkit=slug,
            connected=slug in connected,
            required=ScoutConfig.is_required_toolkit(slug),
        )
        for slug in ALL_TOOLKITS
    ]
    required = [item for item in status if item.required]
    optional = [item for item in status if not item.required]

    return ConnectionSummary(
        status=status,
        required_connected=sum(1 for item in required if item.connected),
        required_total=len(required),
        optional_connected=sum(1 for item in optional if item.connected),
        optional_total=len(optional),
        can_analyze=all(item.connected for item in required),
        shopify_connected="shopify" in connected,
    )


async def get_auth_url(
    user_id: str, toolkit: str, session_factory: SessionFactory = create_user_session
) -> str:
    """Connect link the user visits to authorize a toolkit."""
    validate_toolkit(toolkit)
    session = await session_factory(user_id)
    request = await session.authorize(toolkit)
    if not request.redirect_url:
        raise RuntimeError(f"Failed to get auth URL for {toolkit}")
    return request.redirect_url


async def can_run_analysis(
    user_id: str, session_factory: SessionFactory = create_user_session
) -> bool:
    summary = await get_connection_status(user_id, session_factory)
    return summary.can_analyze


async def disconnect_toolkit(user_id: str, toolkit: str, client: Any = None) -> Optional[str]:
    """Delete the user's first connected account for a toolkit; None when nothing is connected."""
    validate_toolkit(toolkit)
    client = client or get_composio_client()
    accounts = await asyncio.to_thread(
        client.connected_accounts.list,
        user_ids=[user_id],
        toolkit_slugs=[toolkit],
    )
    items = getattr(accounts, "items", None)
    if items is None and isinstance(accounts, dict):
        items = accounts.get("items")
    if not items:
        return None

    account = items[0]
    account_id = account.get("id") if isinstance(account, dict) else account.id
    await asyncio.to_thread(client.connected_accounts.delete, account_id)
    logger.info("Disconnected %s account %s for user %s", toolkit, account_id, user_id)
    return account_id
