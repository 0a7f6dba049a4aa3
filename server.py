"""
HTTP surface for the niche analysis service.

Thin FastAPI routes over the agent and connection helpers: input validation,
anonymous user cookies, chat rate limiting and status-code mapping.
"""

import logging
import os
import uuid
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.middleware.cors import CORSMiddleware

from config import ScoutConfig
from connections import disconnect_toolkit, get_auth_url, get_connection_status
from connectors import ALL_TOOLKITS, create_user_session
from logging_utils import get_error_info, log_exception
from niche_agent import NicheAnalysisAgent
from rate_limit import FixedWindowRateLimiter

logger = logging.getLogger(__name__)

app = FastAPI(title=ScoutConfig.APP_NAME)
api_router = APIRouter(prefix="/api")

_agent: Optional[NicheAnalysisAgent] = None
_chat_limiter = FixedWindowRateLimiter()


class AnalyzeRequest(BaseModel):
    product: Optional[str] = None
    use_mock_data: Optional[bool] = Field(default=None, alias="useMockData")


class ChatRequest(BaseModel):
    messages: List[Dict[str, Any]] = Field(min_length=1, max_length=ScoutConfig.CHAT_MAX_MESSAGES)


class ParseDashboardRequest(BaseModel):
    text: Optional[str] = None
    product_name: Optional[str] = Field(default=None, alias="productName")


def get_agent() -> NicheAnalysisAgent:
    global _agent
    if _agent is None:
        _agent = NicheAnalysisAgent()
    return _agent


def get_chat_limiter() -> FixedWindowRateLimiter:
    return _chat_limiter


def get_session_factory():
    return create_user_session


def get_connected_accounts_client() -> Any:
    """None lets disconnect_toolkit fall back to the shared Composio client."""
    return None


def get_user_id(request: Request) -> str:
    return request.state.user_id


def _error(status_code: int, message: str, exc: Optional[Exception] = None, **extra: Any) -> JSONResponse:
    body: Dict[str, Any] = {"error": message, **extra}
    if exc is not None:
        body["details"] = get_error_info(exc)["message"]
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(RequestValidationError)
async def invalid_body(request: Request, exc: RequestValidationError):
    return _error(400, "Invalid request body")


@app.middleware("http")
async def ensure_user_cookie(request: Request, call_next):
    """Every visitor gets a stable anonymous id; first visits are issued a UUID cookie."""
    existing = request.cookies.get(ScoutConfig.USER_ID_COOKIE)
    request.state.user_id = existing or str(uuid.uuid4())
    response = await call_next(request)
    if not existing:
        response.set_cookie(
            key=ScoutConfig.USER_ID_COOKIE,
            value=request.state.user_id,
            httponly=True,
            secure=ScoutConfig.SECURE_COOKIES,
            samesite="lax",
            max_age=ScoutConfig.USER_COOKIE_MAX_AGE,
            path="/",
        )
    return response


@api_router.post("/analyze")
async def analyze(
    payload: AnalyzeRequest,
    user_id: str = Depends(get_user_id),
    agent: NicheAnalysisAgent = Depends(get_agent),
):
    product = (payload.product or "").strip()
    if not product:
        return _error(400, "Product name is required")
    use_mock = ScoutConfig.USE_MOCK_DATA if payload.use_mock_data is None else payload.use_mock_data
    try:
        result = await agent.analyze_product(product, use_mock_data=use_mock, user_id=user_id)
    except Exception as exc:
        log_exception(logger, exc, context="analyze", product=product, use_mock_data=use_mock)
        return _error(500, "Internal server error", exc)
    return result.to_payload()


@api_router.post("/chat")
async def chat(
    payload: ChatRequest,
    user_id: str = Depends(get_user_id),
    agent: NicheAnalysisAgent = Depends(get_agent),
    limiter: FixedWindowRateLimiter = Depends(get_chat_limiter),
):
    if not limiter.allow(user_id):
        return _error(429, "Too Many Requests")
    try:
        reply = await agent.chat(payload.messages, user_id)
    except Exception as exc:
        log_exception(logger, exc, context="chat", user_id=user_id)
        return _error(500, "Internal Server Error", exc)
    return {"reply": reply.text, "steps": reply.steps, "challengeDetected": reply.challenge_detected}


@api_router.post("/parse-dashboard")
async def parse_dashboard(payload: ParseDashboardRequest, agent: NicheAnalysisAgent = Depends(get_agent)):
    if not payload.text:
        return _error(400, "Missing 'text' field")
    try:
        data = await agent.parse_agent_response(payload.text, payload.product_name or "Analysis")
    except Exception as exc:
        log_exception(logger, exc, context="parse_dashboard")
        return _error(500, "Failed to parse analysis data", exc)
    return {"data": data.to_payload()}


@api_router.get("/connection-status")
async def connection_status(user_id: str = Depends(get_user_id), session_factory=Depends(get_session_factory)):
    try:
        summary = await get_connection_status(user_id, session_factory)
    except Exception as exc:
        log_exception(logger, exc, context="connection_status", user_id=user_id)
        return _error(500, "Failed to check connection status", exc)
    return {"userId": user_id, **summary.to_payload()}


@api_router.get("/auth/{toolkit}")
async def auth(toolkit: str, user_id: str = Depends(get_user_id), session_factory=Depends(get_session_factory)):
    if toolkit not in ALL_TOOLKITS:
        return _error(400, f"Invalid toolkit: {toolkit}", validToolkits=list(ALL_TOOLKITS))
    try:
        auth_url = await get_auth_url(user_id, toolkit, session_factory)
    except Exception as exc:
        log_exception(logger, exc, context="auth", toolkit=toolkit)
        return _error(500, "Failed to generate auth URL", exc)
    return {
        "toolkit": toolkit,
        "authUrl": auth_url,
        "instructions": (
            f"Visit the URL to connect your {toolkit} account. After connecting, "
            f"the agent will be able to access your {toolkit} data."
        ),
    }


@api_router.delete("/disconnect/{toolkit}")
async def disconnect(toolkit: str, user_id: str = Depends(get_user_id), client=Depends(get_connected_accounts_client)):
    if toolkit not in ALL_TOOLKITS:
        return _error(400, f"Invalid toolkit: {toolkit}")
    try:
        account_id = await disconnect_toolkit(user_id, toolkit, client)
    except Exception as exc:
        log_exception(logger, exc, context="disconnect", toolkit=toolkit)
        return _error(500, "Failed to disconnect", exc)
    if account_id is None:
        return _error(404, f"No connection found for {toolkit}")
    return {
        "success": True,
        "message": f"Disconnected {toolkit} successfully",
        "deletedAccountId": account_id,
    }


app.include_router(api_router)


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


cors_origins_env = os.environ.get("CORS_ORIGINS", "*")
if cors_origins_env == "*":
    cors_origins = ["*"]
    allow_credentials = False
else:
    cors_origins = [origin.strip() for origin in cors_origins_env.split(",")]
    allow_credentials = True

app.add_middleware(
    CORSMiddleware,
    allow_credentials=allow_credentials,
    allow_origins=cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
