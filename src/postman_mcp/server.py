"""Postman MCP Server.

FastMCP server exposing the function catalog as MCP tools, plus two plain
HTTP routes (``GET /functions`` and ``POST /call``) for callers that speak the
call/response envelope directly.
Run: postman-mcp
"""

from __future__ import annotations

import hmac
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import httpx
from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import ValidationError as ModelValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse

from .config import Settings, load_settings
from .core.clients.postman import PostmanClient
from .core.dispatcher import FunctionDispatcher
from .core.models import FunctionCall

logger = logging.getLogger(__name__)

READ_ONLY = ToolAnnotations(readOnlyHint=True, destructiveHint=False, idempotentHint=True, openWorldHint=False)
REMOTE_CALL = ToolAnnotations(readOnlyHint=False, destructiveHint=False, idempotentHint=False, openWorldHint=True)

_settings: Optional[Settings] = None
_dispatcher: Optional[FunctionDispatcher] = None


def configure(settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> FunctionDispatcher:
    """Build the dispatcher for ``settings`` and make it the active one."""
    global _settings, _dispatcher
    client = PostmanClient(
        settings.api_key,
        base_url=settings.api_base,
        timeout=settings.timeout_seconds,
        transport=transport,
    )
    _settings = settings
    _dispatcher = FunctionDispatcher(client)
    return _dispatcher


def get_dispatcher() -> FunctionDispatcher:
    if _dispatcher is None:
        configure(load_settings())
    return _dispatcher


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Fail fast on missing configuration before serving any session."""
    get_dispatcher()
    yield


mcp = FastMCP(
    "Postman",
    instructions="Manage Postman collections and environments and trigger collection runs through named functions.",
    lifespan=lifespan,
)


# ─── MCP Tools ───────────────────────────────────────────────────────────────


@mcp.tool(annotations=READ_ONLY)
async def list_functions() -> list[dict]:
    """List every callable function with its description and parameter schema."""
    return [d.model_dump() for d in get_dispatcher().list_functions()]


@mcp.tool(annotations=REMOTE_CALL)
async def call_function(name: str, parameters: Optional[list[dict[str, Any]]] = None) -> dict:
    """Call a function by name and return its status/content/error envelope.

    Args:
        name: Function name as returned by list_functions, e.g. 'mcp__get_collection'.
        parameters: Ordered list of {"name": ..., "value": ...} pairs. Later duplicates win.
    """
    call = FunctionCall.model_validate({"name": name, "parameters": parameters or []})
    response = await get_dispatcher().dispatch(call)
    return response.to_dict()


# ─── HTTP Routes ─────────────────────────────────────────────────────────────


def _authorized(request: Request) -> bool:
    secret = _settings.shared_secret if _settings else ""
    if not secret:
        return True
    supplied = request.headers.get("authorization", "")
    return hmac.compare_digest(supplied, f"Bearer {secret}")


def _unauthorized() -> JSONResponse:
    return JSONResponse({"error": "Unauthorized"}, status_code=401)


@mcp.custom_route("/functions", methods=["GET"])
async def functions_route(request: Request) -> JSONResponse:
    dispatcher = get_dispatcher()
    if not _authorized(request):
        return _unauthorized()
    return JSONResponse([d.model_dump() for d in dispatcher.list_functions()])


@mcp.custom_route("/call", methods=["POST"])
async def call_route(request: Request) -> JSONResponse:
    dispatcher = get_dispatcher()
    if not _authorized(request):
        return _unauthorized()

    try:
        body = await request.json()
    except ValueError:
        logger.warning("Rejected call with malformed JSON body")
        return JSONResponse({"error": "Invalid request body"}, status_code=400)

    if not isinstance(body, dict):
        return JSONResponse({"error": "Invalid request body"}, status_code=400)
    if not body.get("name"):
        return JSONResponse({"error": "Function name is required"}, status_code=400)

    try:
        call = FunctionCall.model_validate({"name": body["name"], "parameters": body.get("parameters") or []})
    except ModelValidationError as e:
        logger.warning("Rejected call with invalid parameters: %s", e)
        return JSONResponse({"error": "Invalid request body"}, status_code=400)

    response = await dispatcher.dispatch(call)
    if response.ok:
        status_code = 200
    elif not dispatcher.has_function(call.name):
        status_code = 404
    else:
        status_code = 500
    return JSONResponse(response.to_dict(), status_code=status_code)


def main():
    """Entry point for the CLI command."""
    settings = load_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    configure(settings)
    logger.info("Starting Postman MCP server (transport: %s)", settings.transport)
    mcp.run(transport=settings.transport)


if __name__ == "__main__":
    main()
