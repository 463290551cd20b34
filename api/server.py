"""
FastAPI app exposing the four trading-state resources.

    /api/event-state, /api/strategy-config, /api/trades, /api/positions
    /api/data/<resource>   (combined endpoint, same handlers)

Every resource answers GET and POST; OPTIONS is an empty 200 and anything
else is 405. CORS is open.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from api.dispatch import ResourceDispatcher, resolve_resource
from errors import StateError, ValidationError
from state import TradingState

logger = logging.getLogger(__name__)

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


async def _read_body(request: Request) -> dict[str, Any]:
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Invalid JSON body")
    if not isinstance(body, dict):
        raise ValidationError("Invalid JSON body")
    return body


def create_app(state: TradingState | None, config_error: str | None = None) -> FastAPI:
    """
    Build the application. Pass state=None (with the startup error message) to
    serve a misconfigured deployment: every resource request then answers 500.
    """
    app = FastAPI(title="Trading State API", docs_url="/docs")
    dispatcher = ResourceDispatcher(state, config_error)

    @app.middleware("http")
    async def open_cors(request: Request, call_next):
        if request.method == "OPTIONS":
            response = Response(status_code=200)
        else:
            response = await call_next(request)
        response.headers.update(_CORS_HEADERS)
        return response

    async def handle(request: Request, resource: str | None) -> JSONResponse:
        method = request.method
        ctx: dict[str, Any] = {"resource": resource or "data", "method": method}
        try:
            handler = dispatcher.route(resource, method)
            if method.upper() == "POST":
                payload: Any = await _read_body(request)
            else:
                payload = dict(request.query_params)
            if isinstance(payload.get("scope"), str):
                ctx["scope"] = payload["scope"]
            result = await run_in_threadpool(handler, payload)
            return JSONResponse(result)
        except StateError as e:
            log = logger.error if e.status_code >= 500 else logger.warning
            log("error: %s", e.message, extra={**ctx, "status": e.status_code})
            return JSONResponse({"error": e.message}, status_code=e.status_code)
        except Exception as e:
            logger.exception("unhandled error", extra={**ctx, "status": 500})
            return JSONResponse({"error": str(e)}, status_code=500)

    @app.get("/api/health")
    async def health_check():
        return {"status": "ok"}

    @app.api_route("/api/data/{path:path}", methods=_ALL_METHODS)
    async def data_resource(request: Request, path: str):
        return await handle(request, resolve_resource([s for s in path.split("/") if s]))

    @app.api_route("/api/{resource}", methods=_ALL_METHODS)
    async def named_resource(request: Request, resource: str):
        return await handle(request, resource)

    @app.api_route("/api/{resource}/{rest:path}", methods=_ALL_METHODS)
    async def named_resource_alias(request: Request, resource: str, rest: str):
        return await handle(request, resource)

    return app

