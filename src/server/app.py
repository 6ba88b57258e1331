"""FastAPI application serving the bot webhooks, health check and index page."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from html import escape
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse

from src.bots.profiles import PROFILES
from src.bots.registry import load_config_from_env
from src.server.context import RelayContext, build_context
from src.webhook.dispatcher import WebhookDispatcher
from src.webhook.telegram import UpdateDecodeError, decode_update

logger = logging.getLogger(__name__)

_MAX_WEBHOOK_BODY_SIZE = 1024 * 1024  # 1 MiB


def create_app_from_env() -> FastAPI:
    """Factory for uvicorn --factory: reads config from environment variables."""
    return create_app(build_context(load_config_from_env()))


def handle_unhandled_fault(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
    """Event loop exception handler: log the fault and terminate with exit code 1."""
    exc = context.get("exception")
    logger.critical(
        "Unhandled fault: %s", context.get("message", "unknown"),
        exc_info=(type(exc), exc, exc.__traceback__) if exc else None,
    )
    os._exit(1)


def create_app(context: RelayContext) -> FastAPI:
    """Create the relay app with one POST route per bot webhook path."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        asyncio.get_running_loop().set_exception_handler(handle_unhandled_fault)
        yield
        await context.scheduler.cancel_all()

    app = FastAPI(docs_url=None, redoc_url=None, lifespan=lifespan)
    app.state.context = context
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(context.config.cors_allow_origins),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for dispatcher in context.dispatchers.values():
        _add_webhook_route(app, dispatcher)

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {
            "status": "healthy",
            "timestamp": datetime.now(UTC).isoformat(),
            "bots": {name: "active" for name in context.registry.names()},
        }

    @app.get("/", response_class=HTMLResponse)
    async def index() -> HTMLResponse:
        return HTMLResponse(_render_index(context))

    return app


def _add_webhook_route(app: FastAPI, dispatcher: WebhookDispatcher) -> None:
    identity = dispatcher.identity

    async def receive_update(request: Request) -> JSONResponse:
        body = await request.body()
        if len(body) > _MAX_WEBHOOK_BODY_SIZE:
            return JSONResponse({"error": "Request body too large"}, status_code=413)

        try:
            update = decode_update(json.loads(body))
        except (
            json.JSONDecodeError, UnicodeDecodeError, RecursionError, UpdateDecodeError,
        ) as exc:
            logger.warning("[%s] rejected malformed update: %s", identity.tag, exc)
            return JSONResponse({"error": "Malformed update"}, status_code=400)

        if update is not None:
            await dispatcher.dispatch(update)
        return JSONResponse({"ok": True})

    app.add_api_route(
        identity.webhook_path,
        receive_update,
        methods=["POST"],
        name=f"webhook_{identity.name}",
        include_in_schema=False,
    )


_INDEX_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <title>Webhook Server</title>
  <style>
    body {{ font-family: Arial, sans-serif; max-width: 800px; margin: 50px auto; padding: 20px; }}
    h1 {{ color: #333; }}
    .endpoint {{ background: #f5f5f5; padding: 10px; margin: 10px 0; border-radius: 5px; }}
    .status {{ color: #28a745; font-weight: bold; }}
  </style>
</head>
<body>
  <h1>Webhook Server</h1>
  <p class="status">Сервер запущен и готов принимать webhook'и!</p>

  <h3>Доступные эндпоинты:</h3>
{endpoints}
  <div class="endpoint"><b>Health check:</b> GET /health</div>

  <h3>Как использовать:</h3>
  <ol>
    <li>Запустить туннель: <code>ssh -R 80:localhost:{port} nokey@localhost.run</code></li>
    <li>Получить публичный URL</li>
    <li>Установить WEBHOOK_URL или webhook в Telegram боте</li>
    <li>Начать общение с ботом</li>
  </ol>
</body>
</html>
"""


def _render_index(context: RelayContext) -> str:
    endpoints = "\n".join(
        f'  <div class="endpoint"><b>{escape(PROFILES[identity.name].description)}:</b> '
        f"POST {escape(identity.webhook_path)}</div>"
        for identity in context.registry
    )
    return _INDEX_TEMPLATE.format(endpoints=endpoints, port=context.config.port)
