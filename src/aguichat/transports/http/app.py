"""
FastAPI HTTP Transport for AGUI Chat

Provides REST endpoints for chat and NL-to-SQL:
- /health - Liveness probe
- /ready - Readiness probe (probes the model provider)
- /api/conversations - Create and list conversations
- /api/chat - Non-streaming chat turn
- /api/chat/stream - Streaming chat turn as Server-Sent Events
- /api/nl2sql - Convert (and optionally run) a data question

NOTE: Do NOT add `from __future__ import annotations` to this file.
PEP 563 breaks FastAPI's runtime introspection for parameter sources.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from aguichat import __version__
from aguichat.chat.data import (
    AsyncpgQueryExecutor,
    DataQuestionService,
    QueryExecutor,
    create_db_pool,
)
from aguichat.chat.service import ChatService
from aguichat.common.telemetry import TelemetryConfig, init_telemetry, shutdown_telemetry
from aguichat.config import AguiChatConfig
from aguichat.exceptions import ConversionError, ProviderError
from aguichat.llm.factory import create_provider_from_config
from aguichat.llm.protocols import LLMProvider
from aguichat.nl2sql.converter import SQLConverter
from aguichat.nl2sql.schema import PostgresSchemaSource, SchemaSource

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


# Request models
class CreateConversationRequest(BaseModel):
    """Request body for POST /api/conversations."""

    title: str | None = Field(None, max_length=200)


class ChatRequest(BaseModel):
    """Request body for /api/chat and /api/chat/stream."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., min_length=1, max_length=20000)
    conversation_id: str | None = Field(None, alias="conversationId", max_length=100)


class NL2SQLRequest(BaseModel):
    """Request body for /api/nl2sql."""

    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(..., min_length=1, max_length=2000)
    table_hints: list[str] | None = Field(None, alias="tableHints", max_length=50)
    execute: bool = False


@dataclass
class AppServices:
    """Per-app service graph, filled at creation or during lifespan startup."""

    config: AguiChatConfig
    provider: LLMProvider | None = None
    chat: ChatService | None = None
    converter: SQLConverter | None = None
    schema_source: SchemaSource | None = None
    data: DataQuestionService | None = None
    db_pool: Any = None

    def wire(self, executor: QueryExecutor | None = None) -> None:
        if self.provider is None:
            return
        if self.chat is None:
            self.chat = ChatService(self.provider)
        if self.converter is None:
            self.converter = SQLConverter.from_config(self.provider, self.config)
        if self.data is None and self.schema_source is not None and executor is not None:
            self.data = DataQuestionService(
                self.provider, self.schema_source, executor, converter=self.converter
            )


def create_app(
    config: AguiChatConfig | None = None,
    provider: LLMProvider | None = None,
    schema_source: SchemaSource | None = None,
    executor: QueryExecutor | None = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        config: Application configuration (loaded from env if omitted)
        provider: Model provider; built from config at startup if omitted
        schema_source: Schema rows for NL-to-SQL; from PostgreSQL if omitted
            and a postgres_url is configured
        executor: Query executor for data questions

    Returns:
        FastAPI application instance
    """
    services = AppServices(
        config=config or AguiChatConfig(),
        provider=provider,
        schema_source=schema_source,
    )
    services.wire(executor)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler."""
        cfg = services.config
        logger.info(f"Starting {cfg.app_title} (provider: {cfg.llm_provider})")

        if cfg.telemetry_enabled:
            init_telemetry(
                TelemetryConfig(service_version=__version__, otlp_endpoint=cfg.otlp_endpoint)
            )

        if services.provider is None:
            services.provider = create_provider_from_config(cfg)

        data_executor = executor
        if cfg.postgres_url and (services.schema_source is None or data_executor is None):
            services.db_pool = await create_db_pool(
                cfg.postgres_url,
                min_size=cfg.postgres_pool_min_size,
                max_size=cfg.postgres_pool_max_size,
            )
            if services.schema_source is None:
                services.schema_source = PostgresSchemaSource(
                    services.db_pool, schema_name=cfg.postgres_schema
                )
            if data_executor is None:
                data_executor = AsyncpgQueryExecutor(
                    services.db_pool, timeout=cfg.query_timeout_seconds
                )

        services.wire(data_executor)
        logger.info("AGUI chat service initialized")
        yield

        logger.info("Shutting down AGUI chat service")
        if services.db_pool is not None:
            await services.db_pool.close()
        if cfg.telemetry_enabled:
            shutdown_telemetry()

    app = FastAPI(
        title=services.config.app_title,
        description="Chat and NL-to-SQL with structured AGUI responses",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.services = services

    def get_chat() -> ChatService:
        if services.chat is None:
            raise HTTPException(status_code=503, detail="Chat service not initialized")
        return services.chat

    @app.get("/health")
    async def liveness_check() -> JSONResponse:
        """Liveness probe - just checks if process is alive."""
        return JSONResponse(content={"status": "alive"}, status_code=200)

    @app.get("/ready")
    async def readiness_check() -> JSONResponse:
        """Readiness probe - checks the model provider."""
        provider = services.provider
        if provider is None:
            return JSONResponse(
                content={"status": "not_ready", "provider": None},
                status_code=503,
            )

        available = await provider.is_available()
        return JSONResponse(
            content={
                "status": "ready" if available else "not_ready",
                "provider": provider.provider_name,
                "model": provider.model_name,
                "database": services.schema_source is not None,
            },
            status_code=200 if available else 503,
        )

    @app.post("/api/conversations")
    async def create_conversation_endpoint(body: CreateConversationRequest) -> JSONResponse:
        """Create an empty conversation."""
        conversation = await get_chat().create_conversation(body.title)
        return JSONResponse(content=conversation.to_dict(), status_code=201)

    @app.get("/api/conversations")
    async def list_conversations_endpoint() -> JSONResponse:
        """List conversations, most recently updated first."""
        conversations = await get_chat().list_conversations()
        return JSONResponse(
            content={
                "conversations": [c.to_dict(include_messages=False) for c in conversations],
                "count": len(conversations),
            }
        )

    @app.get("/api/conversations/{conversation_id}")
    async def get_conversation_endpoint(conversation_id: str) -> JSONResponse:
        """Get one conversation with its messages."""
        conversation = await get_chat().get_conversation(conversation_id)
        if conversation is None:
            raise HTTPException(status_code=404, detail="Conversation not found")
        return JSONResponse(content=conversation.to_dict())

    async def _conversation_id(chat: ChatService, body: ChatRequest) -> str:
        if body.conversation_id:
            return body.conversation_id
        conversation = await chat.create_conversation()
        return conversation.id

    @app.post("/api/chat")
    async def chat_endpoint(body: ChatRequest) -> JSONResponse:
        """Run one chat turn and return the parsed assistant message."""
        chat = get_chat()
        conversation_id = await _conversation_id(chat, body)
        try:
            message = await chat.send_message(conversation_id, body.message, stream=False)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except ProviderError as e:
            logger.error(f"Chat request failed: {e}")
            raise HTTPException(status_code=502, detail=e.message)

        return JSONResponse(
            content={"conversationId": conversation_id, "message": message.to_dict()}
        )

    @app.post("/api/chat/stream")
    async def chat_stream_endpoint(body: ChatRequest) -> StreamingResponse:
        """
        Run one chat turn as Server-Sent Events.

        Each frame is ``data: <event json>``; the last frame is always a
        ``done`` or ``error`` event.
        """
        chat = get_chat()
        conversation_id = await _conversation_id(chat, body)
        try:
            events = await chat.send_message(conversation_id, body.message, stream=True)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        async def event_stream() -> AsyncGenerator[str, None]:
            # Leaving this block (including on client disconnect) closes upstream
            async with events:
                async for event in events:
                    yield event.to_sse()

        return StreamingResponse(
            event_stream(),
            media_type="text/event-stream",
            headers={**SSE_HEADERS, "X-Conversation-ID": conversation_id},
        )

    @app.post("/api/nl2sql")
    async def nl2sql_endpoint(body: NL2SQLRequest) -> JSONResponse:
        """Convert a question to SQL, or answer it end to end with execute=true."""
        if body.execute:
            if services.data is None:
                raise HTTPException(status_code=503, detail="Database not configured")
            envelope = await services.data.answer(body.query, body.table_hints)
            return JSONResponse(content=envelope.to_dict())

        if services.converter is None or services.schema_source is None:
            raise HTTPException(status_code=503, detail="Database not configured")

        schema = await services.schema_source.load_schema()
        try:
            result = await services.converter.convert(body.query, schema, body.table_hints)
        except ConversionError as e:
            logger.error(f"NL-to-SQL failed: {e}")
            raise HTTPException(status_code=502, detail=e.message)
        return JSONResponse(content=result.to_dict())

    return app


async def run_http_server(
    config: AguiChatConfig | None = None,
    host: str = "0.0.0.0",
    port: int = 8000,
) -> None:
    """
    Run the HTTP server.

    Args:
        config: Application configuration
        host: Bind address
        port: Bind port
    """
    import uvicorn

    cfg = config or AguiChatConfig()
    app = create_app(cfg)

    logger.info(f"Starting HTTP server on {host}:{port}")
    server_config = uvicorn.Config(app, host=host, port=port, log_level=cfg.log_level.lower())
    server = uvicorn.Server(server_config)
    await server.serve()
