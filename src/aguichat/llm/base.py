"""
Base Chat Provider

Shared implementation of the provider contract. Backend families only
supply three transport hooks (_complete, _stream, _list_models); request
framing, deadline handling, error wrapping, envelope parsing and stream
aggregation live here.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator, AsyncIterator, Awaitable
from typing import Any, ClassVar, TypeVar

from aguichat.agui.parser import parse_envelope
from aguichat.agui.stream import EventStream, StreamFragment, aggregate_stream
from aguichat.common.logging import truncate_for_log
from aguichat.common.telemetry import get_meter, get_tracer
from aguichat.exceptions import (
    AguiChatError,
    ConfigurationError,
    ProviderError,
    StreamTransportError,
)
from aguichat.llm.prompts import AGUI_SYSTEM_PROMPT
from aguichat.llm.protocols import (
    ChatMessage,
    ChatOptions,
    ChatResult,
    MessageRole,
    RawCompletion,
)
from aguichat.llm.resolver import ProviderConfig

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)
meter = get_meter(__name__)

_requests_total = meter.create_counter(
    name="aguichat_llm_requests_total",
    description="Provider calls by provider, mode and outcome",
    unit="1",
)
_tokens_total = meter.create_counter(
    name="aguichat_llm_tokens_total",
    description="Tokens reported by providers",
    unit="1",
)

T = TypeVar("T")


class BaseChatProvider(ABC):
    """
    Template for a backend family.

    Subclasses create their SDK client in ``_create_client`` and translate
    between ChatMessage lists and the SDK wire format in the hooks.
    """

    requires_api_key: ClassVar[bool] = True

    def __init__(
        self,
        config: ProviderConfig,
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4000,
        timeout: float | None = None,
        system_prompt: str = AGUI_SYSTEM_PROMPT,
    ):
        """
        Initialize provider.

        Args:
            config: Resolved connection parameters
            model: Model override (defaults to config.default_model)
            temperature: Default sampling temperature
            max_tokens: Default output length cap
            timeout: Default deadline in seconds, None for no deadline
            system_prompt: Output contract prepended by chat/stream_chat

        Raises:
            ConfigurationError: If the credential or model is missing
        """
        self._config = config
        self._model = (model or config.default_model or "").strip()
        self._defaults = ChatOptions(
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )
        self._system_prompt = system_prompt
        self._validate()
        self._client = self._create_client()
        logger.info(f"LLM provider initialized: {self.provider_name} - {self._model}")

    def _validate(self) -> None:
        if self.requires_api_key and not self._config.api_key:
            raise ConfigurationError("API key is required", field="api_key")
        if not self._model:
            raise ConfigurationError("Model is required", field="model")

    @property
    def provider_name(self) -> str:
        return self._config.selector

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def config(self) -> ProviderConfig:
        return self._config

    # ------------------------------------------------------------------
    # Transport hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def _create_client(self) -> Any:
        """Create the SDK client for this family."""

    @abstractmethod
    async def _complete(self, messages: list[ChatMessage], options: ChatOptions) -> RawCompletion:
        """Issue one non-streaming request."""

    @abstractmethod
    def _stream(
        self,
        messages: list[ChatMessage],
        options: ChatOptions,
    ) -> AsyncGenerator[StreamFragment, None]:
        """
        Yield raw fragments of one streaming request.

        Must open the request lazily on first iteration and release the SDK
        stream in a ``finally`` block.
        """

    @abstractmethod
    async def _list_models(self) -> Any:
        """Cheap capability probe; raises on transport failure."""

    # ------------------------------------------------------------------
    # Public contract
    # ------------------------------------------------------------------

    def _resolve_options(self, options: ChatOptions | None) -> ChatOptions:
        if options is None:
            return self._defaults
        return ChatOptions(
            temperature=(
                options.temperature
                if options.temperature is not None
                else self._defaults.temperature
            ),
            max_tokens=(
                options.max_tokens if options.max_tokens is not None else self._defaults.max_tokens
            ),
            timeout=options.timeout if options.timeout is not None else self._defaults.timeout,
        )

    def _with_system_prompt(
        self,
        messages: list[ChatMessage],
        system_prompt: str,
    ) -> list[ChatMessage]:
        if not messages:
            raise ValueError("messages must not be empty")
        return [ChatMessage(role=MessageRole.SYSTEM, content=system_prompt), *messages]

    async def _await_transport(self, call: Awaitable[T], timeout: float | None) -> T:
        """Await a transport call, mapping every failure to ProviderError."""
        try:
            if timeout is not None:
                return await asyncio.wait_for(call, timeout)
            return await call
        except AguiChatError:
            raise
        except TimeoutError as e:
            raise ProviderError(
                self.provider_name, f"request timed out after {timeout}s", e
            ) from e
        except Exception as e:
            raise ProviderError(self.provider_name, str(e) or type(e).__name__, e) from e

    async def complete(
        self,
        messages: list[ChatMessage],
        system_prompt: str,
        options: ChatOptions | None = None,
    ) -> RawCompletion:
        """
        Non-streaming call with a caller-supplied system prompt.

        Returns the raw text; no envelope parsing is applied.

        Raises:
            ProviderError: On any transport failure, including deadline expiry
        """
        resolved = self._resolve_options(options)
        framed = self._with_system_prompt(messages, system_prompt)

        with tracer.start_as_current_span("llm.complete") as span:
            span.set_attribute("llm.provider", self.provider_name)
            span.set_attribute("llm.model", self._model)
            span.set_attribute("llm.message_count", len(framed))
            if resolved.temperature is not None:
                span.set_attribute("llm.temperature", resolved.temperature)
            if resolved.max_tokens is not None:
                span.set_attribute("llm.max_tokens", resolved.max_tokens)

            logger.info(f"Calling LLM: {self.provider_name} - {self._model}")
            try:
                raw = await self._await_transport(
                    self._complete(framed, resolved), resolved.timeout
                )
            except ProviderError as e:
                span.record_exception(e)
                _requests_total.add(
                    1, {"provider": self.provider_name, "mode": "complete", "outcome": "error"}
                )
                logger.error(f"LLM chat error ({self.provider_name} - {self._model}): {e}")
                raise

            span.set_attribute("llm.total_tokens", raw.total_tokens)
            _requests_total.add(
                1, {"provider": self.provider_name, "mode": "complete", "outcome": "ok"}
            )
            _tokens_total.add(raw.total_tokens, {"provider": self.provider_name})
            return raw

    async def chat(
        self,
        messages: list[ChatMessage],
        options: ChatOptions | None = None,
    ) -> ChatResult:
        """
        Non-streaming chat with the AGUI contract.

        Raises:
            ProviderError: On any transport failure
        """
        start = time.perf_counter()
        raw = await self.complete(messages, self._system_prompt, options)
        elapsed_ms = int((time.perf_counter() - start) * 1000)

        logger.debug(f"{self.provider_name} raw response: {truncate_for_log(raw.text)}")
        logger.info(f"LLM response received in {elapsed_ms}ms")
        return ChatResult(
            envelope=parse_envelope(raw.text),
            model=raw.model or self._model,
            total_tokens=raw.total_tokens,
            elapsed_ms=elapsed_ms,
        )

    def stream_chat(
        self,
        messages: list[ChatMessage],
        options: ChatOptions | None = None,
    ) -> EventStream:
        """
        Streaming chat with the AGUI contract.

        Returns immediately; the request is issued when iteration starts.
        Transport failures surface as a terminal ``error`` event.
        """
        resolved = self._resolve_options(options)
        framed = self._with_system_prompt(messages, self._system_prompt)
        fragments = self._guarded_fragments(framed, resolved)
        return EventStream(
            aggregate_stream(fragments),
            metadata={"model": self._model, "provider": self.provider_name},
        )

    async def _guarded_fragments(
        self,
        messages: list[ChatMessage],
        options: ChatOptions,
    ) -> AsyncGenerator[StreamFragment, None]:
        """Wrap _stream with per-fragment deadlines and error mapping."""
        upstream: AsyncIterator[StreamFragment] = self._stream(messages, options)
        # Not start_as_current_span: the generator may be closed from another context
        span = tracer.start_span(
            "llm.stream_chat",
            attributes={"llm.provider": self.provider_name, "llm.model": self._model},
        )
        outcome = "error"
        logger.info(f"Streaming LLM: {self.provider_name} - {self._model}")
        try:
            while True:
                try:
                    if options.timeout is not None:
                        fragment = await asyncio.wait_for(upstream.__anext__(), options.timeout)
                    else:
                        fragment = await upstream.__anext__()
                except StopAsyncIteration:
                    outcome = "ok"
                    return
                except AguiChatError:
                    raise
                except TimeoutError as e:
                    raise StreamTransportError(
                        self.provider_name,
                        f"no data within {options.timeout}s",
                        e,
                    ) from e
                except Exception as e:
                    span.record_exception(e)
                    raise StreamTransportError(
                        self.provider_name, str(e) or type(e).__name__, e
                    ) from e

                if fragment.total_tokens:
                    span.set_attribute("llm.total_tokens", fragment.total_tokens)
                if fragment.finish_reason:
                    outcome = "ok"
                yield fragment
        finally:
            _requests_total.add(
                1, {"provider": self.provider_name, "mode": "stream", "outcome": outcome}
            )
            span.end()
            await upstream.aclose()

    async def is_available(self) -> bool:
        """
        Probe the backend by listing models.

        Never raises: any failure is logged and reported as False.
        """
        try:
            await self._await_transport(self._list_models(), self._defaults.timeout)
        except Exception as e:
            logger.error(f"{self.provider_name} provider not available: {e}")
            return False
        return True
