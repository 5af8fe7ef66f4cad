from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from datetime import datetime
import os
import time
from typing import Any, Callable, Mapping

import httpx
import orjson
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI
from loguru import logger
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from worldforge.config.schema import AppConfigRoot
from worldforge.domain.ids import utc_now
from worldforge.llm.prompts import (
    CHARACTER_PROMPT,
    EVENT_PROMPT,
    LOCATION_PROMPT,
    NARRATIVE_SYSTEM_PROMPT,
    WORLD_NARRATIVE_PROMPT,
    json_narrative_prompt,
)

FALLBACK_TEXT = "Unable to generate text at this time. Please check the LLM server connection."
LOCAL_API_KEY = "not-needed"


@dataclass(frozen=True)
class ChatSettings:
    base_url: str
    model: str
    temperature: float
    max_tokens: int | None
    timeout_s: int
    health_timeout_s: int
    max_concurrency: int
    retries: int
    api_key_env: str | None
    api_key: str


class LLMServiceHealth(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    available: bool
    status: str
    base_url: str
    model: str
    response_time_ms: int = 0
    error_message: str | None = None
    checked_at: datetime


def api_root(base_url: str) -> str:
    """OpenAI-compatible servers expose everything under ``/v1``."""
    trimmed = base_url.rstrip("/")
    return trimmed if trimmed.endswith("/v1") else f"{trimmed}/v1"


def resolve_chat_settings(config: AppConfigRoot) -> ChatSettings:
    llm = config.llm
    api_key = os.getenv(llm.api_key_env) if llm.api_key_env else None
    return ChatSettings(
        base_url=llm.base_url,
        model=llm.model,
        temperature=llm.temperature,
        max_tokens=llm.max_tokens,
        timeout_s=llm.timeout_s,
        health_timeout_s=llm.health_timeout_s,
        max_concurrency=llm.max_concurrency,
        retries=llm.retries,
        api_key_env=llm.api_key_env,
        # Local servers ignore the key but the OpenAI SDK insists on one.
        api_key=api_key or LOCAL_API_KEY,
    )


def _build_chat_model(settings: ChatSettings) -> ChatOpenAI:
    kwargs: dict[str, Any] = {
        "model": settings.model,
        "temperature": settings.temperature,
        "timeout": settings.timeout_s,
        "base_url": api_root(settings.base_url),
        "api_key": settings.api_key,
        # Attempts are counted by TextGenerationClient.
        "max_retries": 0,
    }
    if settings.max_tokens is not None:
        kwargs["max_tokens"] = settings.max_tokens
    return ChatOpenAI(**kwargs)


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    raise TypeError(f"Type is not JSON serializable: {type(value).__name__}")


def to_pretty_json(data: Any) -> str:
    return orjson.dumps(data, default=_json_default, option=orjson.OPT_INDENT_2).decode("utf-8")


class TextGenerationClient:
    """Narrative text from an OpenAI-compatible chat server.

    Every ``generate_*`` coroutine degrades to ``FALLBACK_TEXT`` when the server
    cannot be reached or answers with nothing usable.
    """

    def __init__(
        self,
        config: AppConfigRoot,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._transport = transport
        settings = resolve_chat_settings(config)
        # Settings and model are swapped together by update_configuration.
        self._state: tuple[ChatSettings, ChatOpenAI] = (settings, _build_chat_model(settings))
        self._async_semaphore = asyncio.Semaphore(max(1, settings.max_concurrency))

    @property
    def settings(self) -> ChatSettings:
        return self._state[0]

    def update_configuration(self, base_url: str, model: str | None = None) -> ChatSettings:
        stripped = base_url.strip().rstrip("/")
        if not stripped:
            raise ValueError("base_url must not be empty")
        current = self.settings
        updated = replace(current, base_url=stripped, model=(model or "").strip() or current.model)
        self._state = (updated, _build_chat_model(updated))
        logger.info("LLM configuration updated base_url={} model={}", updated.base_url, updated.model)
        return updated

    def _build_log_context(
        self,
        settings: ChatSettings,
        *,
        attempt: int | None = None,
        attempts_total: int | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        merged: dict[str, Any] = {
            "base_url": settings.base_url,
            "model": settings.model,
        }
        if context:
            for key, value in context.items():
                if value is not None:
                    merged[key] = value
        if attempt is not None and attempts_total is not None:
            merged["attempt"] = f"{attempt}/{attempts_total}"
        return merged

    async def _invoke_on_worker(self, fn: Callable[..., Any], *args: Any) -> Any:
        async with self._async_semaphore:
            return await asyncio.to_thread(fn, *args)

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        context: Mapping[str, Any] | None = None,
    ) -> str:
        settings, model = self._state
        attempts = max(1, settings.retries + 1)
        last_exc: Exception | None = None
        messages = [SystemMessage(system_prompt), HumanMessage(user_prompt)]

        for attempt in range(attempts):
            attempt_started = time.perf_counter()
            try:
                response = await self._invoke_on_worker(model.invoke, messages)
                text = str(response.content).strip()
                if not text:
                    raise ValueError("Empty LLM response")
                return text
            except Exception as exc:  # noqa: BLE001
                last_exc = exc
                elapsed_ms = int((time.perf_counter() - attempt_started) * 1000)
                log = logger.bind(
                    **self._build_log_context(
                        settings,
                        attempt=attempt + 1,
                        attempts_total=attempts,
                        context=context,
                    )
                )
                if self.config.observability.log_retry_attempts:
                    log.warning(
                        "LLM call failed elapsed_ms={} error_type={} error={}",
                        elapsed_ms,
                        type(exc).__name__,
                        exc,
                    )
                if attempt < attempts - 1:
                    await asyncio.sleep(min(0.5 * (2**attempt), 4.0))

        raise RuntimeError("LLM call failed after retries") from last_exc

    async def generate_text(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        context: Mapping[str, Any] | None = None,
    ) -> str:
        try:
            return await self.complete(system_prompt, user_prompt, context=context)
        except RuntimeError as exc:
            logger.bind(**self._build_log_context(self.settings, context=context)).warning(
                "Text generation fallback due to LLM error: {}", exc
            )
            return FALLBACK_TEXT

    async def generate_text_from_json(
        self,
        data: Any,
        prompt: str,
        *,
        context: Mapping[str, Any] | None = None,
    ) -> str:
        user_prompt = json_narrative_prompt(prompt, to_pretty_json(data))
        return await self.generate_text(NARRATIVE_SYSTEM_PROMPT, user_prompt, context=context)

    async def generate_world_narrative(self, world_data: Any) -> str:
        return await self.generate_text_from_json(world_data, WORLD_NARRATIVE_PROMPT, context={"section": "world"})

    async def generate_character_description(self, character_data: Any) -> str:
        return await self.generate_text_from_json(character_data, CHARACTER_PROMPT, context={"section": "characters"})

    async def generate_location_description(self, place_data: Any) -> str:
        return await self.generate_text_from_json(place_data, LOCATION_PROMPT, context={"section": "places"})

    async def generate_event_narrative(self, event_data: Any) -> str:
        return await self.generate_text_from_json(event_data, EVENT_PROMPT, context={"section": "events"})

    async def check_health(self) -> LLMServiceHealth:
        settings = self.settings
        started = time.perf_counter()
        url = f"{api_root(settings.base_url)}/models"
        headers = {"User-Agent": "worldforge", "Authorization": f"Bearer {settings.api_key}"}

        try:
            async with httpx.AsyncClient(timeout=settings.health_timeout_s, transport=self._transport) as http:
                response = await http.get(url, headers=headers)
        except httpx.HTTPError as exc:
            elapsed_ms = int((time.perf_counter() - started) * 1000)
            logger.warning("LLM health check failed url={} error_type={} error={}", url, type(exc).__name__, exc)
            return LLMServiceHealth(
                available=False,
                status="Unavailable",
                base_url=settings.base_url,
                model=settings.model,
                response_time_ms=elapsed_ms,
                error_message=str(exc) or type(exc).__name__,
                checked_at=utc_now(),
            )

        elapsed_ms = int((time.perf_counter() - started) * 1000)
        if response.is_success:
            return LLMServiceHealth(
                available=True,
                status="Healthy",
                base_url=settings.base_url,
                model=settings.model,
                response_time_ms=elapsed_ms,
                checked_at=utc_now(),
            )

        logger.warning("LLM health check returned status={} url={}", response.status_code, url)
        return LLMServiceHealth(
            available=False,
            status="Unhealthy",
            base_url=settings.base_url,
            model=settings.model,
            response_time_ms=elapsed_ms,
            error_message=f"HTTP {response.status_code}: {response.text[:200]}",
            checked_at=utc_now(),
        )
