from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any

import httpx
from loguru import logger
import pytest

import worldforge.llm.client as llm_client
from worldforge.config.schema import AppConfigRoot
from worldforge.domain.models import World


class _FakeModel:
    def __init__(self, responses: list[str] | None = None, error: Exception | None = None) -> None:
        self._responses = responses or [""]
        self._error = error
        self.calls = 0
        self.messages: list[Any] = []

    def invoke(self, messages):
        self.messages.append(messages)
        self.calls += 1
        if self._error is not None:
            raise self._error
        index = min(self.calls - 1, len(self._responses) - 1)
        return SimpleNamespace(content=self._responses[index])


def _make_config(*, retries: int = 0, base_url: str = "http://llm.test:8080") -> AppConfigRoot:
    return AppConfigRoot.model_validate(
        {
            "llm": {
                "base_url": base_url,
                "model": "fake-chat",
                "api_key_env": None,
                "retries": retries,
                "max_concurrency": 1,
            }
        }
    )


def _client(
    monkeypatch: pytest.MonkeyPatch,
    model: _FakeModel,
    *,
    retries: int = 0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> llm_client.TextGenerationClient:
    monkeypatch.setattr(llm_client, "_build_chat_model", lambda settings: model)
    return llm_client.TextGenerationClient(_make_config(retries=retries), transport=transport)


def test_generate_text_returns_model_reply(monkeypatch: pytest.MonkeyPatch) -> None:
    model = _FakeModel(["  A windswept realm.  "])
    client = _client(monkeypatch, model)

    text = asyncio.run(client.generate_text("system", "user"))

    assert text == "A windswept realm."
    assert model.calls == 1


def test_unreachable_model_falls_back_and_logs(monkeypatch: pytest.MonkeyPatch) -> None:
    model = _FakeModel(error=ConnectionError("connection refused"))
    client = _client(monkeypatch, model)

    records: list[Any] = []
    sink_id = logger.add(lambda message: records.append(message.record), level="WARNING")
    try:
        text = asyncio.run(client.generate_world_narrative({"name": "Aeloria"}))
    finally:
        logger.remove(sink_id)

    assert text == llm_client.FALLBACK_TEXT
    assert any("LLM call failed" in record["message"] for record in records)
    assert any(
        "fallback" in record["message"] and record["extra"].get("section") == "world" for record in records
    )


def test_empty_reply_is_retried_then_falls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    model = _FakeModel(["", "   "])
    client = _client(monkeypatch, model, retries=1)

    text = asyncio.run(client.generate_text("system", "user"))

    assert text == llm_client.FALLBACK_TEXT
    assert model.calls == 2


def test_complete_raises_after_retries(monkeypatch: pytest.MonkeyPatch) -> None:
    model = _FakeModel(error=TimeoutError("slow"))
    client = _client(monkeypatch, model)

    with pytest.raises(RuntimeError, match="LLM call failed after retries"):
        asyncio.run(client.complete("system", "user"))


def test_generate_text_from_json_embeds_pretty_json(monkeypatch: pytest.MonkeyPatch) -> None:
    model = _FakeModel(["ok"])
    client = _client(monkeypatch, model)

    asyncio.run(client.generate_text_from_json(World(name="Aeloria"), "Describe it."))

    system_message, user_message = model.messages[0]
    assert system_message.content == llm_client.NARRATIVE_SYSTEM_PROMPT
    assert user_message.content.startswith("Describe it.")
    assert '"name": "Aeloria"' in user_message.content
    assert '"historicFigures"' in user_message.content


def test_update_configuration_swaps_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _client(monkeypatch, _FakeModel(["ok"]))

    updated = client.update_configuration("http://other:9000/", "bigger-model")

    assert updated.base_url == "http://other:9000"
    assert client.settings.model == "bigger-model"

    kept = client.update_configuration("http://third:9000")
    assert kept.model == "bigger-model"

    with pytest.raises(ValueError):
        client.update_configuration("   ")
    assert client.settings.base_url == "http://third:9000"


def test_api_root_appends_v1_once() -> None:
    assert llm_client.api_root("http://localhost:8080") == "http://localhost:8080/v1"
    assert llm_client.api_root("https://api.openai.com/v1/") == "https://api.openai.com/v1"


def test_local_servers_get_placeholder_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("WORLDFORGE_LLM_API_KEY", raising=False)

    settings = llm_client.resolve_chat_settings(AppConfigRoot())

    assert settings.api_key == llm_client.LOCAL_API_KEY


def test_check_health_healthy(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json={"data": [{"id": "fake-chat"}]})

    client = _client(monkeypatch, _FakeModel(["ok"]), transport=httpx.MockTransport(handler))

    health = asyncio.run(client.check_health())

    assert health.available is True
    assert health.status == "Healthy"
    assert health.error_message is None
    assert seen == ["http://llm.test:8080/v1/models"]


def test_check_health_unhealthy_on_error_status(monkeypatch: pytest.MonkeyPatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="warming up")

    client = _client(monkeypatch, _FakeModel(["ok"]), transport=httpx.MockTransport(handler))

    health = asyncio.run(client.check_health())

    assert health.available is False
    assert health.status == "Unhealthy"
    assert health.error_message == "HTTP 503: warming up"


def test_check_health_unavailable_on_connection_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(monkeypatch, _FakeModel(["ok"]), transport=httpx.MockTransport(handler))

    health = asyncio.run(client.check_health())

    assert health.available is False
    assert health.status == "Unavailable"
    assert "connection refused" in (health.error_message or "")
    assert health.model_dump(by_alias=True)["baseUrl"] == "http://llm.test:8080"
