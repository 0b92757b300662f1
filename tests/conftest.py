from __future__ import annotations

import json
from typing import Any, Callable, Union

import httpx
import pytest
from fastapi.testclient import TestClient

from codeduel.config import Settings
from codeduel.llm.client import LLMClient
from codeduel.main import create_app

OPENAI_KEY = "sk-test-openai-secret"
ANTHROPIC_KEY = "sk-ant-test-secret"

Reply = Union[httpx.Response, Exception, Callable[[httpx.Request], httpx.Response]]


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "openai_api_key": OPENAI_KEY,
        "anthropic_api_key": ANTHROPIC_KEY,
        "static_dir": "does-not-exist-static",
        "log_level": "INFO",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def openai_reply(content: Any) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "id": "chatcmpl-test",
            "choices": [
                {"index": 0, "message": {"role": "assistant", "content": content}}
            ],
        },
    )


def anthropic_reply(text: str) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "id": "msg_test",
            "type": "message",
            "content": [{"type": "text", "text": text}],
        },
    )


class MockProvider:
    """httpx transport handler that records requests and replays queued replies."""

    def __init__(self) -> None:
        self.calls: list[httpx.Request] = []
        self.replies: list[Reply] = []

    def queue(self, *replies: Reply) -> None:
        self.replies.extend(replies)

    def body(self, index: int = -1) -> dict[str, Any]:
        return json.loads(self.calls[index].content)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if not self.replies:
            raise AssertionError(f"unexpected provider call to {request.url}")
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(request)
        return reply


@pytest.fixture
def provider() -> MockProvider:
    return MockProvider()


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def client(settings: Settings, provider: MockProvider):
    llm = LLMClient(settings, transport=httpx.MockTransport(provider))
    app = create_app(settings, llm)
    with TestClient(app) as test_client:
        yield test_client
