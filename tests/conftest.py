"""
Pytest configuration and fixtures
"""
from typing import Any, List

import pytest
from langchain_core.runnables import RunnableLambda

from photo_poem.decision import ToneStructureDecider
from photo_poem.schema_models import GenerationRequest, ToneAndStructure

PHOTO = "data:image/png;base64,AAA="


class StubLLM:
    """Stands in for GeminiLLM; records every request and answers with a fixed payload."""

    def __init__(self, payload: Any = None, error: Exception = None):
        self.payload = {"title": "T", "poem": "P"} if payload is None else payload
        self.error = error
        self.requests: List[GenerationRequest] = []

    def generate_structured(self, request, output_schema):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.payload

    async def agenerate_structured(self, request, output_schema):
        return self.generate_structured(request, output_schema)


class CountingDecider(ToneStructureDecider):
    def __init__(self, tone: str = "melancholic", structure: str = "sonnet"):
        self.tone = tone
        self.structure = structure
        self.calls: List[str] = []

    def decide(self, photo_data_uri: str) -> ToneAndStructure:
        self.calls.append(photo_data_uri)
        return ToneAndStructure(tone=self.tone, structure=self.structure)


class FakeChatModel:
    """Minimal chat model exposing with_structured_output(), answering through a RunnableLambda."""

    def __init__(self, result: Any = None, error: Exception = None):
        self.result = result
        self.error = error
        self.messages = None
        self.schema = None

    def with_structured_output(self, schema, include_raw=False):
        self.schema = schema

        def respond(messages):
            self.messages = messages
            if self.error is not None:
                raise self.error
            return self.result

        return RunnableLambda(respond)


@pytest.fixture
def photo() -> str:
    return PHOTO


@pytest.fixture
def stub_llm() -> StubLLM:
    return StubLLM()


@pytest.fixture
def decider() -> CountingDecider:
    return CountingDecider()


@pytest.fixture
def no_api_key(monkeypatch):
    """Removes every way the Gemini client could find credentials."""
    from photo_poem import config

    monkeypatch.setattr(config, "api_key", None)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
