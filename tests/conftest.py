import os

os.environ["AZURE_OPENAI_ENDPOINT"] = "https://contoso.openai.azure.com/"
os.environ["AZURE_OPENAI_API_KEY"] = "test-key"
os.environ["AZURE_OPENAI_DEPLOYMENT"] = "gpt-test"
os.environ["AZURE_OPENAI_API_VERSION"] = "2024-02-15-preview"
os.environ["PORT"] = "3001"
os.environ["STREAM_CHUNK_DELAY"] = "0"
os.environ["HANDBOOK_PDF_PATH"] = "tests/data/does-not-exist.pdf"

from typing import List

import pytest

from assistant.clients.chat_model import ChatResult
from assistant.core.memory import SessionStore
from assistant.errors import DocumentUnavailable, ModelCallFailed


HANDBOOK_CHUNKS = [
    "Welcome to Contoso Electronics. This handbook describes company rules.",
    "Our vacation policy allows 15 days of paid leave per year.",
    "Expense reports must be filed within 30 days of purchase.",
]


class EchoModelClient:
    """Replies with the last user message and remembers every message list it saw."""

    def __init__(self):
        self.calls: List[list] = []

    def complete(self, messages):
        self.calls.append(list(messages))
        return ChatResult(reply=f"echo: {messages[-1].content}", usage={"total_tokens": 7})


class FailingModelClient:
    def __init__(self, status_code=429):
        self.status_code = status_code
        self.calls = 0

    def complete(self, messages):
        self.calls += 1
        raise ModelCallFailed("Rate limit exceeded", status_code=self.status_code)


class StaticDocuments:
    def __init__(self, chunks):
        self._chunks = list(chunks)
        self.calls = 0

    def chunks(self):
        self.calls += 1
        return list(self._chunks)


class MissingDocuments:
    def chunks(self):
        raise DocumentUnavailable("Employee handbook PDF not found on the server.")


@pytest.fixture
def echo_model():
    return EchoModelClient()


@pytest.fixture
def documents():
    return StaticDocuments(HANDBOOK_CHUNKS)


@pytest.fixture
def sessions():
    return SessionStore(max_sessions=10, session_ttl_hours=1)
