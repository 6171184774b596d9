from types import SimpleNamespace

import httpx
import groq
import pytest

from ask_data.config import settings
from ask_data.core.dataset_store import DatasetStore
from ask_data.core.ingestion import ingest_records


@pytest.fixture(autouse=True)
def no_llm_key(monkeypatch):
    """Keyword matching is the active tier unless a test installs a fake client."""
    monkeypatch.setattr(settings, "GROQ_API_KEY", None)


class FakeCompletions:
    def __init__(self, content=None, exc=None):
        self.content = content
        self.exc = exc
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.exc is not None:
            raise self.exc
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeGroq:
    def __init__(self, content=None, exc=None):
        self.completions = FakeCompletions(content, exc)
        self.chat = SimpleNamespace(completions=self.completions)
        self.timeouts = []


@pytest.fixture
def fake_groq(monkeypatch):
    """Install a fake Groq client on a module exposing `_get_client(timeout)`."""
    def install(module, content=None, exc=None):
        client = FakeGroq(content, exc)

        def _get_client(timeout):
            client.timeouts.append(timeout)
            return client

        monkeypatch.setattr(settings, "GROQ_API_KEY", "gsk_test")
        monkeypatch.setattr(module, "_get_client", _get_client)
        return client
    return install


@pytest.fixture
def timeout_error():
    request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
    return groq.APITimeoutError(request=request)


@pytest.fixture
def store():
    return DatasetStore()


@pytest.fixture
def cost_rows():
    return [
        {"indication": "Cancer", "cost": 5000},
        {"indication": "Cancer", "cost": 3000},
        {"indication": "Diabetes", "cost": 150},
    ]


@pytest.fixture
def cost_dataset_id(store, cost_rows):
    return ingest_records(cost_rows, "costs.csv", store)["datasetId"]
