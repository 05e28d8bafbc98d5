import httpx
import pytest
from fastapi.testclient import TestClient

from agrismart.api.deps import get_advisory_relay, get_event_sink, get_record_store
from agrismart.main import app
from agrismart.services.advisory_relay_service import AdvisoryRelay
from agrismart.services.analytics_service import InMemoryEventSink
from agrismart.services.storage_service import InMemoryRecordStore

UPSTREAM_URL = "https://upstream.test/api/v1/chat/completions"


def make_relay(handler, api_key="test-key") -> AdvisoryRelay:
    """Relay whose upstream is answered by `handler(request) -> httpx.Response`."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AdvisoryRelay(api_key=api_key, url=UPSTREAM_URL, model="test-model", client=client)


@pytest.fixture
def event_sink():
    return InMemoryEventSink()


@pytest.fixture
def record_store():
    return InMemoryRecordStore()


@pytest.fixture
def client(event_sink, record_store):
    app.dependency_overrides[get_event_sink] = lambda: event_sink
    app.dependency_overrides[get_record_store] = lambda: record_store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def use_relay():
    """Install a relay built from an upstream handler for the current test."""

    def _install(handler, api_key="test-key") -> AdvisoryRelay:
        relay = make_relay(handler, api_key=api_key)
        app.dependency_overrides[get_advisory_relay] = lambda: relay
        return relay

    return _install
