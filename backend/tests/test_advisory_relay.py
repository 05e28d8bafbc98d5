import json

import httpx
import pytest

from agrismart.core.config import settings
from agrismart.schemas.advisory import AdvisoryRequest
from agrismart.services.advisory_relay_service import (
    NOT_SPECIFIED,
    SYSTEM_INSTRUCTION,
    AdvisoryRelay,
    AdvisoryValidationError,
    RelayFailure,
    build_prompt,
    clean_recommendation,
    validate_advisory_request,
)

MINIMAL = {"soilType": "Clay", "cropType": "Rice", "season": "Kharif"}

UPSTREAM_TEXT = (
    "**Recommended blend:** 20-10-10\n"
    "```text\n"
    "Urea: 50 kg/acre\n"
    "```\n"
    "Apply in **two** splits.\n"
)


def _completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


# ---------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------
def test_prompt_fills_missing_optionals_with_not_specified():
    prompt = build_prompt(validate_advisory_request(MINIMAL))
    assert prompt.count(NOT_SPECIFIED) == 2
    assert "Soil Type: Clay" in prompt
    assert "Crop Type: Rice" in prompt
    assert "Season: Kharif" in prompt


def test_prompt_uses_optional_fields_when_given():
    req = validate_advisory_request({**MINIMAL, "location": "Punjab", "nutrients": "N low"})
    prompt = build_prompt(req)
    assert "Location: Punjab" in prompt
    assert "Current Nutrient Levels: N low" in prompt
    assert NOT_SPECIFIED not in prompt


def test_clean_recommendation():
    cleaned = clean_recommendation(UPSTREAM_TEXT)
    assert cleaned == "Recommended blend: 20-10-10\nUrea: 50 kg/acre\nApply in two splits."
    assert clean_recommendation("  stray ** marker  ") == "stray  marker"
    assert clean_recommendation("") == ""


def test_clean_recommendation_drops_fence_glued_to_text():
    cleaned = clean_recommendation("Use this:\n```\nUrea 50 kg```\nDone")
    assert "```" not in cleaned
    assert cleaned == "Use this:\nUrea 50 kg\nDone"
    assert clean_recommendation("Mix ```DAP``` early") == "Mix DAP early"


@pytest.mark.parametrize("missing", ["soilType", "cropType", "season"])
def test_missing_required_field(missing):
    payload = dict(MINIMAL)
    payload[missing] = "  " if missing == "cropType" else None
    with pytest.raises(AdvisoryValidationError) as err:
        validate_advisory_request(payload)
    assert err.value.fields == [missing]
    assert missing in str(err.value)


def test_season_is_normalized_and_checked():
    assert validate_advisory_request({**MINIMAL, "season": "year-round"}).season == "Year-round"
    with pytest.raises(AdvisoryValidationError):
        validate_advisory_request({**MINIMAL, "season": "Monsoon"})


@pytest.mark.asyncio
async def test_relay_sends_single_turn_chat_request():
    seen = {}

    def handler(request: httpx.Request):
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=_completion("**ok**"))

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        relay = AdvisoryRelay("k-123", "https://upstream.test/chat", "some/model", max_tokens=1000, temperature=0.7, client=client)
        text = await relay.recommend(AdvisoryRequest(soil_type="Sandy", crop_type="Maize", season="Rabi"))

    assert text == "ok"
    assert seen["auth"] == "Bearer k-123"
    body = seen["body"]
    assert body["model"] == "some/model"
    assert body["max_tokens"] == 1000
    assert body["temperature"] == 0.7
    assert [m["role"] for m in body["messages"]] == ["system", "user"]
    assert body["messages"][0]["content"] == SYSTEM_INSTRUCTION


@pytest.mark.asyncio
async def test_relay_without_credentials_fails_before_calling_upstream():
    def handler(request):
        raise AssertionError("upstream must not be called")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        relay = AdvisoryRelay(None, "https://upstream.test/chat", "m", client=client)
        with pytest.raises(RelayFailure):
            await relay.recommend(AdvisoryRequest(soil_type="Sandy", crop_type="Maize", season="Rabi"))


# ---------------------------------------------------------------------
# HTTP contract
# ---------------------------------------------------------------------
def test_post_success(client, use_relay, record_store, event_sink):
    prompts = []

    def handler(request):
        prompts.append(json.loads(request.content)["messages"][1]["content"])
        return httpx.Response(200, json=_completion(UPSTREAM_TEXT))

    use_relay(handler)
    resp = client.post("/api/fertilizer-recommend", json=MINIMAL)

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert "**" not in body["recommendation"]
    assert "```" not in body["recommendation"]
    assert body["inputData"] == {
        "soilType": "Clay", "cropType": "Rice", "season": "Kharif", "location": None, "nutrients": None,
    }
    assert prompts[0].count("Not specified") == 2
    assert record_store.records[body["id"]]["kind"] == "advisory"
    assert event_sink.names() == ["advisory_requested"]


def test_post_missing_season_is_client_error(client, use_relay):
    def handler(request):
        raise AssertionError("upstream must not be called")

    use_relay(handler)
    resp = client.post("/api/fertilizer-recommend", json={"soilType": "Clay", "cropType": "Rice"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Missing required fields: season"}


def test_upstream_error_is_passed_through(client, use_relay, record_store):
    use_relay(lambda request: httpx.Response(429, json={"error": {"message": "Rate limit exceeded"}}))
    resp = client.post("/api/fertilizer-recommend", json=MINIMAL)
    assert resp.status_code == 429
    assert resp.json() == {"error": "Rate limit exceeded"}
    assert record_store.records == {}


def test_upstream_error_without_json_body(client, use_relay):
    use_relay(lambda request: httpx.Response(502, text="<html>Bad gateway</html>"))
    resp = client.post("/api/fertilizer-recommend", json=MINIMAL)
    assert resp.status_code == 502
    assert resp.json() == {"error": "API call failed"}


def test_network_failure_hides_details_in_production(client, use_relay, monkeypatch):
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")

    def handler(request):
        raise httpx.ConnectError("connection refused by upstream.test", request=request)

    use_relay(handler)
    resp = client.post("/api/fertilizer-recommend", json=MINIMAL)
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to get fertilizer recommendation"}


def test_failure_details_outside_production(client, use_relay, monkeypatch):
    monkeypatch.setattr(settings, "ENVIRONMENT", "development")
    use_relay(lambda request: httpx.Response(200, json={"choices": []}))
    resp = client.post("/api/fertilizer-recommend", json=MINIMAL)
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "Failed to get fertilizer recommendation"
    assert "Malformed response" in body["details"]


def test_get_reports_credential_presence_only(client, use_relay):
    use_relay(lambda request: httpx.Response(200), api_key="sk-or-very-secret")
    resp = client.get("/api/fertilizer-recommend")
    assert resp.status_code == 200
    body = resp.json()
    assert body["envCheck"] is True
    assert body["message"] == "Fertilizer API is Working"
    assert "sk-or-very-secret" not in resp.text

    use_relay(lambda request: httpx.Response(200), api_key=None)
    assert client.get("/api/fertilizer-recommend").json()["envCheck"] is False
