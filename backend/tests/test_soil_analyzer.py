import asyncio

import pytest

from agrismart.services.soil_analyzer_service import (
    DEFAULT_APPLICATION_RATE,
    SoilSampleError,
    analyze,
    generate_recommendation,
    parse_soil_sample,
)


def _sample(**overrides):
    raw = {
        "temperature": "25",
        "humidity": "60",
        "moisture": "40",
        "nitrogen": "80",
        "phosphorus": "45",
        "potassium": "150",
        "soilType": "loamy",
    }
    raw.update(overrides)
    return parse_soil_sample(raw)


@pytest.mark.parametrize(
    "phosphorus,potassium,soil_type",
    [("0", "0", "sandy"), ("10", "500", "clay"), ("45", "150", "loamy"), ("200", "20", "silt")],
)
def test_low_nitrogen_always_wins(phosphorus, potassium, soil_type):
    result = generate_recommendation(
        _sample(nitrogen="49.9", phosphorus=phosphorus, potassium=potassium, soilType=soil_type)
    )
    assert result.npk_ratio == "20-10-10"
    assert result.recommendation == "Nitrogen-rich fertilizer recommended"


def test_phosphorus_then_potassium_branches():
    assert generate_recommendation(_sample(phosphorus="29")).npk_ratio == "10-20-10"
    assert generate_recommendation(_sample(potassium="99")).npk_ratio == "10-10-20"
    # phosphorus outranks potassium
    assert generate_recommendation(_sample(phosphorus="5", potassium="5")).npk_ratio == "10-20-10"


@pytest.mark.parametrize("soil_type", ["loamy", "silt", "peaty", "chalky"])
def test_balanced_default_keeps_default_rate(soil_type):
    result = generate_recommendation(_sample(nitrogen="50", phosphorus="30", potassium="100", soilType=soil_type))
    assert result.npk_ratio == "10-10-10"
    assert result.application_rate == DEFAULT_APPLICATION_RATE == "200-300 kg/hectare"
    assert result.additional_notes == "Apply during early growing season."


def test_soil_type_adjusts_rate_and_notes():
    sandy = generate_recommendation(_sample(soilType="sandy"))
    assert sandy.application_rate == "150-250 kg/hectare"
    assert sandy.additional_notes.endswith("Sandy soil requires more frequent applications.")

    clay = generate_recommendation(_sample(nitrogen="10", soilType="Clay"))
    assert clay.application_rate == "250-350 kg/hectare"
    assert clay.additional_notes == (
        "Low nitrogen levels detected. Consider organic nitrogen sources. Clay soil retains nutrients well."
    )


def test_result_is_deterministic():
    sample = _sample(potassium="12")
    assert generate_recommendation(sample) == generate_recommendation(sample)


@pytest.mark.parametrize("bad", ["abc", "", "nan", "NaN", "inf", None])
def test_unparseable_numbers_are_rejected(bad):
    with pytest.raises(SoilSampleError) as err:
        _sample(nitrogen=bad)
    assert err.value.fields == ["nitrogen"]


def test_parse_reports_every_bad_field():
    with pytest.raises(SoilSampleError) as err:
        parse_soil_sample({"temperature": "x", "soilType": "lava"})
    assert set(err.value.fields) == {
        "temperature", "humidity", "moisture", "nitrogen", "phosphorus", "potassium", "soilType",
    }


def test_parse_accepts_snake_case_and_numbers():
    sample = parse_soil_sample({
        "temperature": 21.5, "humidity": 55, "moisture": 30,
        "nitrogen": 12, "phosphorus": 40, "potassium": 120, "soil_type": " SANDY ",
    })
    assert sample.soil_type == "sandy"
    assert sample.nitrogen == 12.0


@pytest.mark.asyncio
async def test_analyze_delay_is_cancellable():
    task = asyncio.ensure_future(analyze(_sample(), delay=10))
    await asyncio.sleep(0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task


@pytest.mark.asyncio
async def test_analyze_without_delay():
    result = await analyze(_sample(nitrogen="5"))
    assert result.npk_ratio == "20-10-10"


def test_analyzer_endpoint(client, record_store, event_sink):
    resp = client.post("/api/analyzer", json={
        "temperature": "28", "humidity": "70", "moisture": "35",
        "nitrogen": "60", "phosphorus": "20", "potassium": "150", "soilType": "clay",
    })
    assert resp.status_code == 200
    body = resp.json()
    assert body["npkRatio"] == "10-20-10"
    assert body["applicationRate"] == "250-350 kg/hectare"
    assert body["recommendation"] == "Phosphorus-enhanced fertilizer"
    assert body["id"] in record_store.records
    assert record_store.records[body["id"]]["kind"] == "analyzer"
    assert event_sink.names() == ["analyzer_submitted"]


def test_analyzer_endpoint_rejects_bad_numbers(client, record_store):
    resp = client.post("/api/analyzer", json={
        "temperature": "28", "humidity": "70", "moisture": "35",
        "nitrogen": "lots", "phosphorus": "20", "potassium": "150", "soilType": "clay",
    })
    assert resp.status_code == 400
    assert resp.json()["fields"] == ["nitrogen"]
    assert record_store.records == {}
