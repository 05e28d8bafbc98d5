"""
API Routes — Soil Analyzer (local rule engine)

Endpoints:
 - POST /api/analyzer
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from agrismart.api.deps import get_event_sink, get_record_store
from agrismart.core.config import settings
from agrismart.schemas.soil import AnalysisResponse
from agrismart.services import soil_analyzer_service as svc
from agrismart.services.analytics_service import EventSink
from agrismart.services.storage_service import RecordStore

router = APIRouter()


@router.post("/api/analyzer")
async def api_analyze_soil(
    payload: Dict[str, Any] = Body(...),
    sink: EventSink = Depends(get_event_sink),
    store: RecordStore = Depends(get_record_store),
):
    try:
        sample = svc.parse_soil_sample(payload)
    except svc.SoilSampleError as exc:
        return JSONResponse(status_code=400, content={"error": str(exc), "fields": exc.fields})

    result = await svc.analyze(sample, delay=settings.ANALYZER_DELAY_SECONDS)

    result_data = result.model_dump(by_alias=True)
    record_id = await store.save("analyzer", {
        "input": sample.model_dump(by_alias=True),
        "result": result_data,
    })
    sink.track("analyzer_submitted", {"soilType": sample.soil_type, "npkRatio": result.npk_ratio})

    return AnalysisResponse(**result.model_dump(), id=record_id).model_dump(by_alias=True)
