"""
API Routes — Remote Fertilizer Advisory

Endpoints:
 - POST /api/fertilizer-recommend
 - GET  /api/fertilizer-recommend   (liveness + credential presence check)
"""

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from agrismart.api.deps import get_advisory_relay, get_event_sink, get_record_store
from agrismart.core.config import settings
from agrismart.core.logger import logger
from agrismart.schemas.advisory import AdvisoryResponse
from agrismart.services import advisory_relay_service as svc
from agrismart.services.advisory_relay_service import AdvisoryRelay
from agrismart.services.analytics_service import EventSink
from agrismart.services.storage_service import RecordStore

router = APIRouter()

GENERIC_FAILURE = "Failed to get fertilizer recommendation"


@router.post("/api/fertilizer-recommend")
async def api_fertilizer_recommend(
    payload: Dict[str, Any] = Body(...),
    relay: AdvisoryRelay = Depends(get_advisory_relay),
    sink: EventSink = Depends(get_event_sink),
    store: RecordStore = Depends(get_record_store),
):
    try:
        request = svc.validate_advisory_request(payload)
    except svc.AdvisoryValidationError as exc:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    try:
        recommendation = await relay.recommend(request)
    except svc.UpstreamError as exc:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
    except Exception as exc:
        logger.exception("Error calling advisory provider")
        content = {"error": GENERIC_FAILURE}
        if not settings.is_production:
            content["details"] = str(exc)
        return JSONResponse(status_code=500, content=content)

    input_data = request.input_data()
    record_id = await store.save("advisory", {"input": input_data, "recommendation": recommendation})
    sink.track("advisory_requested", {
        "soilType": request.soil_type,
        "cropType": request.crop_type,
        "season": request.season,
    })

    return AdvisoryResponse(
        recommendation=recommendation,
        input_data=input_data,
        id=record_id,
    ).model_dump(by_alias=True)


@router.get("/api/fertilizer-recommend")
def api_fertilizer_recommend_status(relay: AdvisoryRelay = Depends(get_advisory_relay)):
    return {
        "message": "Fertilizer API is Working",
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "envCheck": relay.configured,
    }
