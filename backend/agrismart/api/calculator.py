"""
API Routes — Fertilizer Dosage Calculator

Endpoints:
 - POST /api/fertilizer-calculator
 - WS   /api/fertilizer-calculator/ws   (live, debounced recomputation)
"""

import json

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from agrismart.core.config import settings
from agrismart.core.logger import logger
from agrismart.schemas.dosage import DosageInputs, DosagePlan, DosageRequest
from agrismart.services import dosage_service as svc

router = APIRouter()


@router.post("/api/fertilizer-calculator")
def api_calculate_dosage(req: DosageRequest):
    return svc.build_plan(req).model_dump(by_alias=True)


@router.websocket("/api/fertilizer-calculator/ws")
async def ws_calculate_dosage(websocket: WebSocket):
    """
    Each client message carries the full current form, e.g.
    {"cropType": "rice", "fieldSizeAcres": 2, "nitrogen": 20, "phosphorus": 10, "potassium": 150}
    A plan is pushed back once the inputs settle.
    """
    await websocket.accept()

    async def push_plan(plan: DosagePlan):
        await websocket.send_json({"type": "plan", **plan.model_dump(by_alias=True)})

    calculator = svc.DebouncedCalculator(push_plan, settle_delay=settings.CALCULATOR_DEBOUNCE_SECONDS)
    try:
        while True:
            try:
                message = await websocket.receive_json()
            except json.JSONDecodeError:
                await websocket.send_json({"type": "error", "error": "Message is not valid JSON", "fields": []})
                continue
            try:
                inputs = DosageInputs.model_validate(message)
            except ValidationError as exc:
                fields = [str(err["loc"][0]) for err in exc.errors() if err["loc"]]
                await websocket.send_json({"type": "error", "error": "Invalid calculator input", "fields": fields})
                continue
            calculator.update(inputs)
    except WebSocketDisconnect:
        logger.info("Calculator session closed", extra={"path": websocket.url.path})
    finally:
        await calculator.close()
