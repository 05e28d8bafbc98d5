"""
API Routes — Crop Growth Monitor

Endpoints:
 - GET  /api/crop-growth/crops
 - POST /api/crop-growth/status
 - WS   /api/crop-growth/ws   (stage updates + simulated weather feed)
"""

import json
from typing import List

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from agrismart.core.config import settings
from agrismart.core.logger import logger
from agrismart.schemas.growth import GrowthPlanRequest, WeatherReading
from agrismart.services import growth_monitor_service as svc

router = APIRouter()


@router.get("/api/crop-growth/crops")
def api_list_crops():
    return {
        crop: [stage.model_dump(by_alias=True) for stage in stages]
        for crop, stages in svc.CROP_STAGES.items()
    }


@router.post("/api/crop-growth/status")
def api_growth_status(req: GrowthPlanRequest):
    return svc.compute_growth_status(req.crop, req.planting_date).model_dump(by_alias=True, mode="json")


@router.websocket("/api/crop-growth/ws")
async def ws_growth_monitor(websocket: WebSocket):
    """
    Client messages select the plan: {"crop": "rice", "plantingDate": "2024-06-01"}.
    Server pushes {"type": "status", ...} after each change and
    {"type": "weather", "weather": {...}, "notifications": [...]} on every tick.
    """
    await websocket.accept()

    async def push_weather(weather: WeatherReading, notifications: List[str]):
        await websocket.send_json({
            "type": "weather",
            "weather": weather.model_dump(by_alias=True),
            "notifications": notifications,
        })

    simulator = svc.WeatherSimulator(push_weather, interval=settings.WEATHER_TICK_SECONDS)
    status = svc.compute_growth_status(simulator.crop, simulator.planting_date)
    await websocket.send_json({"type": "status", **status.model_dump(by_alias=True, mode="json")})
    simulator.start()
    try:
        while True:
            try:
                message = await websocket.receive_json()
            except json.JSONDecodeError:
                await websocket.send_json({"type": "error", "error": "Message is not valid JSON", "fields": []})
                continue
            try:
                plan = GrowthPlanRequest.model_validate(message)
            except ValidationError as exc:
                fields = [str(err["loc"][0]) for err in exc.errors() if err["loc"]]
                await websocket.send_json({"type": "error", "error": "Invalid growth plan", "fields": fields})
                continue
            status = simulator.set_plan(plan.crop, plan.planting_date)
            await websocket.send_json({"type": "status", **status.model_dump(by_alias=True, mode="json")})
    except WebSocketDisconnect:
        logger.info("Growth monitor session closed", extra={"path": websocket.url.path})
    finally:
        await simulator.stop()
