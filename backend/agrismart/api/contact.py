"""
API Routes — Contact form

Endpoints:
 - POST /api/contact
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from agrismart.api.deps import get_event_sink, get_record_store
from agrismart.schemas.contact import ContactMessage, ContactResponse
from agrismart.services.analytics_service import EventSink
from agrismart.services.storage_service import RecordStore

router = APIRouter()

REQUIRED = ["name", "email", "subject", "message"]

THANK_YOU = "Thank you for your message! We will get back to you soon."


@router.post("/api/contact")
async def api_contact(
    payload: Dict[str, Any] = Body(...),
    sink: EventSink = Depends(get_event_sink),
    store: RecordStore = Depends(get_record_store),
):
    missing = [f for f in REQUIRED if not str(payload.get(f) or "").strip()]
    if missing:
        return JSONResponse(status_code=400, content={"error": f"Missing required fields: {', '.join(missing)}"})

    msg = ContactMessage(**{f: str(payload[f]).strip() for f in REQUIRED})
    record_id = await store.save("contact", msg.model_dump())
    sink.track("contact_submitted", {"subject": msg.subject})

    return ContactResponse(message=THANK_YOU, id=record_id).model_dump(by_alias=True)
