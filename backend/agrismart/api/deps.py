# backend/agrismart/api/deps.py

"""
FastAPI dependencies for injected capabilities.

Routes depend on these providers, never on module-level singletons, so tests
(and alternative deployments) swap them via app.dependency_overrides.
"""

from agrismart.core.config import settings
from agrismart.services.advisory_relay_service import AdvisoryRelay
from agrismart.services.analytics_service import EventSink, LoggingEventSink
from agrismart.services.storage_service import RecordStore, SqlRecordStore

_event_sink = LoggingEventSink()
_record_store = SqlRecordStore()


def get_event_sink() -> EventSink:
    return _event_sink


def get_record_store() -> RecordStore:
    return _record_store


def get_advisory_relay() -> AdvisoryRelay:
    return AdvisoryRelay.from_settings(settings)
