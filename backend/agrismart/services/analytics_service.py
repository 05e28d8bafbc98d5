# backend/agrismart/services/analytics_service.py

from threading import Lock
from typing import Any, Dict, List, Optional, Protocol, Tuple

from agrismart.core.logger import logger


class EventSink(Protocol):
    def track(self, name: str, params: Optional[Dict[str, Any]] = None) -> None:
        ...


class LoggingEventSink:
    """Writes analytics events into the structured JSON log."""

    def track(self, name: str, params: Optional[Dict[str, Any]] = None) -> None:
        logger.info("Analytics event", extra={"event": name, "params": params or {}})


class InMemoryEventSink:
    def __init__(self):
        self._lock = Lock()
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def track(self, name: str, params: Optional[Dict[str, Any]] = None) -> None:
        with self._lock:
            self.events.append((name, dict(params or {})))

    def names(self) -> List[str]:
        with self._lock:
            return [name for name, _ in self.events]
