import logging
import json
import os
from logging.handlers import RotatingFileHandler
from datetime import datetime

from agrismart.core.config import settings

LOG_DIR = settings.LOG_DIR
os.makedirs(LOG_DIR, exist_ok=True)

# extra= keys copied into the JSON line when present
_EXTRA_FIELDS = (
    "request_id",
    "path",
    "method",
    "status_code",
    "duration_ms",
    "event",
    "params",
    "record_id",
    "kind",
)

def json_formatter(record):
    log = {
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "level": record.levelname,
        "service": "agrismart-backend",
        "message": record.getMessage(),
    }

    for key in _EXTRA_FIELDS:
        if hasattr(record, key):
            log[key] = getattr(record, key)

    if record.exc_info:
        log["exc_info"] = logging.Formatter().formatException(record.exc_info)

    return json.dumps(log, default=str)

class JSONFormatter(logging.Formatter):
    def format(self, record):
        return json_formatter(record)

logger = logging.getLogger("agrismart")
logger.setLevel(logging.INFO)

json_f = JSONFormatter()

file_handler = RotatingFileHandler(
    os.path.join(LOG_DIR, "app.json.log"),
    maxBytes=5 * 1024 * 1024,
    backupCount=5
)
file_handler.setLevel(logging.INFO)
file_handler.setFormatter(json_f)

console_handler = logging.StreamHandler()
console_handler.setLevel(logging.INFO)
console_handler.setFormatter(json_f)

if not logger.handlers:
    logger.addHandler(file_handler)
    logger.addHandler(console_handler)
