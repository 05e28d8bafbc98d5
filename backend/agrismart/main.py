# backend/agrismart/main.py

# FORCE logger module import so handlers attach
from agrismart.core.logger import logger

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from agrismart import __version__
from agrismart.core.config import settings
from agrismart.core.database import init_models
from agrismart.core.request_middleware import RequestLoggingMiddleware
from agrismart.core.error_middleware import ExceptionLoggingMiddleware

from agrismart.api import router as health_router
from agrismart.api import (
    analyzer,
    calculator,
    contact,
    fertilizer_recommend,
    growth_monitor,
)

# ---------------------------------------------------
# Create FastAPI instance FIRST
# ---------------------------------------------------
app = FastAPI(title="AgriSmart API", version=__version__)


# ---------------------------------------------------
# CORS
# ---------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------
# Logging middlewares
# ---------------------------------------------------
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(ExceptionLoggingMiddleware)


# ---------------------------------------------------
# Include Routers
# ---------------------------------------------------
app.include_router(health_router, tags=["health"])
app.include_router(analyzer.router, tags=["analyzer"])
app.include_router(calculator.router, tags=["calculator"])
app.include_router(growth_monitor.router, tags=["crop-growth"])
app.include_router(fertilizer_recommend.router, tags=["advisory"])
app.include_router(contact.router, tags=["contact"])


@app.on_event("startup")
async def startup_event():
    await init_models()
    logger.info("AgriSmart backend started", extra={"params": {"environment": settings.ENVIRONMENT}})
