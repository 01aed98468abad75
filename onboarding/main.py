"""Entry point for the Onboarding service."""

import logging

from fastapi import FastAPI

from onboarding.api.v1 import router as v1_router
from onboarding.core.config import settings
from onboarding.core.error_handlers import register_exception_handlers

logging.basicConfig(level=logging.INFO)

app = FastAPI(title=settings.PROJECT_NAME)

register_exception_handlers(app)

app.include_router(
    v1_router,
    prefix="/api/zero/v1/onboarding",
)

__all__ = ["app"]
