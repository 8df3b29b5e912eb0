"""
FastAPI application entry point for the pupi map backend.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from backend.config import get_settings
from backend.errors import unhandled_exception_handler, validation_exception_handler
from backend.routes import router

logging.basicConfig(level=logging.INFO)


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Pupi Map Backend (FastAPI)", version="0.1.0")
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
    app.include_router(router, prefix=settings.api_prefix)
    return app


app = create_app()
