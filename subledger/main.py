import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv()

from subledger.core.config import settings, validate_config
from subledger.core.database import create_all_tables
from subledger.core.errors import (
    AppError,
    app_error_handler,
    http_error_handler,
    unhandled_exception_handler,
    validation_error_handler,
)
from subledger.core.logging import configure_logging
from subledger.core.middleware.request_id import RequestIdMiddleware
from subledger.api import accounts, health, plans, subscriptions


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = logging.getLogger("subledger")
    logger.info("Starting SubLedger...")
    create_all_tables()
    try:
        yield
    finally:
        logging.getLogger("subledger").info("Stopping SubLedger...")


def create_app() -> FastAPI:
    configure_logging(settings.ENV)
    validate_config(strict=getattr(settings, "CONFIG_STRICT", False))

    app = FastAPI(title="SubLedger", version="0.1.0", lifespan=lifespan)

    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(health.router)
    app.include_router(plans.router)
    app.include_router(subscriptions.router)
    app.include_router(accounts.router)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("subledger.main:app", host=os.getenv("HOST", "127.0.0.1"), port=int(os.getenv("PORT", "8000")))


if __name__ == "__main__":
    run()
