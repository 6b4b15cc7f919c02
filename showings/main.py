# showings/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from showings.config import settings
from showings.db import create_db_and_tables
from showings.logging_context import set_request_id
from showings.routers import appointments_routes, auth_routes, availability_routes, properties_routes

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    create_db_and_tables()
    yield
    logger.info("Application shutting down...")


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.include_router(auth_routes.router)
app.include_router(properties_routes.router)
app.include_router(availability_routes.router)
app.include_router(appointments_routes.router)


@app.middleware("http")
async def assign_request_id(request: Request, call_next):
    request_id = set_request_id(request.headers.get(REQUEST_ID_HEADER))
    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Storage failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Storage unavailable"})


@app.get("/health")
def health_check():
    return {"status": "ok"}
