"""
ClaimDesk Backend - Main Application Entry Point
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from claimdesk.core import (
    ClaimDeskError,
    InvalidTransition,
    NotFound,
    ValidationError,
    logger,
    settings,
)
from claimdesk.api.routes import customers, policies, claims, dashboard
from claimdesk.api.schemas import camel_field
from claimdesk.db import init_db
from claimdesk.services.validation import INVALID_VALUE


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management."""
    logger.info(f"Starting {settings.APP_NAME} in {settings.APP_ENV} mode")
    init_db()
    yield
    logger.info("Shutting down...")


app = FastAPI(
    title=settings.APP_NAME,
    description="Insurance back office: customers, policies and claims",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API Routers
app.include_router(customers.router, prefix="/customers", tags=["Customers"])
app.include_router(policies.router, prefix="/policies", tags=["Policies"])
app.include_router(claims.router, prefix="/claims", tags=["Claims"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboard"])


ERROR_STATUS = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFound: status.HTTP_404_NOT_FOUND,
    InvalidTransition: status.HTTP_409_CONFLICT,
}


@app.exception_handler(ClaimDeskError)
async def domain_error_handler(request: Request, exc: ClaimDeskError) -> JSONResponse:
    """Serialize domain errors as structured data; wording is up to the client."""
    status_code = next(
        (code for kind, code in ERROR_STATUS.items() if isinstance(exc, kind)),
        status.HTTP_400_BAD_REQUEST,
    )
    body = exc.to_dict()
    if "fields" in body:
        body["fields"] = {camel_field(k): v for k, v in body["fields"].items()}
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed JSON types are reported in the same shape as rule failures."""
    fields = {}
    for error in exc.errors():
        loc = [part for part in error.get("loc", ()) if part not in ("body", "path", "query")]
        name = str(loc[-1]) if loc else "body"
        fields.setdefault(camel_field(name), INVALID_VALUE)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": ValidationError.code, "fields": fields},
    )


@app.get("/")
def root():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "env": settings.APP_ENV,
    }
