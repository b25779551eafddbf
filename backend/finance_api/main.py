"""MEPIE Foundation finance API: FastAPI application entry point."""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from finance_api.config import settings
from finance_api.database import engine, Base
from finance_api.errors import FinanceError
from finance_api.middleware.rate_limit import limiter
from finance_api.routers import auth, data, mutate, recover, migrate
from finance_api import models  # noqa: F401  (registers tables on Base)

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("finance_api")

# ── CORS origins from env (dev localhost + production site) ─────────────────
_cors_origins = [o.strip() for o in settings.ALLOWED_ORIGINS.split(",") if o.strip()]

app = FastAPI(
    title="MEPIE Finance API",
    description="Session-gated editing and public views of the financial transparency spreadsheet.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(FinanceError)
def finance_error_handler(request: Request, exc: FinanceError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(StarletteHTTPException)
def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# Routers
app.include_router(auth.router)
app.include_router(data.router)
app.include_router(mutate.router)
app.include_router(recover.router)
app.include_router(migrate.router)


@app.on_event("startup")
def on_startup():
    """Create tables that do not exist yet."""
    Base.metadata.create_all(bind=engine)
    logger.info("Finance API ready (database: %s)", engine.url.render_as_string(hide_password=True))


@app.get("/health")
def health():
    return {"status": "ok"}
