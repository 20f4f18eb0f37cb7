from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from sagasynth.deps import Clients, get_clients, reset_clients
from sagasynth.errors import ErrorKind, SagaSynthError
from sagasynth.routers import dataset as dataset_router
from sagasynth.routers import generate as generate_router
from sagasynth.routers import marketplace as marketplace_router
from sagasynth.routers import nft as nft_router
from sagasynth.schemas import AppStatus, HealthResponse
from sagasynth.settings import settings

logger = logging.getLogger(__name__)

APP_VERSION = "0.1.0"

limiter = Limiter(key_func=get_remote_address)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the history store and report missing configuration at startup.

    Missing ledger or upload credentials are logged, not fatal; the
    endpoints that need them answer with a configuration error.
    """
    logger.info("Starting SagaSynth API...")
    try:
        if not get_clients().history.ping():
            raise RuntimeError(f"History store at {settings.resolved_history_path} is not usable")
        logger.info("History store ready (%s)", settings.history_backend.value)
    except Exception as e:
        logger.error("FATAL: Startup failed: %s", e, exc_info=True)
        raise

    missing_chain = settings.missing_chain_config()
    if missing_chain:
        logger.warning("Ledger endpoints unavailable, missing: %s", ", ".join(missing_chain))
    missing_upload = settings.missing_upload_config()
    if missing_upload:
        logger.warning("Upload endpoints unavailable, missing: %s", ", ".join(missing_upload))
    logger.info("SagaSynth API started on port %s", settings.port)

    yield

    logger.info("Shutting down SagaSynth API...")
    reset_clients()


app = FastAPI(title="SagaSynth", version=APP_VERSION, lifespan=lifespan)
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"error": "Rate limit exceeded. Try again later.", "details": str(exc), "kind": "rate_limited"},
    )


@app.exception_handler(SagaSynthError)
async def sagasynth_error_handler(request: Request, exc: SagaSynthError) -> JSONResponse:
    status_code = 400 if exc.kind is ErrorKind.INVALID_REQUEST else 500
    if status_code == 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.to_dict()["details"])
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}" for err in exc.errors()
    )
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": details, "kind": ErrorKind.INVALID_REQUEST.value},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(generate_router.router)
app.include_router(dataset_router.router)
app.include_router(nft_router.router)
app.include_router(marketplace_router.router)


@app.get("/health", response_model=HealthResponse)
@limiter.limit("60/minute")
def health_check(request: Request, clients: Clients = Depends(get_clients)) -> HealthResponse | JSONResponse:
    """Liveness plus a history store round trip. 503 when the store is unusable."""
    if not clients.history.ping():
        return JSONResponse(status_code=503, content={"status": "degraded", "history_store": "unavailable"})
    return HealthResponse(status="healthy", history_store="ok")


@app.get("/api/status", response_model=AppStatus)
@limiter.limit("60/minute")
def api_status(request: Request, clients: Clients = Depends(get_clients)) -> AppStatus:
    s = clients.settings
    return AppStatus(
        version=APP_VERSION,
        llm_provider=s.llm_provider.value,
        llm_model=s.resolved_llm_model,
        llm_key_present=bool(s.google_api_key),
        private_key_present=bool(s.private_key),
        contract_address=s.contract_address,
        rpc_url=s.rpc_url,
        funding_rpc_present=bool(s.funding_rpc_url),
        history_backend=s.history_backend.value,
        missing_chain_config=s.missing_chain_config(),
        missing_upload_config=s.missing_upload_config(),
    )
