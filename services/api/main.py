"""
PDF Sign & Audit Service - Backend API
FastAPI service that burns a signature image into a PDF page and keeps an
append-only SHA-256 audit trail of every signing.

Run server:
uvicorn main:app --host 0.0.0.0 --port 8000
"""

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
import contextvars
import logging
import os
import time
import uuid

from adapters.base import AuditStore, AuditStoreError
from core.errors import InvalidField, SignError
from dependencies import get_audit_store, shutdown_audit_store
from settings import get_settings

# ========== Request Context for Tracing ==========
request_id_var = contextvars.ContextVar('request_id', default=None)

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

logger.info(f"🔧 Audit storage backend: {settings.storage_backend.upper()}")

# ============================================================================
# FASTAPI APP
# ============================================================================

app = FastAPI(
    title="PDF Sign & Audit API",
    description="Places signature images on PDF pages and records a SHA-256 audit trail",
    version="1.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# ========== Request Tracing Middleware ==========
@app.middleware("http")
async def request_tracing_middleware(request, call_next):
    """Add request_id and timing to all requests."""
    request_id = str(uuid.uuid4())[:8]
    request_id_var.set(request_id)
    start = time.time()

    response = await call_next(request)

    latency = time.time() - start
    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} "
        f"({round(latency * 1000, 2)} ms) [req {request_id}]"
    )

    response.headers["X-Request-ID"] = request_id
    return response

# ========== Body Size Limit ==========
MAX_REQUEST_BYTES = settings.max_request_bytes


class RequestTooLarge(HTTPException):
    """Raised while reading a body that outgrows MAX_REQUEST_BYTES."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Request body exceeds {limit} bytes",
        )


def _too_large_response(limit: int) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        content={
            "success": False,
            "error": {
                "kind": InvalidField.kind,
                "message": f"Request body exceeds {limit} bytes",
            },
        },
    )


class BodySizeLimitMiddleware:
    """
    Reject oversized uploads (base64 signatures) with 413.

    A declared Content-Length is checked before the app runs. Bodies without
    one (chunked) are counted as they are received and abort with
    RequestTooLarge once the running total passes the limit.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limit = MAX_REQUEST_BYTES
        path = scope.get("path", "")
        length = Headers(scope=scope).get("content-length")
        if length and length.isdigit() and int(length) > limit:
            logger.warning(f"Request body too large: {length} bytes on {path}")
            await _too_large_response(limit)(scope, receive, send)
            return

        received = 0

        async def limited_receive():
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > limit:
                    logger.warning(f"Streamed request body passed {limit} bytes on {path}")
                    raise RequestTooLarge(limit)
            return message

        await self.app(scope, limited_receive, send)


app.add_middleware(BodySizeLimitMiddleware)

ALLOWED_ORIGINS = settings.get_origins_list()

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
)

# ========== Error Handling ==========

@app.exception_handler(RequestTooLarge)
async def request_too_large_handler(request, exc: RequestTooLarge):
    return _too_large_response(exc.limit)


@app.exception_handler(SignError)
async def sign_error_handler(request, exc: SignError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.to_dict()},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request, exc: RequestValidationError):
    """Malformed request bodies are placement errors for the caller."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error": {"kind": InvalidField.kind, "message": "; ".join(parts) or "Invalid request"},
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": {"kind": "InternalError", "message": "Internal server error"}},
    )

# ============================================================================
# ENDPOINTS
# ============================================================================

@app.get("/")
async def root():
    """API root endpoint"""
    return {
        "message": "PDF Sign & Audit API",
        "version": "1.0",
        "backend": settings.storage_backend,
        "status": "running",
        "docs": "/docs"
    }


@app.get("/healthz")
async def healthz():
    """
    Kubernetes-style liveness probe.
    Returns 200 if the application is running.
    """
    return {
        "status": "ok",
        "timestamp": time.time(),
        "version": "1.0"
    }


@app.get("/readyz")
def readyz(store: AuditStore = Depends(get_audit_store)):
    """
    Kubernetes-style readiness probe.
    Checks that the audit store is reachable: without it no signing can commit.
    """
    try:
        store.ping()
        return {
            "status": "ready",
            "backend": settings.storage_backend,
            "timestamp": time.time()
        }
    except AuditStoreError as e:
        logger.error(f"Readiness check failed: {str(e)}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "backend": settings.storage_backend,
                "error": str(e),
                "timestamp": time.time()
            }
        )


@app.get("/health")
def health_check(store: AuditStore = Depends(get_audit_store)):
    """Health check endpoint (alias of readiness, kept for older probes)."""
    return readyz(store)


from routers import sign as sign_router
app.include_router(sign_router.router)

from routers import audit as audit_router
app.include_router(audit_router.router)

from routers import documents as documents_router
app.include_router(documents_router.router)


@app.on_event("startup")
async def startup_event():
    logger.info("PDF Sign & Audit API starting up...")
    logger.info(f"Audit backend: {settings.storage_backend.upper()}")
    logger.info(f"Documents dir: {settings.documents_dir} (default: {settings.default_document_id})")
    logger.info(f"Allowed origins: {ALLOWED_ORIGINS}")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("PDF Sign & Audit API shutting down...")
    shutdown_audit_store()

if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run("main:app", host="0.0.0.0", port=port)
