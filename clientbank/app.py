import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from . import config
from .api import router
from .db import RecordStore, create_store, seed_if_empty
from .errors import ClientBankError, NotFound, TransactionError
from .logger_config import request_id_var, setup_logging
from .repo import ClientRepository
from .service import ClientService

# ---- logging ----
setup_logging()
log = logging.getLogger("app")

# ---- status -> code mapping ----
STATUS_TO_CODE = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    415: "UNSUPPORTED_MEDIA_TYPE",
    422: "UNPROCESSABLE_ENTITY",
    500: "INTERNAL_SERVER_ERROR",
}
def code_for(status: int) -> str:
    return STATUS_TO_CODE.get(status, f"HTTP_{status}")

# ---- domain error -> status mapping ----
ERROR_STATUS = {
    NotFound: 404,
    TransactionError: 422,
}
UNKNOWN_ERROR_MESSAGE = "An unknown error occurred"

def status_for(exc: Exception) -> int:
    for kind, status in ERROR_STATUS.items():
        if isinstance(exc, kind):
            return status
    return 500

def error_response(status: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"error": {"code": code_for(status), "message": message}},
    )

# ---- middleware ----
class EnforceJSONMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if request.method in {"POST", "PUT", "PATCH"}:
            ct = request.headers.get("content-type", "").split(";")[0].strip().lower()
            if ct != "application/json":
                log.warning("Unsupported media type: %s %s", request.method, request.url.path)
                return error_response(415, "Content-Type must be application/json")
        return await call_next(request)

class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get("x-request-id") or str(uuid.uuid4())
        token = request_id_var.set(rid)
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = rid
            return response
        finally:
            request_id_var.reset(token)

# ---- lifespan: the store lives exactly as long as the app ----
def build_lifespan(store: RecordStore | None):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        s = store if store is not None else create_store(config.store_kind(), config.db_path())
        s.open()
        if config.seed_enabled():
            seed_if_empty(s)
        app.state.store = s
        app.state.service = ClientService(ClientRepository(s))
        log.info("🚀 Client Accounts API started (%s)", type(s).__name__)
        try:
            yield
        finally:
            # Shutdown
            s.close()
            log.info("🛑 Client Accounts API stopped")
    return lifespan

def create_app(store: RecordStore | None = None) -> FastAPI:
    app = FastAPI(title="Client Accounts API", lifespan=build_lifespan(store))

    # middleware
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(EnforceJSONMiddleware)

    # exception handlers
    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError):
        msg = "Invalid request."
        errors = exc.errors()
        if errors:
            err = errors[0]
            loc = ".".join(str(x) for x in err.get("loc", []))
            detail = err.get("msg", "")
            msg = f"{loc}: {detail}" if loc else (detail or msg)
        log.warning("422 validation: %s %s -> %s", request.method, request.url.path, msg)
        return error_response(422, msg)

    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):
        detail = exc.detail if isinstance(exc.detail, str) else code_for(exc.status_code).replace("_", " ").title()
        log.warning("%s %s -> %s (%s)", request.method, request.url.path, exc.status_code, detail)
        return error_response(exc.status_code, str(detail))

    @app.exception_handler(ClientBankError)
    async def domain_exc_handler(request: Request, exc: ClientBankError):
        status = status_for(exc)
        if status == 500:
            log.error("%s %s -> 500 (%s)", request.method, request.url.path, exc.message)
            return error_response(500, UNKNOWN_ERROR_MESSAGE)
        log.info("%s %s -> %s (%s)", request.method, request.url.path, status, exc.message)
        return error_response(status, exc.message)

    @app.exception_handler(Exception)
    async def unhandled_exc_handler(request: Request, exc: Exception):
        log.exception("%s %s -> 500", request.method, request.url.path)
        return error_response(500, UNKNOWN_ERROR_MESSAGE)

    # routers
    app.include_router(router)
    return app

app = create_app()
