from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from companion.config import settings as app_settings
from companion.database import init_db
from companion.repository import RepositoryRegistry
from companion.routes import all_routers
from companion.stores.local_store import LocalStore
from companion.stores.remote_store import RemoteEntryStore
from companion.utils.dates import InvalidDateKeyError
from companion.utils.entries import EntryLockedError
import logging

# Setup logging
logging.basicConfig(
    level=getattr(logging, app_settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=app_settings.APP_NAME,
    version=app_settings.APP_VERSION,
)


@app.middleware("http")
async def log_error_responses(request: Request, call_next):
    response = await call_next(request)
    if response.status_code >= 400:
        client_host = request.client.host if request.client else "-"
        query = f"?{request.url.query}" if request.url.query else ""
        logger.warning(
            "HTTP %s %s%s -> %s (client=%s)",
            request.method,
            request.url.path,
            query,
            response.status_code,
            client_host,
        )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
    max_age=3600,
)


# Map {"detail": ...} to {"error": ...} for frontend compatibility
@app.exception_handler(HTTPException)
async def custom_http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail, "detail": exc.detail},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(
        "Validation error on %s %s: %s",
        request.method,
        request.url.path,
        exc.errors(),
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "Validation error", "detail": exc.errors()},
    )


# Domain errors that escape a route
@app.exception_handler(EntryLockedError)
async def entry_locked_handler(request: Request, exc: EntryLockedError):
    message = f"تم إرسال يوم {exc.date_ymd}. افتح القفل قبل التعديل"
    return JSONResponse(status_code=409, content={"error": message, "detail": message})


@app.exception_handler(InvalidDateKeyError)
async def invalid_date_handler(request: Request, exc: InvalidDateKeyError):
    logger.warning("Invalid date key on %s: %s", request.url.path, exc)
    message = "صيغة التاريخ غير صحيحة (YYYY-MM-DD)"
    return JSONResponse(status_code=400, content={"error": message, "detail": message})


# Include all routers
for router in all_routers:
    app.include_router(router)


@app.get("/health")
def health():
    registry = getattr(app.state, "registry", None)
    return {
        "status": "ok",
        "version": app_settings.APP_VERSION,
        "remote": registry is not None and registry.remote is not None,
    }


# Startup: create remote tables (if configured) and compose the persistence layer
@app.on_event("startup")
def on_startup():
    init_db()
    local = LocalStore(app_settings.LOCAL_STORE_PATH)
    remote = RemoteEntryStore.from_settings()
    app.state.registry = RepositoryRegistry(local, remote)
    logger.info(
        "Persistence ready (local=%s, remote=%s)",
        local.path,
        "on" if remote is not None else "off",
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host="127.0.0.1",
        port=8000,
        reload=False,
    )
