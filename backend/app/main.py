from fastapi import FastAPI
from dotenv import load_dotenv
load_dotenv(dotenv_path="backend/.env", override=False)
from contextlib import asynccontextmanager
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from .routers import auth, emails, replies
from .db.database import init_db, SessionLocal
from .core.config import Settings
from .core.clients import attach_clients
from .core.errors import ExternalServiceError, IngestionError, StorageError
from .core.logging import init_logging
from .services.email_archive import EmailArchive
from .services.reply_archive import ReplyArchive
from .services.reply_generation import ReplyJobRegistry
import logging, time, uuid
from fastapi import Request

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    init_logging()
    init_db()
    http = attach_clients(app, Settings.from_env())
    logging.getLogger(__name__).info("clients_ready")
    yield
    await http.aclose()

app = FastAPI(title="Mailbox Reply Backend", lifespan=lifespan)
_settings = Settings.from_env()
app.state.reply_jobs = ReplyJobRegistry(ttl_seconds=_settings.reply_job_ttl_seconds, max_jobs=_settings.reply_job_max)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(emails.router, prefix="/emails", tags=["emails"])
app.include_router(replies.router, prefix="/replies", tags=["replies"])


@app.exception_handler(ExternalServiceError)
async def external_service_error(request: Request, exc: ExternalServiceError):
    logging.getLogger(__name__).error(
        f"external service failure: {exc}",
        extra={"service": exc.service, "path": request.url.path, "status": exc.status_code},
    )
    return JSONResponse(status_code=500, content={"message": "Internal server error"})

@app.exception_handler(IngestionError)
async def ingestion_error(request: Request, exc: IngestionError):
    return JSONResponse(status_code=500, content={"message": "Internal server error"})

@app.exception_handler(StorageError)
async def storage_error(request: Request, exc: StorageError):
    logging.getLogger(__name__).error(f"storage failure: {exc}", extra={"path": request.url.path})
    return JSONResponse(status_code=500, content={"message": "Storage unavailable"})


@app.get("/", response_class=PlainTextResponse)
async def index():
    return "Welcome to the mailbox reply backend"

@app.get("/health")
def health():
    # Lightweight counts for debugging archive state
    return {
        "status": "ok",
        "emails": EmailArchive(SessionLocal).count(),
        "replies": ReplyArchive(SessionLocal).count(),
    }

@app.middleware("http")
async def timing_logger(request: Request, call_next):
    trace_id = request.headers.get("X-Trace-Id", str(uuid.uuid4())[:8])
    start = time.perf_counter()
    try:
        response = await call_next(request)
        duration = (time.perf_counter()-start)*1000
        logging.getLogger().info(
            f"{request.method} {request.url.path} {response.status_code} {duration:.1f}ms",
            extra={"trace_id": trace_id, "method": request.method, "path": request.url.path, "status": response.status_code, "duration_ms": round(duration,1)}
        )
        response.headers['X-Trace-Id'] = trace_id
        return response
    except Exception as exc:  # pragma: no cover
        duration = (time.perf_counter()-start)*1000
        logging.getLogger().error(
            f"ERR {request.method} {request.url.path} {type(exc).__name__}",
            exc_info=exc,
            extra={"trace_id": trace_id, "method": request.method, "path": request.url.path, "status": 500, "duration_ms": round(duration,1)}
        )
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error", "trace_id": trace_id})
