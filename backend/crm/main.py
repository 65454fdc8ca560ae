# backend/crm/main.py
from fastapi import FastAPI, Depends, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import logging
import time

from crm import config
from crm.routers import auth, leads, students, attendance, payments
from crm.database import init_db, close_db, get_store
from crm.exceptions import NotFoundError, StoreUnavailableError, ValidationError

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)

# Lifespan context manager for startup/shutdown events
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("🚀 Starting FIFAC CRM backend...")
    await init_db()
    logger.info("✅ Document store initialized")
    yield
    # Shutdown
    logger.info("🛑 Shutting down...")
    await close_db()
    logger.info("✅ Cleanup complete")

# Create FastAPI app
app = FastAPI(
    title="FIFAC CRM API",
    description="Leads, students, attendance and payments backed by Firestore",
    version="1.0.0",
    lifespan=lifespan,
    debug=config.DEBUG,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)

# Compress responses larger than 1KB
app.add_middleware(GZipMiddleware, minimum_size=config.GZIP_MINIMUM_SIZE)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.FRONTEND_URL],
    allow_credentials=config.FRONTEND_URL != "*",
    allow_methods=["*"],
    allow_headers=["*"]
)

# Request timing and cache headers
@app.middleware("http")
async def add_response_headers(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    response.headers["X-Process-Time"] = str(time.time() - start_time)

    if "Cache-Control" not in response.headers:
        if request.method == "GET" and "/auth/" not in request.url.path:
            response.headers["Cache-Control"] = config.GET_CACHE_CONTROL
            response.headers["Vary"] = "Accept-Encoding"
        else:
            response.headers["Cache-Control"] = config.NO_CACHE_CONTROL
    return response

# Global exception handlers
def error_response(status_code: int, error: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, **extra},
        headers={"Cache-Control": config.NO_CACHE_CONTROL}
    )

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        "Validation error",
        detail=[
            {"loc": list(err.get("loc", ())), "msg": err.get("msg")}
            for err in exc.errors()
        ]
    )

@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return error_response(status.HTTP_400_BAD_REQUEST, str(exc))

@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return error_response(status.HTTP_404_NOT_FOUND, "Resource not found.", detail=str(exc))

@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc, exc_info=exc)
    return error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE, "Database operation failed.", detail=str(exc)
    )

@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    response = error_response(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
        detail=str(exc) if app.debug else "An error occurred"
    )

# Include routers
app.include_router(auth.router, prefix="/api")
app.include_router(leads.router, prefix="/api")
app.include_router(students.router, prefix="/api")
app.include_router(attendance.router, prefix="/api")
app.include_router(payments.router, prefix="/api")

# Health check endpoint
@app.get("/api", tags=["Health"])
async def root():
    return {
        "message": "Hello from the FIFAC CRM backend server!",
        "version": "1.0.0",
        "docs": "/api/docs"
    }

@app.get("/api/health", tags=["Health"])
async def health_check(store=Depends(get_store)):
    try:
        await store.ping()
        db_status = "healthy"
    except StoreUnavailableError as e:
        db_status = f"unhealthy: {e}"

    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "database": db_status,
        "timestamp": time.time()
    }


def run():
    import uvicorn
    uvicorn.run(
        "crm.main:app",
        host=config.HOST,
        port=config.PORT,
        reload=config.DEBUG,
        log_level=config.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    run()
