import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from app.config import settings
from app.core.error_handlers import register_exception_handlers
from app.core.log_config import configure_logging

# IMPORT ROUTERS
from app.routers.health import router as health_router
from app.routers.commissions import router as commissions_router
from app.routers.samples import router as samples_router
from app.routers.sessions import router as sessions_router
from app.routers.evaluations import router as evaluations_router
from app.routers.events import router as events_router
from app.routers.documents import router as documents_router


configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
logger = logging.getLogger(__name__)


# SWAGGER UI - tag display order
_OPENAPI_TAGS = [
    {"name": "Root"},
    {"name": "Health"},
    {"name": "Commissions"},
    {"name": "Samples"},
    {"name": "Sessions"},
    {"name": "Evaluations"},
    {"name": "Events"},
    {"name": "Documents"},
]

# FASTAPI APPLICATION CONFIGURATION
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    openapi_tags=_OPENAPI_TAGS,
)

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

# REGISTER EXCEPTION HANDLERS
register_exception_handlers(app)

# REGISTER ROUTERS (order matches _OPENAPI_TAGS / Swagger UI display order)
app.include_router(health_router)        # Health
app.include_router(commissions_router)   # Commissions
app.include_router(samples_router)       # Samples
app.include_router(sessions_router)      # Sessions
app.include_router(evaluations_router)   # Evaluations
app.include_router(events_router)        # Events
app.include_router(documents_router)     # Documents


# ROOT ENDPOINT
@app.get("/", tags=["Root"], summary="Root endpoint")
async def root():
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc"
        },
        "status": "running"
    }


# STARTUP EVENT
@app.on_event("startup")
async def startup_event():
    logger.info(
        "service_starting",
        extra={"storage_backend": settings.STORAGE_BACKEND, "lock_backend": settings.LOCK_BACKEND},
    )


# SHUTDOWN EVENT
@app.on_event("shutdown")
async def shutdown_event():
    logger.info("service_stopping")


# RUN WITH UVICORN
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
