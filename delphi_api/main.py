import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.orm import Session

from delphi_api.config import settings
from delphi_api.core.errors import register_exception_handlers
from delphi_api.core.logging import configure_logging
from delphi_api.core.responses import success
from delphi_api.core.scheduler import shutdown_scheduler, start_scheduler
from delphi_api.db.session import dispose_engine, get_db

from delphi_api.api.auth.routes import router as auth_router
from delphi_api.api.users.routes import router as users_router
from delphi_api.api.sensors.routes import router as sensors_router
from delphi_api.api.domains.routes import router as domains_router
from delphi_api.api.tasks.routes import router as tasks_router
from delphi_api.api.subsections.routes import router as subsections_router
from delphi_api.api.sections.routes import router as sections_router
from delphi_api.api.protocols.routes import router as protocols_router

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Delphi API (env=%s)", settings.ENV)
    if settings.ENABLE_SCHEDULER:
        start_scheduler()
    yield
    shutdown_scheduler()
    dispose_engine()


app = FastAPI(title="Delphi API", version="2.0.0", lifespan=lifespan)

origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins or ["*"],
    allow_credentials="*" not in origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Routers
app.include_router(auth_router, prefix="/auth", tags=["Auth"])
app.include_router(users_router, prefix="/users", tags=["Users"])
app.include_router(sensors_router, prefix="/sensors", tags=["Sensors"])
app.include_router(domains_router, prefix="/domains", tags=["Domains"])
app.include_router(tasks_router, prefix="/tasks", tags=["Tasks"])
app.include_router(subsections_router, prefix="/subsections", tags=["Subsections"])
app.include_router(sections_router, prefix="/sections", tags=["Sections"])
app.include_router(protocols_router, prefix="/protocols", tags=["Protocols"])


@app.get("/ping")
def ping():
    return {"message": "pong"}


@app.get("/health")
def health(db: Session = Depends(get_db)):
    db.execute(text("SELECT 1"))
    return success({"status": "ok", "database": "ok", "env": settings.ENV}, "Service is healthy")
