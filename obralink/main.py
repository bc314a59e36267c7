from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from obralink import database
from obralink.core.logging import configure_logging
from obralink.deps.errors import CoreHTTPException
from obralink.models import DailyReport, Project, TimeEntry, Worker  # noqa: F401
from obralink.routers.companies import router as companies_router
from obralink.routers.daily_reports import router as daily_reports_router
from obralink.routers.machinery import router as machinery_router
from obralink.routers.projects import router as projects_router
from obralink.routers.time_entries import router as time_entries_router
from obralink.routers.workers import router as workers_router
from obralink.services.report_immutability import install_daily_report_guards

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    install_daily_report_guards(database.engine)
    yield


app = FastAPI(
    title="Obralink",
    lifespan=lifespan,
)


@app.middleware("http")
async def catch_unhandled_exceptions(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled exception")
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


@app.exception_handler(CoreHTTPException)
async def core_error_handler(request: Request, exc: CoreHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "kind": exc.kind.value},
    )


app.include_router(companies_router)
app.include_router(projects_router)
app.include_router(workers_router)
app.include_router(machinery_router)
app.include_router(daily_reports_router)
app.include_router(time_entries_router)


@app.get("/")
def root():
    return {"status": "Obralink running"}


@app.get("/health")
def health():
    return {
        "status": "ok",
        "version": "1.0.0",
    }
