# schoolhub/main.py
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from schoolhub.core.config import settings
from schoolhub.api.routers import auth as auth_router
from schoolhub.api.routers import users as users_router
from schoolhub.api.routers import grades as grades_router
from schoolhub.api.routers import students as students_router
from schoolhub.api.routers import subjects as subjects_router
from schoolhub.api.routers import exams as exams_router
from schoolhub.api.routers import academic_years as academic_years_router
from schoolhub.api.routers import promotions as promotions_router
from schoolhub.api.routers import report_cards as report_cards_router

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

VERSION = "0.3.0"

def create_app() -> FastAPI:
    app = FastAPI(title="SchoolHub Records API", version=VERSION)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Log every state-changing request
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            logger.info(f"{request.method} {request.url.path}")
        response = await call_next(request)
        return response

    @app.exception_handler(Exception)
    async def unhandled_exception(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    # Core routers with /api prefix
    app.include_router(auth_router.router, prefix="/api")
    app.include_router(users_router.router, prefix="/api")
    app.include_router(grades_router.router, prefix="/api")
    app.include_router(students_router.router, prefix="/api")
    app.include_router(subjects_router.router, prefix="/api")

    # Academic core
    app.include_router(exams_router.router, prefix="/api")
    app.include_router(academic_years_router.router, prefix="/api")
    app.include_router(promotions_router.router, prefix="/api")
    app.include_router(report_cards_router.router, prefix="/api")

    @app.get("/healthz")
    def health():
        return {"ok": True, "version": VERSION, "env": settings.ENV}

    return app

app = create_app()
