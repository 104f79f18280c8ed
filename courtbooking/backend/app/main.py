import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from .api.errors import register_exception_handlers
from .api.routes import (
    auth,
    availability,
    public,
    bookings,
    contacts,
    courts,
    services,
    time_frames,
    tables,
    uploads,
    reports,
    misc,
)
from .db.session import Base, engine, SessionLocal
from .config import get_settings
from .services.admin import ensure_admin_exists
from .workers.scheduler import get_scheduler

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Court Booking API", version="1.0.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[origin.strip() for origin in settings.cors_origins.split(",")],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    @app.middleware("http")
    async def public_no_cache(request: Request, call_next):
        response = await call_next(request)
        if request.url.path.startswith("/api/public"):
            response.headers.update(NO_CACHE_HEADERS)
        return response

    app.include_router(auth.router, prefix="/api")
    app.include_router(availability.router, prefix="/api/public")
    app.include_router(availability.router, prefix="/api")
    app.include_router(public.router, prefix="/api")
    app.include_router(bookings.router, prefix="/api")
    app.include_router(contacts.router, prefix="/api")
    app.include_router(courts.router, prefix="/api")
    app.include_router(services.router, prefix="/api")
    app.include_router(time_frames.router, prefix="/api")
    app.include_router(tables.router, prefix="/api")
    app.include_router(uploads.router, prefix="/api")
    app.include_router(reports.router, prefix="/api")
    app.include_router(misc.router, prefix="/api")

    images_dir = Path(settings.upload_dir) / "images"
    images_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/images", StaticFiles(directory=images_dir), name="images")

    @app.on_event("startup")
    async def startup_event() -> None:
        logging.basicConfig(level=settings.log_level)
        Base.metadata.create_all(bind=engine)
        with SessionLocal() as session:
            ensure_admin_exists(session, settings.default_admin_login, settings.default_admin_password)
        if settings.scheduler_enabled:
            scheduler = get_scheduler()
            scheduler.start()
            app.state.scheduler = scheduler
            logger.info("Scheduler started")

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        scheduler = getattr(app.state, "scheduler", None)
        if scheduler is not None:
            scheduler.shutdown(wait=False)

    return app


app = create_app()
