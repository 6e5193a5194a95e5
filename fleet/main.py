import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from fleet.core.config import Settings, load_settings
from fleet.db.base import Base
from fleet.db.session import build_engine, build_session_factory

# Import all route modules once
from fleet.api.routes import (
    auth,
    users,
    bookings,
    driver_payments,
    masters,
    reports,
)

# Registers every table on Base.metadata
from fleet.models import (  # noqa: F401
    audit_log,
    booking,
    company,
    customer,
    driver,
    driver_payment,
    user,
    vehicle,
)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()

    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Fleet Booking System")

    # ===============================
    # DATABASE
    # ===============================
    engine = build_engine(settings.DATABASE_URL)
    Base.metadata.create_all(bind=engine)

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)

    # ===============================
    # CORS CONFIGURATION
    # ===============================
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ===============================
    # UPLOADED FILES
    # ===============================
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")

    # ===============================
    # INCLUDE ROUTERS
    # ===============================
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(bookings.router)
    app.include_router(driver_payments.router)
    app.include_router(masters.router)
    app.include_router(reports.router)

    # ===============================
    # ROOT ENDPOINT
    # ===============================
    @app.get("/")
    def root():
        return {"status": "Backend running successfully"}

    logging.getLogger(__name__).info("Application started with database %s", engine.url.render_as_string(hide_password=True))

    return app
