"""FastAPI application setup."""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from ..app import Application
from .routes import control, members, messaging, realtime


# Global application instance
_app: Application | None = None


def get_app() -> Application:
    """Get the global application instance."""
    global _app
    if not _app:
        _app = Application()
    return _app


def set_app(application: Application | None) -> None:
    """Replace the global application instance."""
    global _app
    _app = application


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan."""
    # Startup
    application = get_app()
    await application.start()
    yield
    # Shutdown
    sim_instance = control.get_sim_instance()
    if sim_instance:
        await sim_instance.stop()
    await application.stop()


def create_fastapi_app() -> FastAPI:
    """Create and configure FastAPI application."""
    fastapi_app = FastAPI(
        title="Team Chat API",
        description="Real-time team and private chat",
        version="0.1.0",
        lifespan=lifespan,
    )

    origins = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:5174")
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in origins.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    application = get_app()
    fastapi_app.include_router(messaging.create_messaging_router(application))
    fastapi_app.include_router(members.create_members_router(application))
    fastapi_app.include_router(control.create_control_router(application))
    fastapi_app.include_router(realtime.create_realtime_router(application))

    # Uploaded attachments
    fastapi_app.mount(
        application.config.files_base_url,
        StaticFiles(directory=application.files_root, check_dir=False),
        name="files",
    )

    return fastapi_app
