"""FastAPI application factory."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from teamgate_service.auth.middleware import AuthenticationMiddleware
from teamgate_service.db.engine import close_db, create_schema, init_db
from teamgate_service.rest.handlers import install_error_handlers
from teamgate_service.rest.routes.auth import router as auth_router
from teamgate_service.rest.routes.health import router as health_router
from teamgate_service.rest.routes.members import router as members_router
from teamgate_service.rest.routes.reviews import router as reviews_router
from teamgate_service.rest.routes.teams import router as teams_router
from teamgate_service.rest.routes.widgets import router as widgets_router
from teamgate_service.settings import settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await init_db()
    if settings.db_create_schema:
        await create_schema()
    yield
    await close_db()


def include_routers(app: FastAPI) -> None:
    # Public routes
    app.include_router(health_router, tags=["health"])

    # Authenticated routes; team-scoped ones validate membership per request
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(teams_router, prefix="/api/v1", tags=["teams"])
    app.include_router(members_router, prefix="/api/v1", tags=["members"])
    app.include_router(widgets_router, prefix="/api/v1", tags=["widgets"])
    app.include_router(reviews_router, prefix="/api/v1", tags=["reviews"])


def create_app(lifespan_handler=lifespan) -> FastAPI:
    app = FastAPI(
        title="Teamgate API",
        description="Multi-tenant team authorization service",
        version="0.1.0",
        lifespan=lifespan_handler,
    )

    app.add_middleware(AuthenticationMiddleware, public_paths=settings.public_paths)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_error_handlers(app)
    include_routers(app)
    return app
