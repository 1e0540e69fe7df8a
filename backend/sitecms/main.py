from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sitecms.core.config import settings
from sitecms.core.errors import CMSError, cms_error_handler
from sitecms.core.logging_config import configure_logging
import sitecms.models  # noqa: F401  # force model registration

from sitecms.api.v1.auth import router as auth_router
from sitecms.api.v1.meta import router as meta_router
from sitecms.api.v1.sites import router as sites_router
from sitecms.api.v1.team import router as team_router
from sitecms.api.v1.menus import router as menus_router


@asynccontextmanager
async def lifespan(_app: FastAPI):
    if settings.AUTO_CREATE_TABLES:
        from sitecms.db.session import create_all_tables

        await create_all_tables()
    yield


def create_application() -> FastAPI:
    configure_logging()

    app = FastAPI(title="Site CMS API", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Domain errors -> {"detail": {"code", "message"}} with the error's status.
    app.add_exception_handler(CMSError, cms_error_handler)

    @app.get("/")
    def root():
        return {"status": "ok", "service": "sitecms"}

    # Routers
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(meta_router, prefix="/api/v1")
    app.include_router(sites_router, prefix="/api/v1")
    app.include_router(team_router, prefix="/api/v1")
    app.include_router(menus_router, prefix="/api/v1")

    return app


app = create_application()
