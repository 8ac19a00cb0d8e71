"""Application wiring for the Surety Registry service.

This module brings together configuration, database setup, middleware, API
routers and error handling so a new developer can see in one place *what*
pieces exist and *when* they are initialised.
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .core.errors import (
    BatchImportError,
    InvalidPayloadError,
    RecordNotFoundError,
    batch_import_handler,
    http_exception_handler,
    invalid_payload_handler,
    not_found_handler,
    validation_exception_handler,
)
from .db.session import Base, SessionLocal, engine
from .db.migrate import run_migrations
from .middlewares import RequestIdMiddleware, SecurityHeadersMiddleware

# Importing the SQLAlchemy models registers them with the metadata. Without
# this step ``Base.metadata.create_all`` would not know about our tables.
from .models import hardware as _hardware  # noqa: F401
from .models import surety as _surety  # noqa: F401
from .models import user as _user  # noqa: F401

# ---------- App init ----------
app = FastAPI(title=settings.APP_NAME)

# ---------- DB init/migrations ----------
# ``create_all`` builds tables for brand-new databases while ``run_migrations``
# upgrades older ones in place. Running both on import keeps development and
# tests self-starting.
Base.metadata.create_all(bind=engine)
run_migrations(engine)


def _bootstrap_admin() -> None:
    from .crud.users import ensure_admin

    db = SessionLocal()
    try:
        ensure_admin(db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD, settings.ADMIN_NAME)
    finally:
        db.close()


_bootstrap_admin()

# ---------- Middleware ----------
# The last middleware added runs first, so request ids wrap everything.
if settings.allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIdMiddleware)

# ---------- Routers ----------
from .routers import api_auth as api_auth_router  # type: ignore

app.include_router(api_auth_router.router)

from .routers import api_user as api_user_router  # type: ignore

app.include_router(api_user_router.router)

from .routers import api_hardware as api_hardware_router  # type: ignore

app.include_router(api_hardware_router.router)

from .routers import api_admin as api_admin_router  # type: ignore

app.include_router(api_admin_router.router)

# ---------- Exception handling ----------
# Every error leaves the API as ``{"msg": ...}`` so the dashboards can show it.
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(InvalidPayloadError, invalid_payload_handler)
app.add_exception_handler(RecordNotFoundError, not_found_handler)
app.add_exception_handler(BatchImportError, batch_import_handler)


__all__ = ["app"]
