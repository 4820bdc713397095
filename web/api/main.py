"""FastAPI app: invite-gated link-in-bio pages."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import PlainTextResponse

import config
from core.errors import ForbiddenError, NotFoundError, TransientStoreError
from core.models.base import init_db

from web.api.admin_routes import router as admin_router
from web.api.auth_routes import router as auth_router
from web.api.dashboard_routes import router as dashboard_router
from web.api.profile_routes import router as profile_router
from web.api.views import see_other
from web.auth import LoginRequired

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger("linkpage")


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    yield


app = FastAPI(title="Linkpage", lifespan=lifespan)


@app.exception_handler(LoginRequired)
async def _login_required(request: Request, exc: LoginRequired):
    return see_other("/login")


@app.exception_handler(ForbiddenError)
async def _forbidden(request: Request, exc: ForbiddenError):
    return PlainTextResponse(str(exc), status_code=status.HTTP_403_FORBIDDEN)


@app.exception_handler(NotFoundError)
async def _not_found(request: Request, exc: NotFoundError):
    return PlainTextResponse(str(exc), status_code=status.HTTP_404_NOT_FOUND)


@app.exception_handler(TransientStoreError)
async def _store_failure(request: Request, exc: TransientStoreError):
    logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
    return PlainTextResponse(str(exc), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


app.include_router(auth_router)
app.include_router(dashboard_router)
app.include_router(admin_router)


@app.get("/api/health")
async def health():
    return {"status": "ok"}


# Catch-all /{slug} must come after every fixed path
app.include_router(profile_router)
