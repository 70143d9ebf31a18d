from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from framevault.api.deps import get_catalog_gateway
from framevault.api.main import api_router
from framevault.core.errors import InternalError, RateLimited, SmartPicksError
from framevault.core.log import setup_logging
from framevault.services.redis_service import redis_service

from .config import settings
from .version import __version__


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events (startup/shutdown).
    """
    yield
    if get_catalog_gateway.cache_info().currsize:
        try:
            await get_catalog_gateway().close()
            logger.info("TMDB client closed")
        except Exception as exc:
            logger.warning(f"Failed to close TMDB client: {exc}")
    await redis_service.close()


async def smart_picks_error_handler(request: Request, exc: SmartPicksError) -> JSONResponse:
    headers = {}
    if isinstance(exc, RateLimited):
        headers["Retry-After"] = str(exc.retry_after)
    return JSONResponse(
        status_code=exc.status,
        content={"error": exc.code, "message": exc.message},
        headers=headers,
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=InternalError.status,
        content={"error": InternalError.code, "message": "Unable to generate Smart Picks at the moment"},
    )


def create_app() -> FastAPI:
    setup_logging()
    application = FastAPI(
        title="FrameVault Smart Picks",
        description="Personalised movie picks and shared rate limiting for FrameVault",
        version=__version__,
        lifespan=lifespan,
        docs_url=None if settings.APP_ENV != "development" else "/docs",
        redoc_url=None if settings.APP_ENV != "development" else "/redoc",
    )
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    application.add_exception_handler(SmartPicksError, smart_picks_error_handler)
    application.add_exception_handler(Exception, unhandled_error_handler)
    application.include_router(api_router)
    return application


app = create_app()
