from functools import lru_cache

import httpx
from fastapi import Header, Request
from loguru import logger
from supabase import AuthApiError, AuthRetryableError

from framevault.core.errors import NotAuthenticated, UpstreamUnavailable
from framevault.services.catalog import TMDBCatalogGateway
from framevault.services.history import SupabaseHistoryStore
from framevault.services.plan import SupabasePlanStore
from framevault.services.profile.builder import TasteProfileBuilder
from framevault.services.rate_limit.limiter import RateLimiter
from framevault.services.rate_limit.store import get_rate_limit_store
from framevault.services.recommendation.ranker import CandidateRanker
from framevault.services.smart_picks import SmartPicksService
from framevault.services.supabase_service import supabase_service
from framevault.services.tmdb.service import get_tmdb_service


@lru_cache(maxsize=1)
def get_catalog_gateway() -> TMDBCatalogGateway:
    return TMDBCatalogGateway(get_tmdb_service())


@lru_cache(maxsize=1)
def get_rate_limiter() -> RateLimiter:
    return RateLimiter(get_rate_limit_store())


@lru_cache(maxsize=1)
def get_smart_picks_service() -> SmartPicksService:
    catalog = get_catalog_gateway()
    return SmartPicksService(
        plan_store=SupabasePlanStore(),
        rate_limiter=get_rate_limiter(),
        profile_builder=TasteProfileBuilder(SupabaseHistoryStore(), catalog),
        ranker=CandidateRanker(catalog),
    )


def _bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise NotAuthenticated("Sign in to view Smart Picks")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise NotAuthenticated("Invalid Authorization header format")
    return token.strip()


async def get_current_user_id(authorization: str | None = Header(None)) -> str:
    """Resolve the caller's user id from their Supabase access token."""
    token = _bearer_token(authorization)
    auth = supabase_service.get_client().auth
    try:
        resp = await supabase_service.run(auth.get_user, token)
    except AuthApiError as exc:
        logger.debug(f"Supabase rejected access token: {exc}")
        raise NotAuthenticated("Invalid or expired session") from exc
    except (AuthRetryableError, httpx.HTTPError) as exc:
        logger.warning(f"Supabase auth is unreachable: {exc}")
        raise UpstreamUnavailable("Unable to verify your session right now") from exc

    user = getattr(resp, "user", None)
    user_id = getattr(user, "id", None)
    if not user_id:
        raise NotAuthenticated("Invalid or expired session")
    return str(user_id)


def get_client_ip(request: Request) -> str | None:
    """
    Originating client IP from proxy headers: x-forwarded-for (first hop),
    then x-real-ip, then Cloudflare's cf-connecting-ip.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        ip = forwarded.split(",")[0].strip()
        if ip:
            return ip
    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()
    return request.headers.get("cf-connecting-ip")
