import asyncio
from typing import Any, Literal, Protocol

import httpx
from postgrest.exceptions import APIError as PostgrestAPIError

from framevault.core.config import settings
from framevault.core.errors import UpstreamUnavailable
from framevault.services.supabase_service import SupabaseService, supabase_service

Plan = Literal["free", "plus", "pro"]

FALLBACK_PLAN: Plan = "free"


def coerce_plan(value: Any) -> Plan:
    if value in ("plus", "pro"):
        return value
    return FALLBACK_PLAN


class PlanStore(Protocol):
    async def get_effective_plan(self, user_id: str) -> Plan: ...


class SupabasePlanStore:
    """Resolves the effective subscription tier through the compute_effective_plan RPC."""

    def __init__(self, service: SupabaseService | None = None, timeout: float | None = None):
        self.service = service or supabase_service
        self.timeout = timeout if timeout is not None else settings.UPSTREAM_TIMEOUT_SECONDS

    def _plan_sync(self, user_id: str) -> Any:
        return self.service.get_client().rpc("compute_effective_plan", {"target_user": user_id}).execute()

    async def get_effective_plan(self, user_id: str) -> Plan:
        try:
            resp = await asyncio.wait_for(self.service.run(self._plan_sync, user_id), timeout=self.timeout)
        except (PostgrestAPIError, httpx.HTTPError, asyncio.TimeoutError) as e:
            raise UpstreamUnavailable("Plan lookup failed") from e
        data = resp.data
        if not isinstance(data, str):
            return FALLBACK_PLAN
        return coerce_plan(data)
