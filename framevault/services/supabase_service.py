from typing import Any, Callable, TypeVar

from anyio import to_thread
from loguru import logger
from supabase import Client, create_client

from framevault.core.config import settings

T = TypeVar("T")


class SupabaseService:
    """Lazily created service-role Supabase client.

    supabase-py is synchronous, so every query is pushed to a worker thread
    to keep the event loop free.
    """

    def __init__(self) -> None:
        self._client: Client | None = None

    def get_client(self) -> Client:
        if self._client is None:
            if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
                raise RuntimeError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be configured")
            logger.info("Creating Supabase service-role client")
            self._client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
        return self._client

    async def run(self, fn: Callable[..., T], *args: Any) -> T:
        # A cancelled caller stops waiting; the worker thread finishes on its own
        return await to_thread.run_sync(fn, *args, abandon_on_cancel=True)


supabase_service = SupabaseService()
