"""
Delete ended rate limit windows from the Supabase counter table.

Meant to run from cron (or any scheduler) when RATE_LIMIT_BACKEND=supabase:

    python scripts/purge_rate_limits.py [--grace-minutes N]

Redis windows expire on their own and need no sweep.
"""

import argparse
import asyncio
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add project root to path to import framevault
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from loguru import logger  # noqa: E402

from framevault.core.log import setup_logging  # noqa: E402
from framevault.services.rate_limit.store import purge_expired_windows  # noqa: E402


async def purge(grace_minutes: int = 0, now: datetime | None = None) -> int:
    """Remove windows that ended more than `grace_minutes` ago."""
    now = now or datetime.now(timezone.utc)
    return await purge_expired_windows(older_than=now - timedelta(minutes=grace_minutes))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--grace-minutes", type=int, default=0, help="keep windows that ended this recently")
    args = parser.parse_args(argv)

    setup_logging()
    try:
        asyncio.run(purge(args.grace_minutes))
    except Exception as e:
        logger.exception(f"Rate limit purge failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
