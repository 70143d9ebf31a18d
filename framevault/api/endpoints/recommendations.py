from fastapi import APIRouter, Depends, Query

from framevault.api.deps import get_client_ip, get_current_user_id, get_smart_picks_service
from framevault.models.picks import SmartPicksOptions
from framevault.services.smart_picks import SmartPicksService

router = APIRouter(prefix="/api", tags=["recommendations"])


def _parse_limit(raw: str | None) -> int | None:
    if not raw:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


def _parse_exclude(raw: str | None) -> set[int]:
    if not raw:
        return set()
    ids: set[int] = set()
    for value in raw.split(","):
        try:
            ids.add(int(value.strip()))
        except ValueError:
            continue
    return ids


@router.get("/recommendations")
async def get_recommendations(
    limit: str | None = Query(default=None),
    exclude: str | None = Query(default=None),
    user_id: str = Depends(get_current_user_id),
    client_ip: str | None = Depends(get_client_ip),
    service: SmartPicksService = Depends(get_smart_picks_service),
) -> dict:
    options = SmartPicksOptions(limit=_parse_limit(limit), exclude_tmdb_ids=_parse_exclude(exclude))
    result = await service.get_smart_picks(user_id, options, client_ip=client_ip)
    return result.model_dump(mode="json", by_alias=True)
