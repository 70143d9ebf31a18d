from loguru import logger

from framevault.core.config import settings
from framevault.core.constants import (
    DEFAULT_SMART_PICKS_LIMIT,
    MAX_SMART_PICKS_LIMIT,
    RECOMMENDATIONS_BUCKET,
    SMART_PICKS_PLANS,
)
from framevault.core.errors import InternalError, NotAuthenticated, PlanNotEligible, SmartPicksError
from framevault.core.security import redact_identity
from framevault.models.picks import RankedPick, SmartPicksOptions, SmartPicksResult
from framevault.models.rate_limit import ActorType, RateLimitActor
from framevault.models.taste_profile import TasteProfile
from framevault.services.plan import PlanStore
from framevault.services.profile.builder import TasteProfileBuilder
from framevault.services.rate_limit.limiter import RateLimiter
from framevault.services.recommendation.ranker import CandidateRanker
from framevault.services.recommendation.rationale import RationaleGenerator


def clamp_limit(limit: int | None) -> int:
    if limit is None:
        return DEFAULT_SMART_PICKS_LIMIT
    return max(1, min(int(limit), MAX_SMART_PICKS_LIMIT))


class SmartPicksService:
    """
    Personalised picks for Pro members.

    Each step is a precondition of the next:
    plan check -> rate limit -> taste profile -> ranking -> rationale.
    The rate limit always settles before any history or catalog read.
    """

    def __init__(
        self,
        plan_store: PlanStore,
        rate_limiter: RateLimiter,
        profile_builder: TasteProfileBuilder,
        ranker: CandidateRanker,
        rationale: RationaleGenerator | None = None,
        user_limit: int | None = None,
        ip_limit: int | None = None,
    ):
        self.plan_store = plan_store
        self.rate_limiter = rate_limiter
        self.profile_builder = profile_builder
        self.ranker = ranker
        self.rationale = rationale or RationaleGenerator()
        self.user_limit = user_limit or settings.SMART_PICKS_USER_LIMIT
        self.ip_limit = ip_limit or settings.SMART_PICKS_IP_LIMIT

    def actors_for(self, user_id: str, client_ip: str | None) -> list[RateLimitActor]:
        """User quota first, then the IP quota when an address is known."""
        actors = [RateLimitActor(actor_id=user_id, actor_type=ActorType.USER, limit=self.user_limit)]
        if client_ip:
            actors.append(RateLimitActor(actor_id=client_ip, actor_type=ActorType.IP, limit=self.ip_limit))
        return actors

    async def get_smart_picks(
        self,
        user_id: str | None,
        options: SmartPicksOptions | None = None,
        client_ip: str | None = None,
    ) -> SmartPicksResult:
        if not user_id:
            raise NotAuthenticated("Sign in to view Smart Picks")

        options = options or SmartPicksOptions()
        try:
            return await self._get_smart_picks(user_id, options, client_ip)
        except SmartPicksError:
            raise
        except Exception as e:
            logger.exception(f"[{redact_identity(user_id)}] Smart picks failed: {e}")
            raise InternalError("Unable to generate Smart Picks at the moment") from e

    async def _get_smart_picks(
        self, user_id: str, options: SmartPicksOptions, client_ip: str | None
    ) -> SmartPicksResult:
        plan = await self.plan_store.get_effective_plan(user_id)
        if plan not in SMART_PICKS_PLANS:
            raise PlanNotEligible("Upgrade to Pro for Smart Picks")

        await self.rate_limiter.enforce(RECOMMENDATIONS_BUCKET, self.actors_for(user_id, client_ip))

        limit = clamp_limit(options.limit)
        history = await self.profile_builder.load_history(user_id)
        profile = await self.profile_builder.build_from_history(history)

        exclude = set(options.exclude_tmdb_ids) | history.exclusion_ids()
        picks = await self.ranker.rank(profile, exclude, limit)
        for pick in picks:
            pick.rationale = self._explain(profile, pick)

        logger.info(
            f"[{redact_identity(user_id)}] Smart picks: {len(picks)} picks from "
            f"{profile.sample_size} history items ({len(profile.top_genres)} genres)"
        )
        return SmartPicksResult(picks=picks, profile=profile)

    def _explain(self, profile: TasteProfile, pick: RankedPick) -> list[str]:
        try:
            return self.rationale.explain(profile, pick.movie)
        except Exception as e:
            logger.warning(f"Rationale failed for {pick.tmdb_id}, using fallback: {e}")
            return self.rationale.fallback()
