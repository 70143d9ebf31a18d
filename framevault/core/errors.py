class SmartPicksError(Exception):
    """Base for every failure the Smart Picks surface reports to callers."""

    code: str = "smart_picks_error"
    status: int = 400

    def __init__(self, message: str = "", *, code: str | None = None, status: int | None = None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        if code:
            self.code = code
        if status:
            self.status = status


class NotAuthenticated(SmartPicksError):
    code = "not_authenticated"
    status = 401


class PlanNotEligible(SmartPicksError):
    code = "plan_required"
    status = 403


class RateLimited(SmartPicksError):
    code = "rate_limited"
    status = 429

    def __init__(self, retry_after: int, *, bucket: str | None = None):
        super().__init__(f"Try again in {retry_after} seconds")
        self.retry_after = retry_after
        self.bucket = bucket


class UpstreamUnavailable(SmartPicksError):
    """History or catalog data could not be fetched in time."""

    code = "upstream_unavailable"
    status = 503


class InternalError(SmartPicksError):
    code = "recommendations_error"
    status = 500
