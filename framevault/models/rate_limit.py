from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class ActorType(str, Enum):
    USER = "user"
    IP = "ip"


class RateLimitActor(BaseModel):
    """An identity dimension checked independently against its own quota."""

    actor_id: str | None
    actor_type: ActorType
    limit: int = Field(gt=0)


class RateLimitWindow(BaseModel):
    bucket: str
    actor_type: ActorType
    actor_id: str
    window_start: datetime
    window_end: datetime
    count: int
    limit: int

    @property
    def exceeded(self) -> bool:
        return self.count > self.limit


class RateLimitDecision(BaseModel):
    allowed: bool
    retry_after_seconds: int = 0
    # Windows charged by this check, in evaluation order; the last one failed if not allowed
    windows: list[RateLimitWindow] = Field(default_factory=list)

    @property
    def failing_window(self) -> RateLimitWindow | None:
        if self.allowed or not self.windows:
            return None
        return self.windows[-1]
