from framevault.services.recommendation.ranker import CandidateRanker
from framevault.services.recommendation.rationale import RationaleGenerator

__all__ = ["CandidateRanker", "RationaleGenerator"]
