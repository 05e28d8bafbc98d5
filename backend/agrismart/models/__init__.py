from .recommendation import RecommendationRecord
from ..core.database import Base
__all__ = [
    "RecommendationRecord",
    "Base"
]
