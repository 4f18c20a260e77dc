from .profile import ProfileStore, UserProfile
from .resolver import AnswerResult, TieredAnswerResolver, confidence_tier

__all__ = ["ProfileStore", "UserProfile", "TieredAnswerResolver", "AnswerResult", "confidence_tier"]
