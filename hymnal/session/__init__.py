"""Session, trial and premium exports."""

from hymnal.session.manager import SessionManager
from hymnal.session.models import PremiumStatus, TrialInfo, UserSession
from hymnal.session.premium import PremiumService

__all__ = [
    "PremiumService",
    "PremiumStatus",
    "SessionManager",
    "TrialInfo",
    "UserSession",
]
