from .api import ApiClient
from .browser import BrowserRegistry, ListingBrowser
from .history import SentHistory
from .notifications import NotificationManager
from .profile import UserProfileStore
from .session import AuthSessionManager
from .token_service import TokenService
from .user_service import UserService
from .preferences import PreferenceService
from .queue import SendQueue

__all__ = [
    "ApiClient",
    "AuthSessionManager",
    "BrowserRegistry",
    "ListingBrowser",
    "NotificationManager",
    "PreferenceService",
    "SendQueue",
    "SentHistory",
    "TokenService",
    "UserProfileStore",
    "UserService",
]
