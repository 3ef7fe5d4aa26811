"""Services built once at startup and handed to handlers by the middleware."""
import logging
from dataclasses import dataclass

from aiogram import Bot

from havasi_bot.config import Config
from havasi_bot.services.api import ApiClient
from havasi_bot.services.browser import BrowserRegistry
from havasi_bot.services.geocoding import Geocoder
from havasi_bot.services.history import SentHistory
from havasi_bot.services.notifications import NotificationManager
from havasi_bot.services.preferences import PreferenceService
from havasi_bot.services.profile import UserProfileStore
from havasi_bot.services.queue import SendQueue
from havasi_bot.services.session import AuthSessionManager, Session, SessionEvent
from havasi_bot.services.token_service import TokenService
from havasi_bot.services.user_service import UserService
from havasi_bot.storage.state_store import StateStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    config: Config
    tokens: TokenService
    users: UserService
    preferences: PreferenceService
    api: ApiClient
    profile: UserProfileStore
    session: AuthSessionManager
    notifications: NotificationManager
    history: SentHistory
    browsers: BrowserRegistry
    geocoder: Geocoder
    send_queue: SendQueue

    def as_handler_data(self) -> dict:
        return {
            "config": self.config,
            "api": self.api,
            "session": self.session,
            "profile": self.profile,
            "preferences": self.preferences,
            "notifications": self.notifications,
            "history": self.history,
            "browsers": self.browsers,
            "geocoder": self.geocoder,
            "send_queue": self.send_queue,
        }

    async def close(self) -> None:
        self.browsers.close_all()
        await self.send_queue.stop()
        await self.api.close()
        await self.geocoder.close()


EXPIRED_TEXT = "🔒 Session expired, please /login again."


def expiry_alert(config: Config, send_queue: SendQueue, browsers: BrowserRegistry):
    """Session listener: tell the operators when the platform dropped the token."""

    async def listener(session: Session, event: SessionEvent) -> None:
        if event != SessionEvent.EXPIRED:
            return
        browsers.close_all()
        for chat_id in config.ALLOWED_IDS:
            await send_queue.put_text(chat_id, EXPIRED_TEXT, alert=True)
        logger.info("Expiry alert queued for %d chat(s)", len(config.ALLOWED_IDS))

    return listener


def build_services(config: Config, store: StateStore, bot: Bot) -> Services:
    tokens = TokenService(store)
    users = UserService(store)
    api = ApiClient(config.API_BASE_URL, tokens, users)
    profile = UserProfileStore()
    services = Services(
        config=config,
        tokens=tokens,
        users=users,
        preferences=PreferenceService(store),
        api=api,
        profile=profile,
        session=AuthSessionManager(api, tokens, users, profile),
        notifications=NotificationManager(api, users),
        history=SentHistory(api, users, page_size=config.SENT_PAGE_SIZE),
        browsers=BrowserRegistry(
            api.fetch_real_estates,
            page_size=config.PAGE_SIZE,
            debounce=config.SEARCH_DEBOUNCE,
        ),
        geocoder=Geocoder(config.NOMINATIM_URL, config.GEOCODE_COUNTRY),
        send_queue=SendQueue(bot, config.SEND_RATE_PER_SECOND),
    )
    services.session.add_listener(
        expiry_alert(config, services.send_queue, services.browsers)
    )
    return services
