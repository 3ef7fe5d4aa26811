"""Platform session: login, logout, restore on startup, forced logout on 401.

The manager is the only writer of the session. It trusts a persisted token on
startup even if the profile cannot be fetched (the next 401 will log out),
while a freshly pasted token that cannot resolve a profile is dropped at once.

Every login() and logout() bumps a generation counter; profile results that
arrive for an older generation are discarded, so a slow profile fetch of an
abandoned login can neither set a profile nor log out a newer session.
"""
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable
from urllib.parse import urlencode

from havasi_bot.models import User
from .api import ApiClient
from .errors import AuthenticationExpiredError, ValidationError
from .profile import UserProfileStore
from .token_service import TokenService
from .user_service import UserService

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_SCOPE = "openid email profile"


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


class SessionEvent(str, Enum):
    RESTORED = "restored"
    LOGIN = "login"
    LOGOUT = "logout"
    EXPIRED = "expired"


@dataclass(frozen=True)
class Session:
    token: str | None
    is_authenticated: bool
    is_initializing: bool


SessionListener = Callable[[Session, SessionEvent], Awaitable[None]]


def build_login_url(client_id: str, redirect_uri: str, state: str | None = None) -> str:
    """Google OAuth implicit flow; the access token comes back in the URL fragment."""
    params = {
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "response_type": "token",
        "scope": GOOGLE_SCOPE,
        "include_granted_scopes": "true",
        "prompt": "select_account",
    }
    if state:
        params["state"] = state
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


class AuthSessionManager:
    def __init__(
        self,
        api: ApiClient,
        token_service: TokenService,
        user_service: UserService,
        profile_store: UserProfileStore,
    ):
        self._api = api
        self._tokens = token_service
        self._users = user_service
        self._profile = profile_store

        self._token: str | None = None
        self._started = False
        self._initializing = True
        self._init_lock = asyncio.Lock()
        self._generation = 0
        self._pending_login: int | None = None
        self._listeners: list[SessionListener] = []

        api.set_expiry_handler(self._on_token_expired)

    @property
    def session(self) -> Session:
        return Session(
            token=self._token,
            is_authenticated=self._token is not None,
            is_initializing=self._initializing,
        )

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    @property
    def is_initializing(self) -> bool:
        return self._initializing

    @property
    def state(self) -> SessionState:
        if not self._started:
            return SessionState.UNINITIALIZED
        if self._initializing:
            return SessionState.INITIALIZING
        if self._token is not None:
            return SessionState.AUTHENTICATED
        return SessionState.UNAUTHENTICATED

    @property
    def generation(self) -> int:
        return self._generation

    def add_listener(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    async def _notify(self, event: SessionEvent) -> None:
        session = self.session
        for listener in self._listeners:
            try:
                await listener(session, event)
            except Exception:
                logger.exception("Session listener failed on %s", event.value)

    async def initialize(self) -> None:
        """Restore the session from storage. Runs once; later calls do nothing."""
        async with self._init_lock:
            if self._started:
                return
            self._started = True

            try:
                token = await self._tokens.load()
                await self._users.load()

                if token:
                    await self._restore(token)
                else:
                    logger.info("Session restore: no stored token")
            finally:
                self._initializing = False

        if self._token is not None:
            logger.info("Session restore: authenticated")
        await self._notify(SessionEvent.RESTORED)

    async def _restore(self, token: str) -> None:
        self._token = token
        generation = self._generation
        try:
            user = await self._api.get_current_user()
        except AuthenticationExpiredError:
            logger.warning("Session restore: stored token rejected")
        except Exception as exc:
            # may be a network blip, the next 401 logs out
            logger.warning(
                "Session restore: profile fetch failed, keeping token: %s",
                exc,
            )
        else:
            await self._apply_profile(user, generation)

    async def login(self, access_token: str) -> User | None:
        """Store the token and resolve the profile; a token without a profile is dropped.

        Returns the profile, or None when a newer login/logout superseded this one.
        """
        access_token = (access_token or "").strip()
        if not access_token:
            raise ValidationError("Access token is required")

        self._generation += 1
        generation = self._generation

        await self._tokens.set_token(access_token)
        self._token = access_token
        logger.info("Login: token stored (generation %d)", generation)
        await self._notify(SessionEvent.LOGIN)

        self._pending_login = generation
        try:
            user = await self._api.get_current_user()
        except AuthenticationExpiredError:
            if self._token is not None and generation != self._generation:
                logger.info("Login: ignoring rejection of superseded login %d", generation)
                return None
            logger.warning("Login: token rejected by the platform")
            if generation == self._generation:
                # expiry handler did not run for this token
                await self.logout()
            raise
        except Exception as exc:
            if generation != self._generation:
                logger.info("Login: ignoring failure of superseded login %d", generation)
                return None
            logger.warning("Login: profile fetch failed, logging out: %s", exc)
            await self.logout()
            raise
        finally:
            if self._pending_login == generation:
                self._pending_login = None

        if not await self._apply_profile(user, generation):
            return None
        return user

    async def logout(self) -> None:
        """Drop the session. Safe to call when already logged out."""
        await self._end_session(SessionEvent.LOGOUT)

    async def _end_session(self, event: SessionEvent) -> None:
        self._generation += 1
        had_session = self._token is not None or self._profile.user is not None

        self._token = None
        self._profile.clear()
        await self._tokens.remove_token()
        await self._users.remove_user_id()

        if had_session:
            logger.info("Logout: session cleared (%s)", event.value)
            await self._notify(event)

    async def refresh_profile(self) -> User | None:
        generation = self._generation
        user = await self._api.get_current_user()
        if not await self._apply_profile(user, generation):
            return None
        return user

    async def _apply_profile(self, user: User, generation: int) -> bool:
        if generation != self._generation:
            logger.info("Profile for stale generation %d discarded", generation)
            return False

        self._profile.set_user(user)
        await self._users.set_user_id(user.id)

        if generation != self._generation:
            # a logout ran while the id was being written
            await self._users.remove_user_id()
            return False
        return True

    async def _on_token_expired(self) -> None:
        if self._pending_login == self._generation:
            # a token that never resolved a profile did not expire, it was refused
            logger.warning("Login refused: dropping the new token")
            await self._end_session(SessionEvent.LOGOUT)
            return
        logger.warning("Session expired: forcing logout")
        await self._end_session(SessionEvent.EXPIRED)
