"""HTTP client of the Havasi Reality Platform API.

Every call goes through :meth:`ApiClient.request`. A 401 answer on an
authenticated call made with the current token wipes the persisted token and
user id, fires the registered expiry handler (the session manager's forced
logout) and raises :class:`AuthenticationExpiredError` instead of handing the
payload back. A 401 for a token that has since been replaced only raises.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, NoReturn

import aiohttp

from havasi_bot.models import (
    AddNotificationCommand,
    NotificationRule,
    RealEstate,
    SentNotification,
    SortDirection,
    User,
)
from .errors import (
    ApiClientError,
    ApiError,
    ApiServerError,
    AuthenticationExpiredError,
)
from .token_service import TokenService
from .user_service import UserService

logger = logging.getLogger(__name__)

ExpiryHandler = Callable[[], Awaitable[None]]

_NOT_JSON = object()


@dataclass
class ApiResponse:
    status: int
    body: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.body)


def _error_message(response: ApiResponse, default_message: str) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = _NOT_JSON

    if isinstance(payload, dict):
        message = payload.get("message") or payload.get("error")
        if message:
            return str(message)
        return default_message

    if payload is _NOT_JSON:
        text = response.text().strip()
        if text:
            return text

    return default_message


def handle_api_error(response: ApiResponse, default_message: str) -> NoReturn:
    """Raise the error matching a failed response. Never returns."""
    message = _error_message(response, default_message)
    status = response.status

    if 400 <= status < 500:
        raise ApiClientError(f"Client Error ({status}): {message}", status)
    if status >= 500:
        raise ApiServerError(f"Server Error ({status}): {message}", status)
    raise ApiError(message, status)


class ApiClient:
    def __init__(
        self,
        base_url: str,
        token_service: TokenService,
        user_service: UserService,
        session: aiohttp.ClientSession | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._tokens = token_service
        self._users = user_service
        self._session = session
        self._owns_session = session is None
        self._expiry_handler: ExpiryHandler | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    def set_expiry_handler(self, handler: ExpiryHandler) -> None:
        if self._expiry_handler is not None:
            raise RuntimeError("Expiry handler is already registered")
        self._expiry_handler = handler

    def auth_headers(self, token: str | None = None) -> dict[str, str]:
        if token is None:
            token = self._tokens.get_token()
        return {"Authorization": f"Bearer {token}"}

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"Accept": "application/json"},
            )
            self._owns_session = True
        return self._session

    def _url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self._base_url}{path}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        auth: bool = True,
    ) -> ApiResponse:
        sent_token = self._tokens.get_token() if auth else None
        headers = self.auth_headers(sent_token) if auth else {}
        session = self._get_session()

        async with session.request(
            method,
            self._url(path),
            params=params,
            json=json,
            headers=headers,
        ) as resp:
            body = await resp.read()
            response = ApiResponse(
                status=resp.status,
                body=body,
                headers=dict(resp.headers),
            )

        if auth and response.status == 401:
            await self._on_unauthorized(method, path, sent_token)
            raise AuthenticationExpiredError()

        return response

    async def _on_unauthorized(self, method: str, path: str, sent_token: str | None) -> None:
        if sent_token != self._tokens.get_token():
            # the token was replaced while the request was in flight
            logger.info("Ignoring 401 for a replaced token: %s %s", method, path)
            return
        logger.warning("Platform rejected token: %s %s -> 401", method, path)
        await self._tokens.remove_token()
        await self._users.remove_user_id()
        if self._expiry_handler is not None:
            await self._expiry_handler()

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    # users

    async def get_current_user(self) -> User:
        res = await self.request("GET", "/api/users/me")
        if not res.ok:
            handle_api_error(res, "Failed to fetch user")
        return User.from_dict(res.json())

    # real estates

    async def fetch_real_estates(
        self,
        offset: int = 0,
        limit: int = 10,
        sort_direction: SortDirection | str = SortDirection.DESC,
        search: str | None = None,
        transaction: str | None = None,
        building: str = "APARTMENT",
        size_min: float = 0,
        size_max: float = 1000,
        price_min: int = 0,
        price_max: int = 1_000_000_000,
    ) -> list[RealEstate]:
        params: dict[str, Any] = {
            "offset": offset,
            "limit": limit,
            "sortDirection": SortDirection(sort_direction).value,
        }
        if search and search.strip():
            params["search"] = search.strip()
        if transaction:
            params["transaction"] = transaction
        params.update(
            building=building,
            sizeMin=size_min,
            sizeMax=size_max,
            priceMin=price_min,
            priceMax=price_max,
        )

        res = await self.request("GET", "/api/real-estates", params=params)
        if not res.ok:
            handle_api_error(res, "Failed to fetch real estates")

        payload = res.json()
        if isinstance(payload, list):
            items = payload
        elif isinstance(payload, dict) and isinstance(payload.get("data"), list):
            items = payload["data"]
        else:
            items = []
        return [RealEstate.from_dict(item) for item in items]

    async def fetch_real_estate_by_id(self, real_estate_id: str) -> RealEstate:
        res = await self.request(
            "GET", f"/api/real-estates/{real_estate_id}", auth=False
        )
        if not res.ok:
            handle_api_error(res, "Failed to fetch real estate details")
        return RealEstate.from_dict(res.json())

    # notifications

    async def fetch_sent_notifications(
        self, user_id: str, limit: int, offset: int
    ) -> list[SentNotification]:
        res = await self.request(
            "GET",
            f"/api/users/{user_id}/notifications/sent",
            params={"limit": limit, "offset": offset},
        )
        if not res.ok:
            handle_api_error(res, "Failed to fetch notifications")
        return [SentNotification.from_dict(item) for item in res.json() or []]

    async def get_user_notifications(self, user_id: str) -> list[NotificationRule]:
        res = await self.request("GET", f"/api/users/{user_id}/notifications")
        if not res.ok:
            handle_api_error(res, "Failed to fetch notifications")
        return [NotificationRule.from_dict(item) for item in res.json() or []]

    async def add_notification(
        self, user_id: str, command: AddNotificationCommand
    ) -> dict[str, Any] | None:
        res = await self.request(
            "POST",
            f"/api/users/{user_id}/notifications",
            json=command.to_payload(),
        )
        if not res.ok:
            handle_api_error(res, "Failed to add notification")
        return res.json() if res.body else None

    async def enable_notification(self, user_id: str, notification_id: str) -> None:
        res = await self.request(
            "POST", f"/api/users/{user_id}/notifications/{notification_id}/enable"
        )
        if not res.ok:
            handle_api_error(res, "Failed to enable notification")

    async def disable_notification(self, user_id: str, notification_id: str) -> None:
        res = await self.request(
            "POST", f"/api/users/{user_id}/notifications/{notification_id}/disable"
        )
        if not res.ok:
            handle_api_error(res, "Failed to disable notification")

    async def delete_notification(self, user_id: str, notification_id: str) -> None:
        res = await self.request(
            "DELETE", f"/api/users/{user_id}/notifications/{notification_id}"
        )
        if not res.ok:
            handle_api_error(res, "Failed to delete notification")
