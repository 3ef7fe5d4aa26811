import logging
from dataclasses import dataclass, field

from havasi_bot.models import SentNotification
from .api import ApiClient
from .user_service import UserService

logger = logging.getLogger(__name__)


@dataclass
class HistoryPage:
    page: int
    items: list[SentNotification] = field(default_factory=list)
    has_more: bool = True

    @property
    def has_previous(self) -> bool:
        return self.page > 1


class SentHistory:
    """Pages of notifications the platform already delivered."""

    def __init__(self, api: ApiClient, user_service: UserService, page_size: int = 20):
        self._api = api
        self._users = user_service
        self._page_size = page_size

    async def load(self, page: int = 1) -> HistoryPage:
        page = max(page, 1)
        user_id = self._users.get_user_id()
        if not user_id:
            logger.error("User ID not found in storage")
            return HistoryPage(page=page, items=[], has_more=False)

        items = await self._api.fetch_sent_notifications(
            user_id,
            self._page_size,
            (page - 1) * self._page_size,
        )
        # the API gives no total; an empty page is the only end marker
        return HistoryPage(page=page, items=items, has_more=len(items) > 0)

    @staticmethod
    def next_page(current: HistoryPage) -> int | None:
        return current.page + 1 if current.has_more else None

    @staticmethod
    def previous_page(current: HistoryPage) -> int | None:
        return current.page - 1 if current.has_previous else None
