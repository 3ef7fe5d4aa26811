from aiogram.filters import BaseFilter
from aiogram.types import TelegramObject

from havasi_bot.services.profile import UserProfileStore


class AdminFilter(BaseFilter):
    """Passes when the platform profile carries the ADMIN role."""

    async def __call__(self, event: TelegramObject, profile: UserProfileStore) -> bool:
        return profile.is_admin
