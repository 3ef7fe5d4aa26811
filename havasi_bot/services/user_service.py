from .records import PersistedRecord


class UserService(PersistedRecord):
    """Id of the logged-in platform user, kept for screens without a live profile."""

    KEY = "user_id"

    def get_user_id(self) -> str | None:
        return self._get()

    def has_user_id(self) -> bool:
        return self._has()

    async def set_user_id(self, user_id: str) -> None:
        await self._set(user_id)

    async def remove_user_id(self) -> None:
        await self._remove()
