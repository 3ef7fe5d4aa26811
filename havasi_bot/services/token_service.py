from .records import PersistedRecord


class TokenService(PersistedRecord):
    """Bearer token of the platform session (at most one at a time)."""

    KEY = "access_token"

    def get_token(self) -> str | None:
        return self._get()

    def has_token(self) -> bool:
        return self._has()

    async def set_token(self, token: str) -> None:
        await self._set(token)

    async def remove_token(self) -> None:
        await self._remove()
