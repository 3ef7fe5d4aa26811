"""Single persisted value cached in memory, written through to the state store."""
from havasi_bot.storage.state_store import StateStore


class PersistedRecord:
    KEY = ""

    def __init__(self, store: StateStore):
        self._store = store
        self._value: str | None = None

    async def load(self) -> str | None:
        self._value = await self._store.get(self.KEY)
        return self._value

    def _get(self) -> str | None:
        return self._value

    def _has(self) -> bool:
        return bool(self._value)

    async def _set(self, value: str) -> None:
        await self._store.set(self.KEY, value)
        self._value = value

    async def _remove(self) -> None:
        self._value = None
        await self._store.delete(self.KEY)
