"""Durable key/value records (token, user id, preferences)."""
import logging

import asyncpg

logger = logging.getLogger(__name__)


class StateStore:
    def __init__(self, pool: asyncpg.Pool):
        self._pool = pool

    async def get(self, key: str) -> str | None:
        return await self._pool.fetchval(
            "SELECT value FROM client_state WHERE key = $1",
            key,
        )

    async def set(self, key: str, value: str) -> None:
        await self._pool.execute(
            """
            INSERT INTO client_state (key, value, updated_at)
            VALUES ($1, $2, NOW())
            ON CONFLICT (key) DO UPDATE
            SET value = EXCLUDED.value, updated_at = NOW()
            """,
            key,
            value,
        )

    async def delete(self, key: str) -> None:
        await self._pool.execute(
            "DELETE FROM client_state WHERE key = $1",
            key,
        )
        logger.debug("State record removed: %s", key)
