import asyncio
import logging
import ssl
from typing import Optional
from urllib.parse import urlparse, parse_qs, urlencode

import asyncpg

logger = logging.getLogger(__name__)

CONNECT_ATTEMPTS = 3

_pool: Optional[asyncpg.Pool] = None
_lock = asyncio.Lock()


def _is_url(dsn: str) -> bool:
    return dsn.startswith(("postgresql://", "postgres://"))


def _normalize_dsn(dsn: str) -> str:
    """Hosted Postgres wants TLS; default the DSN to sslmode=require."""
    if not _is_url(dsn):
        return dsn
    parsed = urlparse(dsn)
    query = parse_qs(parsed.query)
    if "sslmode" in query:
        return dsn
    query["sslmode"] = ["require"]
    return parsed._replace(query=urlencode(query, doseq=True)).geturl()


def _ssl_context(dsn: str) -> ssl.SSLContext | None:
    if not _is_url(dsn) or "sslmode=disable" in dsn:
        return None
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


async def _connect(dsn: str) -> asyncpg.Pool:
    pool = await asyncpg.create_pool(
        dsn,
        min_size=1,
        max_size=5,
        command_timeout=30,
        server_settings={"application_name": "havasi_bot", "jit": "off"},
        ssl=_ssl_context(dsn),
    )
    async with pool.acquire() as conn:
        await conn.fetchval("SELECT 1")
    return pool


async def get_pool(dsn: str) -> asyncpg.Pool:
    global _pool

    async with _lock:
        if _pool is not None:
            return _pool

        dsn = _normalize_dsn(dsn)
        delay = 1.0
        for attempt in range(1, CONNECT_ATTEMPTS + 1):
            try:
                _pool = await _connect(dsn)
            except (asyncpg.PostgresError, OSError, asyncio.TimeoutError) as exc:
                logger.warning(
                    "Database pool: attempt %d/%d failed: %s",
                    attempt,
                    CONNECT_ATTEMPTS,
                    exc.__class__.__name__,
                )
                if attempt == CONNECT_ATTEMPTS:
                    raise RuntimeError(
                        f"Database connection failed after {CONNECT_ATTEMPTS} attempts"
                    ) from exc
                await asyncio.sleep(delay)
                delay *= 2
            else:
                logger.info("Database pool: connected")
                return _pool


async def init_db(dsn: str) -> asyncpg.Pool:
    """Open the pool and create the client_state table the records live in."""
    pool = await get_pool(dsn)
    await pool.execute("""
        CREATE TABLE IF NOT EXISTS client_state (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TIMESTAMPTZ DEFAULT NOW()
        );
    """)
    return pool


async def close_db() -> None:
    global _pool

    pool, _pool = _pool, None
    if pool is None:
        return
    try:
        await asyncio.wait_for(pool.close(), timeout=5.0)
    except asyncio.TimeoutError:
        logger.warning("Database pool: close timed out")
