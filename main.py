"""Havasi Reality Platform Telegram client. Env: BOT_TOKEN, DATABASE_URL, API_BASE_URL."""
import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.enums import ParseMode
from aiogram.client.default import DefaultBotProperties

from havasi_bot.config import Config
from havasi_bot.container import build_services
from havasi_bot.handlers import setup_routers
from havasi_bot.middleware import AccessMiddleware, ServicesMiddleware
from havasi_bot.storage import StateStore, close_db, init_db

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


async def main() -> None:
    config = Config.from_env()

    bot = Bot(
        token=config.BOT_TOKEN,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )

    pool = await init_db(config.DATABASE_URL)
    logger.info("Database initialized")

    services = build_services(config, StateStore(pool), bot)
    await services.preferences.load()

    dp = Dispatcher()

    # Middleware
    dp.update.outer_middleware(ServicesMiddleware(services))
    dp.message.middleware(AccessMiddleware())
    dp.callback_query.middleware(AccessMiddleware())

    # Routers
    dp.include_router(setup_routers())

    services.send_queue.start()

    # Session restore runs beside polling; the access gate answers "loading" meanwhile
    init_task = asyncio.create_task(services.session.initialize())

    await bot.delete_webhook(drop_pending_updates=True)

    try:
        logger.info("Bot started, API %s", config.API_BASE_URL)
        await dp.start_polling(bot)
    finally:
        if not init_task.done():
            init_task.cancel()
        try:
            await init_task
        except asyncio.CancelledError:
            pass

        await services.close()
        await close_db()
        await bot.session.close()
        logger.info("Shutdown complete")


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Bot stopped")
