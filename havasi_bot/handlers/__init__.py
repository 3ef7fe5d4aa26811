from aiogram import Router

from .start import router as start_router
from .admin import router as admin_router
from .notifications import router as notifications_router
from .history import router as history_router
from .settings import router as settings_router
from .listings import router as listings_router


def setup_routers() -> Router:
    root = Router()

    root.include_router(start_router)
    root.include_router(admin_router)
    root.include_router(notifications_router)
    root.include_router(history_router)
    root.include_router(settings_router)
    # last: its search state takes any free text
    root.include_router(listings_router)

    return root
