from .connection import get_pool, init_db, close_db
from .state_store import StateStore

__all__ = ["get_pool", "init_db", "close_db", "StateStore"]
