from .services import ServicesMiddleware
from .access import AccessMiddleware

__all__ = ["ServicesMiddleware", "AccessMiddleware"]
