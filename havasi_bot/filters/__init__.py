from .admin import AdminFilter

__all__ = ["AdminFilter"]
