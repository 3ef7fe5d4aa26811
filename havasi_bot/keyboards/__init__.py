from .reply import (
    main_kb,
    cancel_kb,
    remove_kb,
)
from .inline import (
    login_kb,
    listings_kb,
    estate_kb,
    estate_back_kb,
    notifications_kb,
    notification_kb,
    confirm_delete_kb,
    kind_kb,
    building_kb,
    transaction_kb,
    skip_kb,
    confirm_add_kb,
    history_kb,
    settings_kb,
)

__all__ = [
    "main_kb",
    "cancel_kb",
    "remove_kb",
    "login_kb",
    "listings_kb",
    "estate_kb",
    "estate_back_kb",
    "notifications_kb",
    "notification_kb",
    "confirm_delete_kb",
    "kind_kb",
    "building_kb",
    "transaction_kb",
    "skip_kb",
    "confirm_add_kb",
    "history_kb",
    "settings_kb",
]
