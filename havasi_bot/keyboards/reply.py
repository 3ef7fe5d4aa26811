"""Reply keyboards."""
from aiogram.types import KeyboardButton, ReplyKeyboardMarkup, ReplyKeyboardRemove

LISTINGS = "🏠 Listings"
NOTIFICATIONS = "🔔 Notifications"
SENT = "📨 Sent notifications"
SETTINGS = "⚙ Settings"
LOGOUT = "🚪 Logout"
CANCEL = "✖ Cancel"


def main_kb() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        keyboard=[
            [KeyboardButton(text=LISTINGS)],
            [
                KeyboardButton(text=NOTIFICATIONS),
                KeyboardButton(text=SENT),
            ],
            [
                KeyboardButton(text=SETTINGS),
                KeyboardButton(text=LOGOUT),
            ],
        ],
        resize_keyboard=True,
    )


def cancel_kb() -> ReplyKeyboardMarkup:
    return ReplyKeyboardMarkup(
        keyboard=[[KeyboardButton(text=CANCEL)]],
        resize_keyboard=True,
    )


def remove_kb() -> ReplyKeyboardRemove:
    return ReplyKeyboardRemove()
