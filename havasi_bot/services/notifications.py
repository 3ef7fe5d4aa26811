"""Notification rules: form validation, commands and the rule list.

Every mutation is followed by a full refetch of the list; the local list is
only a snapshot of what the platform returned last.
"""
import logging
from enum import Enum

from havasi_bot.models import (
    AddNotificationCommand,
    BuildingType,
    DiscordWebhookNotificationCommand,
    EmailNotificationCommand,
    FilterRange,
    NotificationFilter,
    NotificationRule,
    NotificationType,
    TransactionType,
    WebhookNotificationCommand,
)
from .api import ApiClient
from .errors import RowBusyError, ValidationError
from .user_service import UserService

logger = logging.getLogger(__name__)

COMMAND_KINDS = ("email", "api", "discord")


class RowAction(str, Enum):
    IDLE = "idle"
    ENABLING = "enabling"
    DISABLING = "disabling"
    DELETING = "deleting"


def _parse_number(raw: str | None, label: str, cast):
    if raw is None or str(raw).strip() == "":
        return None
    try:
        value = cast(str(raw).strip())
    except ValueError:
        raise ValidationError(f"{label} must be a number") from None
    if value < 0:
        raise ValidationError(f"{label} must not be negative")
    return value


def _parse_int(raw: str) -> int:
    return int(float(raw))


def _range(from_, to) -> FilterRange | None:
    if from_ is None and to is None:
        return None
    return FilterRange(from_=from_, to=to)


def split_range(text: str | None) -> tuple[str | None, str | None]:
    """'50-80' -> ('50', '80'); '50-' and '-80' leave one side open; '50' is a lower bound."""
    text = (text or "").strip().replace(" ", "")
    if not text:
        return None, None
    if "-" not in text:
        return text, None
    low, high = text.split("-", 1)
    return low or None, high or None


def build_filter(
    building_type: BuildingType | str,
    transaction_type: TransactionType | str,
    size_from: str | None = None,
    size_to: str | None = None,
    price_from: str | None = None,
    price_to: str | None = None,
    sub_types: str | None = None,
) -> NotificationFilter:
    try:
        building = BuildingType(building_type)
        transaction = TransactionType(transaction_type)
    except ValueError as exc:
        raise ValidationError(str(exc)) from None

    size = _range(
        _parse_number(size_from, "Size from", float),
        _parse_number(size_to, "Size to", float),
    )
    price = _range(
        _parse_number(price_from, "Price from", _parse_int),
        _parse_number(price_to, "Price to", _parse_int),
    )

    parsed_sub_types = None
    if sub_types and sub_types.strip():
        parsed_sub_types = [t.strip() for t in sub_types.split(",") if t.strip()]

    return NotificationFilter(
        building_type=building,
        transaction_type=transaction,
        size=size,
        price=price,
        sub_types=parsed_sub_types or None,
    )


def build_command(
    kind: str,
    name: str,
    notification_filter: NotificationFilter,
    email: str | None = None,
    url: str | None = None,
    webhook_id: str | None = None,
    token: str | None = None,
) -> AddNotificationCommand:
    """Validate the form and build the add command; nothing is sent on error."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("Name is required")

    if kind == "email":
        if not email:
            raise ValidationError("Email is required")
        return EmailNotificationCommand(name, notification_filter, email.strip())

    if kind == "api":
        if not url:
            raise ValidationError("URL is required")
        return WebhookNotificationCommand(name, notification_filter, url.strip())

    if kind == "discord":
        if not webhook_id or not token:
            raise ValidationError("Webhook ID and Token are required")
        return DiscordWebhookNotificationCommand(
            name, notification_filter, webhook_id.strip(), token.strip()
        )

    raise ValidationError("Invalid notification type")


def _fmt(n: float) -> str:
    return str(int(n)) if float(n).is_integer() else str(n)


def render_filter_range(value: FilterRange | None) -> str:
    if value is None:
        return "Any"
    if value.from_ and value.to:
        return f"{_fmt(value.from_)} - {_fmt(value.to)}"
    if value.from_:
        return f"Min: {_fmt(value.from_)}"
    if value.to:
        return f"Max: {_fmt(value.to)}"
    return "Any"


def type_specific_info(rule: NotificationRule) -> str | None:
    if rule.type == NotificationType.EMAIL:
        return f"Email: {rule.email}"
    if rule.type == NotificationType.WEBHOOK:
        return f"URL: {rule.url}"
    if rule.type == NotificationType.DISCORD:
        return f"Discord Webhook ID: {rule.webhook_id}"
    return None


class NotificationManager:
    def __init__(self, api: ApiClient, user_service: UserService):
        self._api = api
        self._users = user_service
        self._notifications: list[NotificationRule] = []
        self._actions: dict[str, RowAction] = {}

    @property
    def notifications(self) -> list[NotificationRule]:
        return list(self._notifications)

    def find(self, notification_id: str) -> NotificationRule | None:
        for rule in self._notifications:
            if rule.id == notification_id:
                return rule
        return None

    def action_for(self, notification_id: str) -> RowAction:
        return self._actions.get(notification_id, RowAction.IDLE)

    def _user_id(self) -> str:
        user_id = self._users.get_user_id()
        if not user_id:
            raise ValidationError("User ID not found")
        return user_id

    async def refresh(self) -> list[NotificationRule]:
        self._notifications = await self._api.get_user_notifications(self._user_id())
        logger.info("Notification rules loaded: %d", len(self._notifications))
        return self.notifications

    async def create(self, command: AddNotificationCommand) -> list[NotificationRule]:
        user_id = self._user_id()
        await self._api.add_notification(user_id, command)
        logger.info("Notification rule added: %s (%s)", command.name, command.type)
        return await self.refresh()

    async def _run(self, notification_id: str, action: RowAction, call) -> list[NotificationRule]:
        if self.action_for(notification_id) != RowAction.IDLE:
            raise RowBusyError("This notification is already being updated")
        user_id = self._user_id()

        self._actions[notification_id] = action
        try:
            await call(user_id, notification_id)
            return await self.refresh()
        finally:
            self._actions.pop(notification_id, None)

    async def enable(self, notification_id: str) -> list[NotificationRule]:
        return await self._run(
            notification_id, RowAction.ENABLING, self._api.enable_notification
        )

    async def disable(self, notification_id: str) -> list[NotificationRule]:
        return await self._run(
            notification_id, RowAction.DISABLING, self._api.disable_notification
        )

    async def toggle(self, notification_id: str) -> list[NotificationRule]:
        rule = self.find(notification_id)
        if rule is not None and rule.enabled:
            return await self.disable(notification_id)
        return await self.enable(notification_id)

    async def delete(self, notification_id: str) -> list[NotificationRule]:
        return await self._run(
            notification_id, RowAction.DELETING, self._api.delete_notification
        )
