"""Platform data models (dataclasses parsed from the API's camelCase JSON)."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class NotificationType(str, Enum):
    EMAIL = "EMAIL"
    WEBHOOK = "WEBHOOK"
    DISCORD = "DISCORD"


class BuildingType(str, Enum):
    APARTMENT = "APARTMENT"
    HOUSE = "HOUSE"
    LAND = "LAND"
    COMMERCIAL = "COMMERCIAL"
    OTHER = "OTHER"


class TransactionType(str, Enum):
    SALE = "SALE"
    RENT = "RENT"


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


@dataclass
class User:
    id: str
    username: str
    email: str | None = None
    roles: list[str] = field(default_factory=list)
    created_at: str | None = None

    @property
    def is_admin(self) -> bool:
        return "ADMIN" in self.roles

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        return cls(
            id=str(data["id"]),
            username=data.get("username") or "",
            email=data.get("email"),
            roles=list(data.get("roles") or []),
            created_at=data.get("createdAt"),
        )


@dataclass
class Locality:
    city: str | None = None
    district: str | None = None
    street: str | None = None
    street_number: str | None = None
    latitude: float | None = None
    longitude: float | None = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Locality":
        data = data or {}
        return cls(
            city=data.get("city"),
            district=data.get("district"),
            street=data.get("street"),
            street_number=data.get("streetNumber"),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
        )


@dataclass
class Duplicate:
    url: str
    price: float
    provider: str
    price_per_m2: float | None = None
    images: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Duplicate":
        return cls(
            url=data.get("url") or "",
            price=data.get("price") or 0,
            provider=data.get("provider") or "",
            price_per_m2=data.get("pricePerM2"),
            images=list(data.get("images") or []),
        )


@dataclass
class RealEstate:
    id: str
    name: str
    url: str
    price: float
    provider: str
    fingerprint: str | None = None
    price_per_m2: float | None = None
    size_in_m2: float | None = None
    currency: str = "CZK"
    locality: Locality = field(default_factory=Locality)
    main_category: str | None = None
    sub_category: str | None = None
    transaction_type: str | None = None
    images: list[str] = field(default_factory=list)
    description: str | None = None
    duplicates: list[Duplicate] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RealEstate":
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            url=data.get("url") or "",
            price=data.get("price") or 0,
            provider=data.get("provider") or "",
            fingerprint=data.get("fingerprint"),
            price_per_m2=data.get("pricePerM2"),
            size_in_m2=data.get("sizeInM2"),
            currency=data.get("currency") or "CZK",
            locality=Locality.from_dict(data.get("locality")),
            main_category=data.get("mainCategory"),
            sub_category=data.get("subCategory"),
            transaction_type=data.get("transactionType"),
            images=list(data.get("images") or []),
            description=data.get("description"),
            duplicates=[Duplicate.from_dict(d) for d in data.get("duplicates") or []],
        )


@dataclass
class FilterRange:
    from_: float | None = None
    to: float | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.from_ is not None:
            payload["from"] = self.from_
        if self.to is not None:
            payload["to"] = self.to
        return payload

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "FilterRange | None":
        if data is None:
            return None
        return cls(from_=data.get("from"), to=data.get("to"))


@dataclass
class NotificationFilter:
    building_type: BuildingType
    transaction_type: TransactionType
    size: FilterRange | None = None
    price: FilterRange | None = None
    sub_types: list[str] | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "buildingType": self.building_type.value,
            "transactionType": self.transaction_type.value,
        }
        if self.size is not None:
            payload["size"] = self.size.to_payload()
        if self.price is not None:
            payload["price"] = self.price.to_payload()
        if self.sub_types:
            payload["subTypes"] = list(self.sub_types)
        return payload

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NotificationFilter":
        return cls(
            building_type=BuildingType(data.get("buildingType", "OTHER")),
            transaction_type=TransactionType(data.get("transactionType", "SALE")),
            size=FilterRange.from_dict(data.get("size")),
            price=FilterRange.from_dict(data.get("price")),
            sub_types=data.get("subTypes"),
        )


@dataclass
class NotificationRule:
    id: str
    name: str
    user_id: str
    filter: NotificationFilter
    type: NotificationType
    enabled: bool
    created_at: str | None = None
    updated_at: str | None = None
    # type-specific
    email: str | None = None
    url: str | None = None
    webhook_id: str | None = None
    token: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NotificationRule":
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            user_id=str(data.get("userId") or ""),
            filter=NotificationFilter.from_dict(data.get("filter") or {}),
            type=NotificationType(data.get("type", "EMAIL")),
            enabled=bool(data.get("enabled")),
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            email=data.get("email"),
            url=data.get("url"),
            webhook_id=data.get("webhookId"),
            token=data.get("token"),
        )


@dataclass
class AddNotificationCommand:
    name: str
    filter: NotificationFilter

    type = ""

    def channel_payload(self) -> dict[str, Any]:
        return {}

    def to_payload(self) -> dict[str, Any]:
        payload = {
            "type": self.type,
            "name": self.name,
            "filter": self.filter.to_payload(),
        }
        payload.update(self.channel_payload())
        return payload


@dataclass
class EmailNotificationCommand(AddNotificationCommand):
    email: str = ""

    type = "email"

    def channel_payload(self) -> dict[str, Any]:
        return {"email": self.email}


@dataclass
class WebhookNotificationCommand(AddNotificationCommand):
    url: str = ""

    type = "api"

    def channel_payload(self) -> dict[str, Any]:
        return {"url": self.url}


@dataclass
class DiscordWebhookNotificationCommand(AddNotificationCommand):
    webhook_id: str = ""
    token: str = ""

    type = "discord"

    def channel_payload(self) -> dict[str, Any]:
        return {"webhookId": self.webhook_id, "token": self.token}


@dataclass
class SentRealEstate:
    id: str
    name: str
    url: str
    price: float | None = None
    city: str | None = None
    image: str | None = None
    provider: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SentRealEstate":
        return cls(
            id=str(data.get("id") or ""),
            name=data.get("name") or "",
            url=data.get("url") or "",
            price=data.get("price"),
            city=data.get("city"),
            image=data.get("image"),
            provider=data.get("provider"),
        )


@dataclass
class SentNotification:
    notification_id: str
    user_id: str
    type: str
    real_estate: SentRealEstate
    sent_at: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SentNotification":
        return cls(
            notification_id=str(data.get("notificationId") or ""),
            user_id=str(data.get("userId") or ""),
            type=data.get("type") or "",
            real_estate=SentRealEstate.from_dict(data.get("realEstate") or {}),
            sent_at=data.get("sentAt"),
        )
