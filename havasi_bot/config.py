import os
from dataclasses import dataclass
from typing import Tuple
from dotenv import load_dotenv

load_dotenv()


def _mask(value: str) -> str:
    return value[:6] + "..." + value[-4:] if len(value) > 10 else "***"


@dataclass(frozen=True)
class Config:
    BOT_TOKEN: str
    DATABASE_URL: str

    API_BASE_URL: str = "http://localhost:8080"
    ALLOWED_IDS: Tuple[int, ...] = ()

    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_REDIRECT_URI: str = ""
    PUBLIC_BASE_URL: str = ""

    PAGE_SIZE: int = 10
    SENT_PAGE_SIZE: int = 20
    SEARCH_DEBOUNCE: float = 0.5

    NOMINATIM_URL: str = "https://nominatim.openstreetmap.org"
    GEOCODE_COUNTRY: str = "cz"
    GEOCODE_BATCH_SIZE: int = 2
    GEOCODE_BATCH_DELAY: float = 0.3

    SEND_RATE_PER_SECOND: float = 3.0

    @classmethod
    def from_env(cls) -> "Config":
        token = os.getenv("BOT_TOKEN") or os.getenv("TOKEN")
        database_url = os.getenv("DATABASE_URL")

        if not token:
            raise RuntimeError("BOT_TOKEN is not set")

        if not database_url:
            raise RuntimeError("DATABASE_URL is not set (PostgreSQL)")

        allowed_ids = tuple(
            int(x.strip())
            for x in os.getenv("ALLOWED_IDS", "").split(",")
            if x.strip().isdigit()
        )

        return cls(
            BOT_TOKEN=token,
            DATABASE_URL=database_url,
            API_BASE_URL=os.getenv("API_BASE_URL", "http://localhost:8080").rstrip("/"),
            ALLOWED_IDS=allowed_ids,
            GOOGLE_CLIENT_ID=os.getenv("GOOGLE_CLIENT_ID", ""),
            GOOGLE_REDIRECT_URI=os.getenv("GOOGLE_REDIRECT_URI", ""),
            PUBLIC_BASE_URL=os.getenv("PUBLIC_BASE_URL", "").rstrip("/"),
            PAGE_SIZE=int(os.getenv("PAGE_SIZE", "10")),
            SENT_PAGE_SIZE=int(os.getenv("SENT_PAGE_SIZE", "20")),
            SEARCH_DEBOUNCE=float(os.getenv("SEARCH_DEBOUNCE", "0.5")),
            NOMINATIM_URL=os.getenv(
                "NOMINATIM_URL", "https://nominatim.openstreetmap.org"
            ).rstrip("/"),
            GEOCODE_COUNTRY=os.getenv("GEOCODE_COUNTRY", "cz"),
            GEOCODE_BATCH_SIZE=int(os.getenv("GEOCODE_BATCH_SIZE", "2")),
            GEOCODE_BATCH_DELAY=float(os.getenv("GEOCODE_BATCH_DELAY", "0.3")),
            SEND_RATE_PER_SECOND=float(os.getenv("SEND_RATE_PER_SECOND", "3.0")),
        )

    def is_allowed(self, telegram_id: int | None) -> bool:
        """Empty ALLOWED_IDS means the bot is open to everyone."""
        if not self.ALLOWED_IDS:
            return True
        return telegram_id in self.ALLOWED_IDS

    def masked_summary(self) -> dict:
        return {
            "BOT_TOKEN": _mask(self.BOT_TOKEN or ""),
            "DATABASE_URL": "***",
            "API_BASE_URL": self.API_BASE_URL,
            "ALLOWED_IDS": self.ALLOWED_IDS,
            "GOOGLE_CLIENT_ID": _mask(self.GOOGLE_CLIENT_ID) if self.GOOGLE_CLIENT_ID else "none",
            "GOOGLE_REDIRECT_URI": self.GOOGLE_REDIRECT_URI or "none",
            "PUBLIC_BASE_URL": self.PUBLIC_BASE_URL or "none",
            "PAGE_SIZE": self.PAGE_SIZE,
            "SENT_PAGE_SIZE": self.SENT_PAGE_SIZE,
            "SEARCH_DEBOUNCE": self.SEARCH_DEBOUNCE,
            "NOMINATIM_URL": self.NOMINATIM_URL,
            "GEOCODE_COUNTRY": self.GEOCODE_COUNTRY,
            "GEOCODE_BATCH_SIZE": self.GEOCODE_BATCH_SIZE,
            "GEOCODE_BATCH_DELAY": self.GEOCODE_BATCH_DELAY,
            "SEND_RATE_PER_SECOND": self.SEND_RATE_PER_SECOND,
        }


def load_config() -> Config:
    return Config.from_env()
