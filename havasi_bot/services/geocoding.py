"""Map markers for listings, with background Nominatim geocoding.

Listings that already carry coordinates become markers at once; the rest are
geocoded in small batches with a pause between batches so the public
Nominatim instance is not hammered.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

import aiohttp

from havasi_bot.models import Locality, RealEstate

logger = logging.getLogger(__name__)

USER_AGENT = "havasi-bot/0.1 (+https://github.com/havasi-reality)"
COUNTRY_NAME = "Czech Republic"


@dataclass
class Marker:
    real_estate_id: str
    title: str
    latitude: float
    longitude: float
    address: str = ""
    exact: bool = True


MarkerCallback = Callable[[Marker], Awaitable[None]]


def geocode_query(locality: Locality | None) -> str | None:
    """Address to look up, or None when only the country would be left."""
    if locality is None:
        return None
    parts = []
    if locality.street:
        if locality.street_number:
            parts.append(f"{locality.street} {locality.street_number}")
        else:
            parts.append(locality.street)
    parts += [p for p in (locality.district, locality.city) if p]
    if not parts:
        return None
    parts.append(COUNTRY_NAME)
    return ", ".join(parts)


def osm_link(latitude: float, longitude: float, zoom: int = 17) -> str:
    return (
        f"https://www.openstreetmap.org/?mlat={latitude}&mlon={longitude}"
        f"#map={zoom}/{latitude}/{longitude}"
    )


def mapy_link(latitude: float, longitude: float, zoom: int = 17) -> str:
    return f"https://mapy.cz/zakladni?x={longitude}&y={latitude}&z={zoom}&source=coor&id={longitude},{latitude}"


class Geocoder:
    def __init__(
        self,
        base_url: str = "https://nominatim.openstreetmap.org",
        country: str = "cz",
        session: aiohttp.ClientSession | None = None,
        timeout: float = 10.0,
    ):
        self._base_url = base_url.rstrip("/")
        self._country = country
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"User-Agent": USER_AGENT, "Accept-Language": "cs,en"},
                timeout=self._timeout,
            )
        return self._session

    async def geocode(self, locality: Locality | None) -> tuple[float, float] | None:
        query = geocode_query(locality)
        if query is None:
            return None

        params = {
            "format": "json",
            "q": query,
            "limit": "1",
            "countrycodes": self._country,
        }
        try:
            async with self._get_session().get(f"{self._base_url}/search", params=params) as resp:
                if resp.status != 200:
                    raise aiohttp.ClientError(f"HTTP {resp.status}")
                results = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            logger.warning("Geocoding failed for address %r: %s", query, exc)
            return None

        if not results:
            return None
        try:
            return float(results[0]["lat"]), float(results[0]["lon"])
        except (KeyError, TypeError, ValueError):
            logger.warning("Geocoding: unexpected answer for %r", query)
            return None

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()


class MarkerPlacer:
    def __init__(self, geocoder: Geocoder, batch_size: int = 2, batch_delay: float = 0.3):
        self._geocoder = geocoder
        self._batch_size = max(batch_size, 1)
        self._batch_delay = batch_delay
        self._pending: list[RealEstate] = []

    @property
    def pending(self) -> list[RealEstate]:
        return list(self._pending)

    def place(self, estates: Sequence[RealEstate]) -> list[Marker]:
        """Markers for listings with coordinates; the others wait for geocoding."""
        markers = []
        self._pending = []
        for estate in estates:
            loc = estate.locality
            if loc is not None and loc.has_coordinates:
                markers.append(
                    Marker(
                        real_estate_id=estate.id,
                        title=estate.name,
                        latitude=float(loc.latitude),
                        longitude=float(loc.longitude),
                        address=geocode_query(loc) or "",
                    )
                )
            else:
                self._pending.append(estate)
        return markers

    async def geocode_pending(self, on_marker: MarkerCallback | None = None) -> list[Marker]:
        estates = self._pending
        self._pending = []
        markers: list[Marker] = []

        for i in range(0, len(estates), self._batch_size):
            batch = estates[i:i + self._batch_size]
            coords = await asyncio.gather(
                *(self._geocoder.geocode(e.locality) for e in batch)
            )
            for estate, point in zip(batch, coords):
                if point is None:
                    continue
                marker = Marker(
                    real_estate_id=estate.id,
                    title=estate.name,
                    latitude=point[0],
                    longitude=point[1],
                    address=geocode_query(estate.locality) or "",
                    exact=False,
                )
                markers.append(marker)
                if on_marker is not None:
                    await on_marker(marker)

            if i + self._batch_size < len(estates):
                await asyncio.sleep(self._batch_delay)

        return markers
