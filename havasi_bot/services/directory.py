from typing import Iterable

from havasi_bot.models import RealEstate


class RealEstateDirectory:
    """Currently loaded page of listings."""

    def __init__(self):
        self._items: tuple[RealEstate, ...] = ()

    @property
    def real_estates(self) -> tuple[RealEstate, ...]:
        return self._items

    def set_real_estates(self, estates: Iterable[RealEstate]) -> None:
        self._items = tuple(estates)

    def find_by_id(self, real_estate_id: str) -> RealEstate | None:
        for estate in self._items:
            if estate.id == real_estate_id:
                return estate
        return None

    def __len__(self) -> int:
        return len(self._items)
