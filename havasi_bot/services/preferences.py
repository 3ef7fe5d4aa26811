from .errors import ValidationError
from .records import PersistedRecord

THEMES = ("light", "dark")


class PreferenceService(PersistedRecord):
    KEY = "theme"

    def get_theme(self) -> str:
        value = self._get()
        return value if value in THEMES else "light"

    async def set_theme(self, theme: str) -> None:
        if theme not in THEMES:
            raise ValidationError(f"Unknown theme: {theme}")
        await self._set(theme)
