from havasi_bot.models import User


class UserProfileStore:
    """In-memory profile of the logged-in user. Only the session manager writes it."""

    def __init__(self):
        self._user: User | None = None

    @property
    def user(self) -> User | None:
        return self._user

    @property
    def is_admin(self) -> bool:
        return self._user is not None and self._user.is_admin

    def set_user(self, user: User | None) -> None:
        self._user = user

    def clear(self) -> None:
        self._user = None
