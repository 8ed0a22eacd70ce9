from __future__ import annotations

from typing import Protocol, runtime_checkable

from pydantic import BaseModel


class UserInfo(BaseModel):
    """User contact details from the user directory."""

    id: int
    name: str
    email: str


@runtime_checkable
class UserDirectory(Protocol):
    """Interface for the user directory."""

    async def get_users(self, user_ids: set[int]) -> dict[int, UserInfo]:
        """Fetch the known users among user_ids, keyed by id."""
        ...


class InMemoryUserDirectory:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self._users: dict[int, UserInfo] = {}

    def seed(self, user: UserInfo) -> None:
        """Seed a user for testing."""
        self._users[user.id] = user

    async def get_users(self, user_ids: set[int]) -> dict[int, UserInfo]:
        """Fetch the known users among user_ids, keyed by id."""
        return {uid: self._users[uid] for uid in user_ids if uid in self._users}


_user_directory: UserDirectory = InMemoryUserDirectory()


def get_user_directory() -> UserDirectory:
    """FastAPI dependency for the user directory."""
    return _user_directory


def set_user_directory(directory: UserDirectory) -> None:
    """Override the directory (for testing or production wiring)."""
    global _user_directory
    _user_directory = directory
