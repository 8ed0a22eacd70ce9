from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from leave_service.models.enums import Role


@runtime_checkable
class CurrentActor(Protocol):
    """The authenticated user on whose behalf an operation runs."""

    def id(self) -> int: ...

    def role(self) -> Role: ...


@dataclass(frozen=True)
class HeaderActor:
    """Dev identity taken verbatim from request headers.

    Performs no verification; production deployments override the
    ``get_current_actor`` dependency with a real identity source.
    """

    user_id: int
    user_role: Role = Role.USER

    def id(self) -> int:
        return self.user_id

    def role(self) -> Role:
        return self.user_role
