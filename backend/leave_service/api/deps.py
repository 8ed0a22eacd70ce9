# ruff: noqa: B008
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, status

from leave_service.exceptions import AppError
from leave_service.models.enums import Role
from leave_service.schemas.auth import CurrentActor, HeaderActor
from leave_service.services.user import UserDirectory, get_user_directory

# Ids are stored in INTEGER columns.
MAX_ID = 2**31 - 1


async def get_current_actor(
    x_user_id: int = Header(ge=1, le=MAX_ID),
    x_role: Role = Header(default=Role.USER),
) -> CurrentActor:
    """Extract dev identity from request headers."""
    return HeaderActor(user_id=x_user_id, user_role=x_role)


ActorDep = Annotated[CurrentActor, Depends(get_current_actor)]


async def require_admin(
    actor: ActorDep,
) -> CurrentActor:
    """Require admin role for the request."""
    if actor.role() != Role.ADMIN:
        raise AppError("Admin access required", status_code=status.HTTP_403_FORBIDDEN)
    return actor


AdminDep = Annotated[CurrentActor, Depends(require_admin)]

UsersDep = Annotated[UserDirectory, Depends(get_user_directory)]
