"""Admin-side user management: listing, soft delete, role changes."""

from __future__ import annotations

from errors import NotFoundError, ValidationError
from repositories.user_repository import UserRepository
from schemas.dto.requests.admin import UserListQuery
from schemas.models.user import ROLE_ADMIN, UserDoc
from shared.datetime_utils import Clock, utc_now
from shared.logging import get_logger
from shared.pagination import Page
from shared.validators import to_object_id

log = get_logger(__name__)


class UserAdminService:
    def __init__(self, users: UserRepository, clock: Clock = utc_now) -> None:
        self._users = users
        self._clock = clock

    async def list_users(self, query: UserListQuery) -> Page[UserDoc]:
        users, total = await self._users.list_users(
            query.page, query.limit, query.include_deleted, query.search
        )
        return Page(items=users, total=total, page=query.page, limit=query.limit)

    async def soft_delete(self, target_id: str, acting_user_id: str) -> UserDoc:
        if target_id == acting_user_id:
            raise ValidationError("Admins cannot delete their own account")
        oid = to_object_id(target_id)
        user = await self._users.soft_delete(oid, self._clock()) if oid else None
        if user is None:
            raise NotFoundError("User not found")
        log.info("user_deleted", user_id=target_id, by=acting_user_id)
        return user

    async def set_role(self, target_id: str, role: str, acting_user_id: str) -> UserDoc:
        if target_id == acting_user_id and role != ROLE_ADMIN:
            raise ValidationError("Admins cannot remove their own admin role")
        oid = to_object_id(target_id)
        user = await self._users.set_role(oid, role, self._clock()) if oid else None
        if user is None:
            raise NotFoundError("User not found")
        log.info("user_role_changed", user_id=target_id, role=role, by=acting_user_id)
        return user
