from __future__ import annotations

import logging

from ddms.session.context import AuthSession
from ddms.settings import settings

logger = logging.getLogger(__name__)


class PermissionGate:
    def __init__(self, session: AuthSession, super_admin_role: str | None = None) -> None:
        self.session = session
        self.super_admin_role = super_admin_role or settings.super_admin_role

    def is_super_admin(self) -> bool:
        user = self.session.user
        if user is None:
            return False
        return any(
            role.role_name == self.super_admin_role or role.name == self.super_admin_role
            for role in user.roles
        )

    def has_permission(self, resource: str, action: str) -> bool:
        user = self.session.user
        if user is None:
            logger.debug("resource=%s action=%s allowed=False (no user)", resource, action)
            return False

        if self.is_super_admin():
            return True

        # Users API shape: permissions nested under each role.
        for role in user.roles:
            if any(p.resource == resource and p.action == action for p in role.permissions):
                return True

        # Login response shape: flat permission list on the user.
        if user.permissions and any(
            p.resource == resource and p.action == action for p in user.permissions
        ):
            return True

        logger.debug("user=%s resource=%s action=%s allowed=False", user.id, resource, action)
        return False

    def can_view(self, resource: str) -> bool:
        return self.has_permission(resource, "read")

    def can_create(self, resource: str) -> bool:
        return self.has_permission(resource, "create")

    def can_update(self, resource: str) -> bool:
        return self.has_permission(resource, "update")

    def can_delete(self, resource: str) -> bool:
        return self.has_permission(resource, "delete")

    def can_approve(self, resource: str) -> bool:
        return self.has_permission(resource, "approve")
