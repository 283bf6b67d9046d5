from __future__ import annotations

from ddms.models.base import ApiModel


class Permission(ApiModel):
    id: str = ""
    name: str = ""
    resource: str
    action: str


class UserRole(ApiModel):
    """A role as sent by either the login payload (``roleName``) or the users API (``name``)."""

    role_id: str | None = None
    id: str | None = None
    role_name: str | None = None
    name: str | None = None
    store_id: str = ""
    store_name: str | None = None
    permissions: list[Permission] = []

    @property
    def display_name(self) -> str:
        return self.name or self.role_name or ""


class Store(ApiModel):
    id: str
    name: str
    address: str = ""
    city: str = ""
    state: str = ""
    contact: str = ""
    subscription_status: str = ""


class AuthUser(ApiModel):
    id: str
    name: str
    mobile: str = ""
    email: str | None = None
    roles: list[UserRole] = []
    stores: list[Store] = []
    current_store_id: str | None = None
    permissions: list[Permission] | None = None


class TokenPair(ApiModel):
    token: str
    refresh_token: str | None = None


class Customer(ApiModel):
    id: str
    account_number: str = ""
    name: str
    mobile: str = ""
    active: bool = True


class Particular(ApiModel):
    id: str
    name: str
    type: str = "RECEIPT"
    active: bool = True
