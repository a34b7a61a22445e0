"""Caller identity as handed over by the authentication layer."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

PRIVILEGED_ROLES = frozenset({"ADMIN", "SUPER_ADMIN"})


class PermissionContext(BaseModel):
    """Who is searching and what they may do.

    The coordinator only calls ``has_permission`` (type-level gate). Providers
    may additionally use ``user_id`` and ``is_privileged`` for row-level rules,
    e.g. showing drafts only to their author or to administrators.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str = Field(description="Authenticated user identifier")
    role: str = Field(default="USER", description="Role name, e.g. USER, ADMIN")
    permissions: frozenset[str] = Field(default_factory=frozenset, description="Granted capability names")

    def has_permission(self, permission: str) -> bool:
        """Return ``True`` if the caller holds ``permission``.

        A ``*:*`` grant or a ``<resource>:*`` wildcard covers every action on
        that resource.
        """
        if permission in self.permissions or "*:*" in self.permissions:
            return True
        resource, _, _ = permission.partition(":")
        return f"{resource}:*" in self.permissions

    @property
    def is_privileged(self) -> bool:
        return self.role.upper() in PRIVILEGED_ROLES
