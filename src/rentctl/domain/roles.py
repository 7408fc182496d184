"""Session roles and the role-claim policy.

There are exactly two roles. Which one a session holds is decided once,
at sign-in, by a :class:`RoleClaimPolicy`; nothing else in the system
compares identity strings.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Protocol


class Role(StrEnum):
    """The two mutually exclusive session roles."""

    ADMINISTRATOR = "administrator"
    SUBMITTER = "submitter"


class RoleClaimPolicy(Protocol):
    """Grants a role to a resolved identity."""

    def claim(self, identity: str) -> Role: ...


class StaticAdminPolicy:
    """Grant ``administrator`` to one statically configured identity.

    Exact string equality; every other identity is a submitter.
    """

    def __init__(self, admin_identity: str) -> None:
        if not admin_identity:
            msg = "admin_identity must be a non-empty string"
            raise ValueError(msg)
        self._admin_identity = admin_identity

    def claim(self, identity: str) -> Role:
        if identity == self._admin_identity:
            return Role.ADMINISTRATOR
        return Role.SUBMITTER
