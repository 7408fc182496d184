"""Identity resolution — sign-in and role claim for one session.

Resolution happens once. Until it completes, ``ready`` is False. A
failed resolution (missing configuration, rejected credential) is
permanent for the session: ``ready`` stays False and nothing retries.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from rentctl.config.settings import ConfigError
from rentctl.domain.roles import Role, RoleClaimPolicy, StaticAdminPolicy

if TYPE_CHECKING:
    from rentctl.config.settings import RentSettings

logger = logging.getLogger(__name__)

ANONYMOUS_PREFIX = "anon_"


class AuthError(Exception):
    """Sign-in failed or the session cannot be configured."""


class AuthProvider(Protocol):
    """Turns a credential (or nothing) into an identity."""

    def sign_in_with_token(self, token: str) -> str: ...

    def sign_in_anonymously(self) -> str: ...


class LocalAuthProvider:
    """Token table from configuration; anonymous identities are random."""

    def __init__(self, tokens: Mapping[str, str] | None = None) -> None:
        self._tokens = dict(tokens or {})

    def sign_in_with_token(self, token: str) -> str:
        identity = self._tokens.get(token)
        if not identity:
            raise AuthError("Bootstrap credential was rejected")
        return identity

    def sign_in_anonymously(self) -> str:
        return f"{ANONYMOUS_PREFIX}{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class IdentityResolution:
    """Outcome of :meth:`IdentityResolver.resolve`."""

    identity: str | None = None
    role: Role | None = None
    ready: bool = False
    error: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.ready and self.role is Role.ADMINISTRATOR


_UNRESOLVED = IdentityResolution()


class IdentityResolver:
    """Signs in once and classifies the identity through a role policy.

    Args:
        provider: Authentication backend.
        policy: Role-claim policy, or None when configuration is missing.
        bootstrap_token: Credential to sign in with; anonymous if None.
        config_error: Reason the session cannot be configured, if any.
    """

    def __init__(
        self,
        provider: AuthProvider,
        policy: RoleClaimPolicy | None,
        *,
        bootstrap_token: str | None = None,
        config_error: str | None = None,
    ) -> None:
        self._provider = provider
        self._policy = policy
        self._token = bootstrap_token
        self._config_error = config_error
        self._resolution: IdentityResolution | None = None

    @classmethod
    def from_settings(
        cls,
        settings: RentSettings,
        *,
        provider: AuthProvider | None = None,
        bootstrap_token: str | None = None,
    ) -> IdentityResolver:
        """Build a resolver from configuration without raising.

        Missing configuration is recorded and surfaces at :meth:`resolve`.
        """
        policy: RoleClaimPolicy | None = None
        config_error: str | None = None
        try:
            policy = StaticAdminPolicy(settings.require_admin_identity())
        except ConfigError as exc:
            config_error = str(exc)
        return cls(
            provider or LocalAuthProvider(settings.auth.tokens),
            policy,
            bootstrap_token=bootstrap_token if bootstrap_token is not None else settings.bootstrap_token,
            config_error=config_error,
        )

    @property
    def ready(self) -> bool:
        return self.resolution.ready

    @property
    def resolution(self) -> IdentityResolution:
        """Current state; unresolved (``ready=False``) until :meth:`resolve` runs."""
        return self._resolution or _UNRESOLVED

    def resolve(self) -> IdentityResolution:
        """Sign in (first call only) and return the resolution."""
        if self._resolution is not None:
            return self._resolution

        try:
            if self._config_error is not None:
                raise AuthError(self._config_error)
            if self._policy is None:
                raise AuthError("No role policy configured")
            if self._token:
                identity = self._provider.sign_in_with_token(self._token)
            else:
                identity = self._provider.sign_in_anonymously()
            role = self._policy.claim(identity)
        except AuthError as exc:
            logger.error("Identity resolution failed: %s", exc)
            self._resolution = IdentityResolution(error=str(exc))
            return self._resolution

        logger.debug("Signed in as %s (%s)", identity, role)
        self._resolution = IdentityResolution(identity=identity, role=role, ready=True)
        return self._resolution
