"""SessionContext — explicit per-session state.

Constructed once at session start and passed to every service. Holds the
settings, the session's store client, its identity resolution, and the
optional lifecycle event bus. Tearing the session down (or switching
identity) releases every subscription the session opened; teardown also
drains the event bus so failed hooks get their retry.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rentctl.config.logging import bind_session
from rentctl.infrastructure.store import AgreementStore
from rentctl.services.identity import IdentityResolution, IdentityResolver

if TYPE_CHECKING:
    from rentctl.config.settings import RentSettings
    from rentctl.domain.roles import Role
    from rentctl.infrastructure.store import AgreementStoreClient
    from rentctl.plugins.event_bus import EventBus
    from rentctl.plugins.manager import PluginManager
    from rentctl.services.identity import AuthProvider

logger = logging.getLogger(__name__)


class SessionContext:
    """Everything one submitter or administrator session works with."""

    def __init__(
        self,
        settings: RentSettings,
        store: AgreementStore,
        resolver: IdentityResolver,
        *,
        owns_store: bool = False,
    ) -> None:
        self.settings = settings
        self.store = store
        self.client: AgreementStoreClient = store.client()
        self._resolver = resolver
        self._owns_store = owns_store
        self._provider: AuthProvider | None = None
        self.event_bus: EventBus | None = None

    @classmethod
    def open(
        cls,
        settings: RentSettings,
        *,
        store: AgreementStore | None = None,
        provider: AuthProvider | None = None,
        token: str | None = None,
    ) -> SessionContext:
        """Open the store (unless given) and resolve the session identity."""
        owns_store = store is None
        if store is None:
            store = AgreementStore(settings.db_path, timeout=settings.store.timeout)
        resolver = IdentityResolver.from_settings(settings, provider=provider, bootstrap_token=token)
        ctx = cls(settings, store, resolver, owns_store=owns_store)
        ctx._provider = provider
        ctx.resolve()
        return ctx

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def resolution(self) -> IdentityResolution:
        return self._resolver.resolution

    @property
    def ready(self) -> bool:
        return self.resolution.ready

    @property
    def identity(self) -> str | None:
        return self.resolution.identity

    @property
    def role(self) -> Role | None:
        return self.resolution.role

    @property
    def is_admin(self) -> bool:
        return self.resolution.is_admin

    def resolve(self) -> IdentityResolution:
        resolution = self._resolver.resolve()
        bind_session(identity=resolution.identity, role=resolution.role)
        return resolution

    def switch_identity(self, token: str | None) -> IdentityResolution:
        """Sign in again as someone else.

        Subscriptions belong to the previous role and are released first.
        """
        self.client.close()
        self._resolver = IdentityResolver.from_settings(
            self.settings, provider=self._provider, bootstrap_token=token or ""
        )
        return self.resolve()

    # ------------------------------------------------------------------
    # Extensions
    # ------------------------------------------------------------------

    def init_event_bus(self, plugin_manager: PluginManager | None = None) -> None:
        """Wire lifecycle hooks; discovers entry-point plugins if no manager is given."""
        from rentctl.plugins.event_bus import EventBus
        from rentctl.plugins.manager import PluginManager

        if plugin_manager is None:
            plugin_manager = PluginManager()
            plugin_manager.discover_and_load()
        self.event_bus = EventBus(self.store.engine, plugin_manager)

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Retry outstanding lifecycle events, then release subscriptions.

        The store is disposed only if this session opened it.
        """
        try:
            if self.event_bus is not None:
                retried = self.event_bus.drain()
                if retried:
                    logger.debug("Retried %d lifecycle event(s) at close", len(retried))
        finally:
            self.client.close()
            if self._owns_store:
                self.store.close()

    def __enter__(self) -> SessionContext:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
