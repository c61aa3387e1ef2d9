"""
Topapi Backend: Service Context
=================================

What:  The one object holding every long-lived collaborator: settings,
       record store, identity client, token verifier and rate limiter.
Why:   Handlers receive their dependencies from here instead of reaching
       for module-level clients, so tests can hand the app a context built
       around in-memory doubles.
How:   build_service_context() runs once in the app lifespan; aclose()
       releases the HTTP client and the database pool at shutdown.

Lifecycle:
    startup   → build_service_context(settings) → app.state.context
    requests  → read-only access via dependencies.get_context()
    shutdown  → await context.aclose()
"""

import logging
from dataclasses import dataclass

from topapi.config import Settings
from topapi.database import create_engine_from_settings, create_session_factory
from topapi.services.identity_base import IdentityProvider
from topapi.services.rate_limiter import FixedWindowRateLimiter
from topapi.services.sql_store import SqlRecordStore
from topapi.services.store_base import RecordStore
from topapi.services.supabase_auth import SupabaseAuthClient
from topapi.services.token_verifier import TokenVerifier

logger = logging.getLogger(__name__)


@dataclass
class ServiceContext:
    settings: Settings
    store: RecordStore
    identity: IdentityProvider
    verifier: TokenVerifier
    rate_limiter: FixedWindowRateLimiter

    @classmethod
    def create(
        cls, settings: Settings, store: RecordStore, identity: IdentityProvider
    ) -> "ServiceContext":
        """Wire a context around an existing store and identity client."""
        return cls(
            settings=settings,
            store=store,
            identity=identity,
            verifier=TokenVerifier(identity),
            rate_limiter=FixedWindowRateLimiter(
                limit=settings.rate_limit_requests,
                window=settings.rate_limit_window,
            ),
        )

    async def aclose(self) -> None:
        await self.identity.aclose()
        await self.store.aclose()


def build_service_context(settings: Settings) -> ServiceContext:
    """Production wiring: SQLAlchemy store and the hosted auth provider."""
    engine = create_engine_from_settings(settings)
    store = SqlRecordStore(create_session_factory(engine), engine=engine)
    identity = SupabaseAuthClient(
        base_url=settings.supabase_url,
        anon_key=settings.supabase_anon_key,
        service_role_key=settings.supabase_service_role_key,
        timeout=settings.identity_timeout,
    )
    logger.info(
        "Service context ready (identity admin API %s)",
        "enabled" if identity.has_admin_access else "disabled",
    )
    return ServiceContext.create(settings, store, identity)
