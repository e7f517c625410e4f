"""API Dependencies — bearer gate and per-request service wiring.

Invariants:
    - Token comparison is constant-time (secrets.compare_digest)
    - Services are built per request from the process-wide store and upstream clients;
      they hold no request state of their own

Design Decisions:
    - Plain Depends() providers: tests swap any layer via app.dependency_overrides
"""

import secrets

from fastapi import Depends, Header

from travel_advisor.config import Settings, get_settings
from travel_advisor.core.errors import UnauthorizedError
from travel_advisor.infrastructure.advisory_store import SqlAdvisoryStore
from travel_advisor.infrastructure.database import (
    DatabaseSessionManager, get_db_manager,
)
from travel_advisor.infrastructure.upstream import UpstreamClients, get_upstream
from travel_advisor.services.advisory_queries import AdvisoryQueries
from travel_advisor.services.refresh_orchestrator import (
    RefreshConfig, RefreshOrchestrator,
)
from travel_advisor.services.sync_pipeline import SyncPipeline


async def require_bearer_token(
    authorization: str | None = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    if not authorization:
        raise UnauthorizedError("Authorization header required")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise UnauthorizedError("Invalid authorization header format")
    if not secrets.compare_digest(
        token.strip().encode(), settings.security_bearer_token.encode(),
    ):
        raise UnauthorizedError("Invalid bearer token")


def get_store(
    db: DatabaseSessionManager = Depends(get_db_manager),
    settings: Settings = Depends(get_settings),
) -> SqlAdvisoryStore:
    return SqlAdvisoryStore(db, preserve_created_at=settings.sync_preserve_created_at)


def get_orchestrator(
    store: SqlAdvisoryStore = Depends(get_store),
    clients: UpstreamClients = Depends(get_upstream),
    settings: Settings = Depends(get_settings),
) -> RefreshOrchestrator:
    return build_orchestrator(store, clients, settings)


def get_queries(store: SqlAdvisoryStore = Depends(get_store)) -> AdvisoryQueries:
    return AdvisoryQueries(store)


def build_orchestrator(
    store: SqlAdvisoryStore, clients: UpstreamClients, settings: Settings,
) -> RefreshOrchestrator:
    """Shared by the request path and the scheduler."""
    pipeline = SyncPipeline(store, clients.weather, clients.countries)
    return RefreshOrchestrator(
        pipeline, store, clients.countries, clients.cities,
        RefreshConfig.from_settings(settings),
    )
