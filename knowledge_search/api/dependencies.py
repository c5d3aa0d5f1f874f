"""Shared FastAPI dependencies."""

from fastapi import Request

from knowledge_search.container import ServiceContainer
from knowledge_search.exceptions import ConfigurationError
from knowledge_search.search.hybrid import HybridSearchService
from knowledge_search.sync.orchestrator import SyncOrchestrator


def get_container(request: Request) -> ServiceContainer:
    """Container built by the application lifespan.

    Raises:
        ConfigurationError: If the services were not started.
    """
    container: ServiceContainer | None = getattr(request.app.state, "container", None)
    if container is None:
        raise ConfigurationError("Search services are not initialized")
    return container


def get_orchestrator(request: Request) -> SyncOrchestrator:
    return get_container(request).orchestrator


def get_search_service(request: Request) -> HybridSearchService:
    return get_container(request).search


__all__ = ["get_container", "get_orchestrator", "get_search_service"]
