"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from protein_finder.adapters.json_catalog_repository import JsonCatalogRepository
from protein_finder.adapters.supabase_recent_repository import (
    SupabaseRecentRestaurantsRepository,
)
from protein_finder.config import Settings
from protein_finder.services.catalog import CatalogService
from protein_finder.services.recent import (
    InMemoryRecentRestaurantsRepository,
    RecentRestaurantsRepository,
    RecentRestaurantsService,
)
from protein_finder.services.sessions import CartSessions


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    catalog_service: CatalogService
    cart_sessions: CartSessions
    recent_service: RecentRestaurantsService


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    catalog_repository = JsonCatalogRepository.load(resolved_settings.data_dir)
    catalog_service = CatalogService(
        repository=catalog_repository,
        popular_limit=resolved_settings.popular_restaurants_limit,
        suggestion_limit=resolved_settings.suggestion_limit,
    )

    recent_repository: RecentRestaurantsRepository
    if resolved_settings.uses_supabase:
        supabase_client = create_client(
            resolved_settings.supabase_url, resolved_settings.supabase_service_key
        )
        recent_repository = SupabaseRecentRestaurantsRepository(supabase_client)
    else:
        recent_repository = InMemoryRecentRestaurantsRepository(
            ttl_seconds=resolved_settings.cart_session_ttl_seconds
        )

    return AppContainer(
        settings=resolved_settings,
        catalog_service=catalog_service,
        cart_sessions=CartSessions(
            ttl_seconds=resolved_settings.cart_session_ttl_seconds
        ),
        recent_service=RecentRestaurantsService(
            repository=recent_repository,
            limit=resolved_settings.recent_restaurants_limit,
        ),
    )
