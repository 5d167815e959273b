"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from trackcal.adapters.openai_meal_client import OpenAIMealClient
from trackcal.adapters.sqlite_repository import (
    SqliteDatabase,
    SqliteEntryRepository,
    SqliteGoalSettingsRepository,
)
from trackcal.adapters.supabase_repository import (
    SupabaseEntryRepository,
    SupabaseGoalSettingsRepository,
)
from trackcal.config import Settings
from trackcal.services.entries import EntryRepository, EntryStore
from trackcal.services.goals import GoalSettingsRepository, GoalSettingsService
from trackcal.services.ledger import LedgerService
from trackcal.services.resolver import MealResolver


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    entry_store: EntryStore
    meal_resolver: MealResolver
    goal_settings_service: GoalSettingsService
    ledger_service: LedgerService


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    entry_repository, settings_repository = _build_repositories(resolved_settings)
    meal_client = OpenAIMealClient.create(
        model=resolved_settings.llm_model,
        base_url=resolved_settings.llm_base_url,
        timeout_seconds=resolved_settings.resolve_timeout_seconds,
    )
    entry_store = EntryStore(entry_repository)
    meal_resolver = MealResolver(
        client=meal_client,
        timeout_seconds=resolved_settings.resolve_timeout_seconds,
    )
    goal_settings_service = GoalSettingsService(settings_repository)
    ledger_service = LedgerService(
        store=entry_store,
        resolver=meal_resolver,
        goals=goal_settings_service,
        timezone=resolved_settings.zone(),
    )
    return AppContainer(
        settings=resolved_settings,
        entry_store=entry_store,
        meal_resolver=meal_resolver,
        goal_settings_service=goal_settings_service,
        ledger_service=ledger_service,
    )


def _build_repositories(
    settings: Settings,
) -> tuple[EntryRepository, GoalSettingsRepository]:
    if settings.storage_backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ValueError(
                "supabase_url and supabase_service_key are required "
                "for the supabase storage backend"
            )
        client = create_client(settings.supabase_url, settings.supabase_service_key)
        return SupabaseEntryRepository(client), SupabaseGoalSettingsRepository(client)
    database = SqliteDatabase.open(settings.sqlite_path)
    return SqliteEntryRepository(database), SqliteGoalSettingsRepository(database)
