"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from peptide_tracker.adapters.supabase_cycle_repository import SupabaseCycleRepository
from peptide_tracker.adapters.supabase_dose_repository import SupabaseDoseRepository
from peptide_tracker.config import Settings
from peptide_tracker.services.calendar import CalendarService
from peptide_tracker.services.cycles import CycleService
from peptide_tracker.services.doses import DoseService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    cycle_service: CycleService
    dose_service: DoseService
    calendar_service: CalendarService


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    cycle_repository = SupabaseCycleRepository(
        supabase_client, resolved_settings.account_id
    )
    dose_repository = SupabaseDoseRepository(
        supabase_client, resolved_settings.account_id
    )
    return AppContainer(
        settings=resolved_settings,
        cycle_service=CycleService(
            repository=cycle_repository, dose_repository=dose_repository
        ),
        dose_service=DoseService(dose_repository),
        calendar_service=CalendarService(
            cycle_repository=cycle_repository,
            dose_repository=dose_repository,
            default_route=resolved_settings.default_route,
            strict_frequencies=resolved_settings.strict_frequencies,
            demo_history=resolved_settings.demo_history,
        ),
    )
