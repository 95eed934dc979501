from comunimo.services.championship_service import (
    upsert_user, get_user, assign_society, can_manage_society, list_manageable_societies,
    create_society, get_society, list_societies,
    create_member, list_members,
    create_championship, get_championship, list_championships,
    create_race, get_race, list_races,
    list_championship_registrations, get_championship_registration,
    list_race_registrations, registered_member_ids,
)
from comunimo.services.registration_service import (
    RegistrationResult,
    register_members, cancel_registration,
    register_race_members, cancel_race_registration,
    register_athlete,
)
from comunimo.services.bib_service import next_bib_numbers, next_race_bib_numbers, format_bib_number
from comunimo.services.category_service import calculate_category, resolve_category
from comunimo.services.errors import (
    RegistrationError, InvalidSelectionError, NotFoundError,
    AlreadyRegisteredError, BibAllocationError, RaceFullError,
)

__all__ = [
    # operators / CRUD
    "upsert_user", "get_user", "assign_society", "can_manage_society", "list_manageable_societies",
    "create_society", "get_society", "list_societies",
    "create_member", "list_members",
    "create_championship", "get_championship", "list_championships",
    "create_race", "get_race", "list_races",
    "list_championship_registrations", "get_championship_registration",
    "list_race_registrations", "registered_member_ids",
    # allocator
    "RegistrationResult",
    "register_members", "cancel_registration",
    "register_race_members", "cancel_race_registration",
    "register_athlete",
    # bib numbers
    "next_bib_numbers", "next_race_bib_numbers", "format_bib_number",
    # categories
    "calculate_category", "resolve_category",
    # errors
    "RegistrationError", "InvalidSelectionError", "NotFoundError",
    "AlreadyRegisteredError", "BibAllocationError", "RaceFullError",
]
