from functools import lru_cache
import logging
from zoneinfo import ZoneInfo

from availability_engine.core.config import settings
from availability_engine.application.ports.calendar_provider import CalendarProviderPort
from availability_engine.application.ports.credential_cipher import CredentialCipherPort
from availability_engine.application.use_cases.availability_engine import AvailabilityEngine
from availability_engine.application.use_cases.conflict_detection import ConflictDetector
from availability_engine.domain.entities.business_hours import BusinessHours
from availability_engine.domain.entities.calendar_integration import CalendarProvider
from availability_engine.infrastructure.calendar.caldav_client import CalDAVCalendarClient
from availability_engine.infrastructure.calendar.google_calendar_client import GoogleCalendarClient
from availability_engine.infrastructure.calendar.mock_calendar import MockCalendar
from availability_engine.infrastructure.calendar.outlook_calendar_client import OutlookCalendarClient
from availability_engine.infrastructure.crypto.aes_cipher import AesGcmCredentialCipher
from availability_engine.infrastructure.crypto.plaintext_cipher import PlaintextCredentialCipher
from availability_engine.infrastructure.store.json_store import JsonScheduleStore
from availability_engine.infrastructure.store.memory_store import MemoryScheduleStore


_schedule_store: MemoryScheduleStore | JsonScheduleStore | None = None


def _is_dev() -> bool:
    return settings.ENV.lower() in {"dev", "local"}


def get_schedule_store() -> MemoryScheduleStore | JsonScheduleStore:
    global _schedule_store
    if _schedule_store is None:
        if settings.STORE_PROVIDER.lower() == "json":
            _schedule_store = JsonScheduleStore(data_dir=settings.DATA_DIR)
        else:
            _schedule_store = MemoryScheduleStore()
    return _schedule_store


@lru_cache
def get_credential_cipher() -> CredentialCipherPort:
    if settings.CREDENTIAL_ENCRYPTION_KEY:
        return AesGcmCredentialCipher(settings.CREDENTIAL_ENCRYPTION_KEY, settings.CREDENTIAL_KDF_SALT)
    if _is_dev():
        logging.getLogger(__name__).info("Using PlaintextCredentialCipher (key missing, ENV=dev/local)")
        return PlaintextCredentialCipher()
    raise ValueError("CREDENTIAL_ENCRYPTION_KEY is required outside dev/local.")


@lru_cache
def get_calendar_providers() -> dict[CalendarProvider, CalendarProviderPort]:
    providers: dict[CalendarProvider, CalendarProviderPort] = {
        CalendarProvider.GOOGLE: GoogleCalendarClient(),
        CalendarProvider.OUTLOOK: OutlookCalendarClient(),
        CalendarProvider.CALDAV: CalDAVCalendarClient(),
    }
    if _is_dev():
        providers[CalendarProvider.MOCK] = MockCalendar()
    return providers


def get_conflict_detector() -> ConflictDetector:
    return ConflictDetector(
        integrations=get_schedule_store(),
        cipher=get_credential_cipher(),
        providers=get_calendar_providers(),
        max_workers=settings.PROVIDER_MAX_WORKERS,
    )


def get_availability_engine() -> AvailabilityEngine:
    store = get_schedule_store()
    return AvailabilityEngine(
        rules=store,
        bookings=store,
        detector=get_conflict_detector(),
        host_profiles=store,
        default_timezone=ZoneInfo(settings.DEFAULT_TIMEZONE),
        business_hours=BusinessHours.from_strings(settings.BUSINESS_HOURS_START, settings.BUSINESS_HOURS_END),
        step_minutes=settings.SUGGESTION_STEP_MINUTES,
        max_range_days=settings.MAX_RANGE_DAYS,
    )
