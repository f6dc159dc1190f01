from __future__ import annotations

import logging
from collections.abc import Mapping
from concurrent.futures import ALL_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime, timezone

from availability_engine.application.exceptions import IntegrationError, ValidationError
from availability_engine.application.ports.calendar_provider import CalendarProviderPort
from availability_engine.application.ports.credential_cipher import CredentialCipherPort
from availability_engine.application.ports.integrations import IntegrationReaderPort
from availability_engine.application.utils.intervals import overlaps
from availability_engine.domain.entities.calendar_integration import CalendarIntegration, CalendarProvider
from availability_engine.domain.entities.conflict import (
    ConflictCheckResult,
    ConflictRecord,
    IntegrationCheckResult,
    NormalizedEvent,
)


@dataclass(frozen=True)
class _BranchOutcome:
    check: IntegrationCheckResult
    conflicts: list[ConflictRecord] = field(default_factory=list)


class ConflictDetector:
    """
    Collects busy time from every eligible external calendar of an owner.

    Each integration is checked on its own worker thread. The join waits for every
    branch to settle; a failing branch is reported in checked_integrations with
    success=False and contributes no conflicts. Failures never reach the caller.
    """

    def __init__(
        self,
        integrations: IntegrationReaderPort,
        cipher: CredentialCipherPort,
        providers: Mapping[CalendarProvider, CalendarProviderPort],
        max_workers: int = 8,
    ) -> None:
        self._integrations = integrations
        self._cipher = cipher
        self._providers = dict(providers)
        self._max_workers = max(1, max_workers)
        self._logger = logging.getLogger(__name__)

    def check_conflicts(
        self,
        owner_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: str | None = None,
    ) -> ConflictCheckResult:
        start, end = _as_utc(start), _as_utc(end)
        if start >= end:
            raise ValidationError("start must be before end")

        eligible = [i for i in self._integrations.read_active_integrations(owner_id) if i.is_eligible]
        if not eligible:
            self._logger.warning("No active calendar integrations found", extra={"host_id": owner_id})
            return ConflictCheckResult(has_conflicts=False, conflicts=[], checked_integrations=[])

        outcomes = self._run_all(eligible, start, end, exclude_booking_id)

        conflicts: list[ConflictRecord] = []
        checked: list[IntegrationCheckResult] = []
        for outcome in outcomes:
            checked.append(outcome.check)
            conflicts.extend(outcome.conflicts)

        result = ConflictCheckResult(
            has_conflicts=len(conflicts) > 0,
            conflicts=conflicts,
            checked_integrations=checked,
        )
        self._logger.info(
            "Conflict check finished",
            extra={
                "host_id": owner_id,
                "conflict_count": len(conflicts),
                "checked": len(checked),
                "failed": len(result.failed_integrations),
            },
        )
        return result

    def is_time_slot_available(
        self,
        owner_id: str,
        start: datetime,
        end: datetime,
        exclude_booking_id: str | None = None,
    ) -> bool:
        return not self.check_conflicts(owner_id, start, end, exclude_booking_id).has_conflicts

    def _run_all(
        self,
        integrations: list[CalendarIntegration],
        start: datetime,
        end: datetime,
        exclude_booking_id: str | None,
    ) -> list[_BranchOutcome]:
        workers = min(self._max_workers, len(integrations))
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="conflict-check")
        futures: list[Future[_BranchOutcome]] = []
        try:
            futures = [
                executor.submit(self._check_integration, integration, start, end, exclude_booking_id)
                for integration in integrations
            ]
            wait(futures, return_when=ALL_COMPLETED)
        except BaseException:
            for future in futures:
                future.cancel()
            executor.shutdown(wait=False, cancel_futures=True)
            raise
        executor.shutdown(wait=True)

        outcomes: list[_BranchOutcome] = []
        for integration, future in zip(integrations, futures):
            error = future.exception()
            if error is None:
                outcomes.append(future.result())
                continue
            # BaseException subclasses escape _check_integration.
            self._logger.error(
                "Conflict check task failed",
                extra={"integration_id": integration.id, "provider": integration.provider_name, "error": str(error)},
            )
            outcomes.append(_BranchOutcome(check=_failed(integration, str(error))))
        return outcomes

    def _check_integration(
        self,
        integration: CalendarIntegration,
        start: datetime,
        end: datetime,
        exclude_booking_id: str | None,
    ) -> _BranchOutcome:
        try:
            events = self._fetch_events(integration, start, end)
        except Exception as e:
            self._logger.error(
                "Conflict check failed for integration",
                extra={"integration_id": integration.id, "provider": integration.provider_name, "error": str(e)},
            )
            return _BranchOutcome(check=_failed(integration, str(e) or e.__class__.__name__))

        conflicts = [
            _to_conflict(event, integration)
            for event in events
            if is_conflicting(event, start, end, exclude_booking_id)
        ]
        for conflict in conflicts:
            self._logger.debug(
                "Conflict detected",
                extra={
                    "integration_id": integration.id,
                    "provider": integration.provider_name,
                    "event_id": conflict.external_event_id,
                },
            )
        return _BranchOutcome(
            check=IntegrationCheckResult(
                integration_id=integration.id,
                name=integration.name,
                provider=integration.provider_name,
                success=True,
            ),
            conflicts=conflicts,
        )

    def _fetch_events(self, integration: CalendarIntegration, start: datetime, end: datetime) -> list[NormalizedEvent]:
        client = self._providers.get(integration.provider)
        if client is None:
            raise IntegrationError(f"Unsupported calendar provider: {integration.provider_name}")

        # Decrypted per call; never cached.
        credential = self._cipher.decrypt(integration.encrypted_credential)
        return client.list_events(
            credential,
            integration.calendar_id,
            _to_utc_iso(start),
            _to_utc_iso(end),
        )


def matches_excluded_booking(event: NormalizedEvent, exclude_booking_id: str | None) -> bool:
    """
    Structured booking_id metadata is matched first.
    Falls back to the legacy check: booking id appearing in the event description.
    """
    if not exclude_booking_id:
        return False
    if event.booking_id and event.booking_id == exclude_booking_id:
        return True
    return exclude_booking_id in (event.description or "")


def is_conflicting(
    event: NormalizedEvent,
    proposed_start: datetime,
    proposed_end: datetime,
    exclude_booking_id: str | None = None,
) -> bool:
    if matches_excluded_booking(event, exclude_booking_id):
        return False
    if event.is_cancelled or event.is_free:
        return False
    return overlaps(proposed_start, proposed_end, event.start, event.end)


def _to_conflict(event: NormalizedEvent, integration: CalendarIntegration) -> ConflictRecord:
    return ConflictRecord(
        external_event_id=event.id,
        title=event.title or "Untitled Event",
        start=event.start,
        end=event.end,
        provider=integration.provider_name,
        calendar_name=integration.name,
        location=event.location or None,
        status=event.status or "busy",
    )


def _failed(integration: CalendarIntegration, error: str) -> IntegrationCheckResult:
    return IntegrationCheckResult(
        integration_id=integration.id,
        name=integration.name,
        provider=integration.provider_name,
        success=False,
        error=error,
    )


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_utc_iso(value: datetime) -> str:
    return _as_utc(value).isoformat().replace("+00:00", "Z")
