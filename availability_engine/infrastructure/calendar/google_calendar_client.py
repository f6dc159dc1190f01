from __future__ import annotations

import logging
from datetime import datetime
from typing import Any
from urllib.parse import quote

import httpx

from availability_engine.application.exceptions import IntegrationError
from availability_engine.application.ports.calendar_provider import CalendarProviderPort
from availability_engine.core.config import settings
from availability_engine.domain.entities.conflict import NormalizedEvent
from availability_engine.infrastructure.calendar.event_parsing import parse_all_day, parse_provider_datetime


class GoogleCalendarClient(CalendarProviderPort):
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
        max_pages: int = 10,
    ) -> None:
        self._base_url = (base_url or settings.GOOGLE_CALENDAR_BASE_URL).rstrip("/")
        self._client = client or httpx.Client(timeout=timeout or settings.PROVIDER_TIMEOUT_SECONDS)
        self._max_pages = max_pages
        self._logger = logging.getLogger(__name__)

    def list_events(
        self,
        credential: str,
        calendar_id: str | None,
        start_iso: str,
        end_iso: str,
    ) -> list[NormalizedEvent]:
        url = f"{self._base_url}/calendars/{quote(calendar_id or 'primary', safe='')}/events"
        headers = {"Authorization": f"Bearer {credential}"}
        params: dict[str, Any] = {
            "timeMin": start_iso,
            "timeMax": end_iso,
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": 250,
        }

        items: list[dict[str, Any]] = []
        for _ in range(self._max_pages):
            try:
                response = self._client.get(url, params=params, headers=headers)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                self._logger.error(
                    "Failed to get Google Calendar events",
                    extra={"status": e.response.status_code, "error": e.response.text[:200]},
                )
                raise IntegrationError(
                    f"Failed to retrieve Google Calendar events (HTTP {e.response.status_code})"
                ) from e
            except httpx.HTTPError as e:
                self._logger.error("Failed to get Google Calendar events", extra={"error": str(e)})
                raise IntegrationError(f"Failed to retrieve Google Calendar events: {e}") from e

            data = response.json()
            items.extend(data.get("items") or [])
            page_token = data.get("nextPageToken")
            if not page_token:
                break
            params["pageToken"] = page_token
        else:
            self._logger.warning(
                "Google Calendar page limit reached, remaining events were not read",
                extra={"calendar_id": calendar_id or "primary", "pages": self._max_pages, "event_count": len(items)},
            )

        events: list[NormalizedEvent] = []
        for item in items:
            event = normalize_google_event(item)
            if event is not None:
                events.append(event)
        return events


def normalize_google_event(item: dict[str, Any]) -> NormalizedEvent | None:
    """Map a Calendar v3 event resource. Events without a usable start or end are dropped."""
    try:
        start = _parse_google_time(item.get("start") or {})
        end = _parse_google_time(item.get("end") or {})
    except ValueError:
        return None
    if start is None or end is None:
        return None

    private = (item.get("extendedProperties") or {}).get("private") or {}
    return NormalizedEvent(
        id=str(item.get("id") or ""),
        title=item.get("summary") or "Untitled Event",
        start=start,
        end=end,
        status=str(item.get("status") or "confirmed").lower(),
        transparency=str(item.get("transparency") or "opaque").lower(),
        description=item.get("description"),
        location=item.get("location"),
        booking_id=private.get("bookingId"),
    )


def _parse_google_time(value: dict[str, Any]) -> datetime | None:
    if value.get("dateTime"):
        return parse_provider_datetime(value["dateTime"])
    if value.get("date"):
        return parse_all_day(value["date"])
    return None
