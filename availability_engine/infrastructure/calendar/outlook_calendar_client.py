from __future__ import annotations

import logging
from datetime import timezone
from typing import Any
from urllib.parse import quote

import httpx

from availability_engine.application.exceptions import IntegrationError
from availability_engine.application.ports.calendar_provider import CalendarProviderPort
from availability_engine.core.config import settings
from availability_engine.domain.entities.conflict import NormalizedEvent
from availability_engine.infrastructure.calendar.event_parsing import parse_provider_datetime

# Single-value extended property holding the internal booking id on events we created.
BOOKING_ID_PROPERTY = "String {66f5a359-4659-4830-9070-00047ec6ac6e} Name bookingId"


class OutlookCalendarClient(CalendarProviderPort):
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
        max_pages: int = 10,
    ) -> None:
        self._base_url = (base_url or settings.MICROSOFT_GRAPH_BASE_URL).rstrip("/")
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
        if not calendar_id or calendar_id == "primary":
            url = f"{self._base_url}/me/calendarView"
        else:
            url = f"{self._base_url}/me/calendars/{quote(calendar_id, safe='')}/calendarView"

        headers = {
            "Authorization": f"Bearer {credential}",
            "Prefer": 'outlook.timezone="UTC"',
        }
        params: dict[str, Any] | None = {
            "startDateTime": start_iso,
            "endDateTime": end_iso,
            "$select": "id,subject,start,end,showAs,isCancelled,location,bodyPreview",
            "$expand": f"singleValueExtendedProperties($filter=id eq '{BOOKING_ID_PROPERTY}')",
            "$orderby": "start/dateTime",
            "$top": 250,
        }

        items: list[dict[str, Any]] = []
        next_url: str | None = url
        for _ in range(self._max_pages):
            if not next_url:
                break
            try:
                response = self._client.get(next_url, params=params, headers=headers)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                self._logger.error(
                    "Failed to get Outlook calendar events",
                    extra={"status": e.response.status_code, "error": e.response.text[:200]},
                )
                raise IntegrationError(
                    f"Failed to retrieve Outlook calendar events (HTTP {e.response.status_code})"
                ) from e
            except httpx.HTTPError as e:
                self._logger.error("Failed to get Outlook calendar events", extra={"error": str(e)})
                raise IntegrationError(f"Failed to retrieve Outlook calendar events: {e}") from e

            data = response.json()
            items.extend(data.get("value") or [])
            # nextLink already carries the query string.
            next_url = data.get("@odata.nextLink")
            params = None

        if next_url:
            self._logger.warning(
                "Outlook calendar page limit reached, remaining events were not read",
                extra={"calendar_id": calendar_id or "primary", "pages": self._max_pages, "event_count": len(items)},
            )

        events: list[NormalizedEvent] = []
        for item in items:
            event = normalize_outlook_event(item)
            if event is not None:
                events.append(event)
        return events


def normalize_outlook_event(item: dict[str, Any]) -> NormalizedEvent | None:
    start_raw = (item.get("start") or {}).get("dateTime")
    end_raw = (item.get("end") or {}).get("dateTime")
    if not start_raw or not end_raw:
        return None
    try:
        # Times are requested in UTC through the Prefer header.
        start = parse_provider_datetime(start_raw, assume_tz=timezone.utc)
        end = parse_provider_datetime(end_raw, assume_tz=timezone.utc)
    except ValueError:
        return None

    show_as = str(item.get("showAs") or "busy")
    location = item.get("location")
    if isinstance(location, dict):
        location = location.get("displayName") or None

    booking_id = None
    for prop in item.get("singleValueExtendedProperties") or []:
        if str(prop.get("id", "")).lower() == BOOKING_ID_PROPERTY.lower():
            booking_id = prop.get("value")
            break

    return NormalizedEvent(
        id=str(item.get("id") or ""),
        title=item.get("subject") or "Untitled Event",
        start=start,
        end=end,
        status="cancelled" if item.get("isCancelled") else show_as,
        transparency="transparent" if show_as.lower() == "free" else "opaque",
        description=item.get("bodyPreview"),
        location=location,
        booking_id=booking_id,
    )
