from __future__ import annotations

import json
import logging
import re
import xml.etree.ElementTree as ET
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import urljoin
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx

from availability_engine.application.exceptions import IntegrationError
from availability_engine.application.ports.calendar_provider import CalendarProviderPort
from availability_engine.core.config import settings
from availability_engine.domain.entities.conflict import NormalizedEvent

CALDAV_NS = "urn:ietf:params:xml:ns:caldav"

CALENDAR_QUERY = """<?xml version="1.0" encoding="utf-8"?>
<C:calendar-query xmlns:D="DAV:" xmlns:C="urn:ietf:params:xml:ns:caldav">
  <D:prop>
    <D:getetag/>
    <C:calendar-data/>
  </D:prop>
  <C:filter>
    <C:comp-filter name="VCALENDAR">
      <C:comp-filter name="VEVENT">
        <C:time-range start="{start}" end="{end}"/>
      </C:comp-filter>
    </C:comp-filter>
  </C:filter>
</C:calendar-query>"""

_VEVENT_RE = re.compile(r"BEGIN:VEVENT\r?\n(.*?)END:VEVENT", re.S)
_FOLDED_LINE_RE = re.compile(r"\r?\n[ \t]")
_VALARM_RE = re.compile(r"BEGIN:VALARM\r?\n.*?END:VALARM\r?\n?", re.S)


class CalDAVCalendarClient(CalendarProviderPort):
    """
    CalDAV adapter. The decrypted credential is a JSON object:
    {"username": ..., "password": ..., "server_url": optional base for relative calendar ids}.
    calendar_id is the calendar collection URL.
    """

    def __init__(
        self,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._client = client or httpx.Client(timeout=timeout or settings.PROVIDER_TIMEOUT_SECONDS)
        self._logger = logging.getLogger(__name__)

    def list_events(
        self,
        credential: str,
        calendar_id: str | None,
        start_iso: str,
        end_iso: str,
    ) -> list[NormalizedEvent]:
        creds = _parse_credential(credential)
        calendar_url = _resolve_calendar_url(calendar_id, creds.get("server_url"))

        body = CALENDAR_QUERY.format(start=format_caldav_time(start_iso), end=format_caldav_time(end_iso))
        try:
            response = self._client.request(
                "REPORT",
                calendar_url,
                content=body.encode("utf-8"),
                headers={"Content-Type": "application/xml; charset=utf-8", "Depth": "1"},
                auth=(creds.get("username", ""), creds.get("password", "")),
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self._logger.error(
                "Failed to get CalDAV events",
                extra={"status": e.response.status_code, "error": e.response.text[:200]},
            )
            raise IntegrationError(f"Failed to retrieve calendar events (HTTP {e.response.status_code})") from e
        except httpx.HTTPError as e:
            self._logger.error("Failed to get CalDAV events", extra={"error": str(e)})
            raise IntegrationError(f"Failed to retrieve calendar events: {e}") from e

        return parse_calendar_query_response(response.text)


def format_caldav_time(iso_value: str) -> str:
    parsed = datetime.fromisoformat(iso_value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def parse_calendar_query_response(xml_text: str) -> list[NormalizedEvent]:
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise IntegrationError(f"Invalid CalDAV response: {e}") from e

    events: list[NormalizedEvent] = []
    for node in root.iter(f"{{{CALDAV_NS}}}calendar-data"):
        events.extend(parse_ical_events(node.text or ""))
    return events


def parse_ical_events(ical_text: str) -> list[NormalizedEvent]:
    unfolded = _FOLDED_LINE_RE.sub("", ical_text)
    events: list[NormalizedEvent] = []
    for block in _VEVENT_RE.findall(unfolded):
        event = _parse_vevent(block)
        if event is not None:
            events.append(event)
    return events


def _parse_vevent(block: str) -> NormalizedEvent | None:
    props: dict[str, tuple[dict[str, str], str]] = {}
    # Nested VALARM properties belong to the alarm, not the event.
    for line in _VALARM_RE.sub("", block).splitlines():
        if ":" not in line:
            continue
        head, value = line.split(":", 1)
        name, *raw_params = head.split(";")
        params = {}
        for raw in raw_params:
            if "=" in raw:
                key, val = raw.split("=", 1)
                params[key.upper()] = val.strip('"')
        # First occurrence wins.
        props.setdefault(name.upper(), (params, value.strip()))

    uid = props.get("UID", ({}, ""))[1]
    if not uid or "DTSTART" not in props:
        return None

    try:
        start, all_day = _parse_ical_datetime(*props["DTSTART"])
        if "DTEND" in props:
            end, _ = _parse_ical_datetime(*props["DTEND"])
        elif all_day:
            end = start + timedelta(days=1)
        else:
            return None
    except ValueError:
        return None

    status = props.get("STATUS", ({}, "CONFIRMED"))[1].lower()
    transparency = props.get("TRANSP", ({}, "OPAQUE"))[1].lower()

    return NormalizedEvent(
        id=uid,
        title=_unescape(props.get("SUMMARY", ({}, ""))[1]) or "Untitled Event",
        start=start,
        end=end,
        status=status,
        transparency=transparency,
        description=_unescape(props["DESCRIPTION"][1]) if "DESCRIPTION" in props else None,
        location=_unescape(props["LOCATION"][1]) if "LOCATION" in props else None,
        booking_id=props["X-BOOKING-ID"][1] if "X-BOOKING-ID" in props else None,
    )


def _parse_ical_datetime(params: dict[str, str], value: str) -> tuple[datetime, bool]:
    """Returns (instant, is_all_day). Floating times without TZID are read as UTC."""
    if params.get("VALUE") == "DATE" or re.fullmatch(r"\d{8}", value):
        day = datetime.strptime(value, "%Y%m%d")
        return day.replace(tzinfo=timezone.utc), True

    if value.endswith("Z"):
        return datetime.strptime(value, "%Y%m%dT%H%M%SZ").replace(tzinfo=timezone.utc), False

    local = datetime.strptime(value, "%Y%m%dT%H%M%S")
    tz: Any = timezone.utc
    if params.get("TZID"):
        try:
            tz = ZoneInfo(params["TZID"])
        except (ZoneInfoNotFoundError, ValueError):
            tz = timezone.utc
    return local.replace(tzinfo=tz).astimezone(timezone.utc), False


def _unescape(text: str) -> str:
    return (
        text.replace("\\n", "\n")
        .replace("\\N", "\n")
        .replace("\\,", ",")
        .replace("\\;", ";")
        .replace("\\\\", "\\")
    )


def _parse_credential(credential: str) -> dict[str, str]:
    try:
        data = json.loads(credential)
    except (json.JSONDecodeError, TypeError) as e:
        raise IntegrationError("CalDAV credential must be a JSON object") from e
    if not isinstance(data, dict) or not data.get("username"):
        raise IntegrationError("CalDAV credential requires a username")
    return data


def _resolve_calendar_url(calendar_id: str | None, server_url: str | None) -> str:
    if not calendar_id:
        if not server_url:
            raise IntegrationError("CalDAV integration has no calendar URL")
        return server_url
    if calendar_id.startswith(("http://", "https://")):
        return calendar_id
    if not server_url:
        raise IntegrationError("Relative CalDAV calendar path requires server_url")
    return urljoin(server_url.rstrip("/") + "/", calendar_id.lstrip("/"))
