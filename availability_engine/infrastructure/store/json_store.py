from __future__ import annotations

import json
import logging
import threading
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Any

from availability_engine.application.ports.availability_rules import AvailabilityRuleReaderPort
from availability_engine.application.ports.bookings import BookingReaderPort
from availability_engine.application.ports.host_profile import HostProfilePort
from availability_engine.application.ports.integrations import IntegrationReaderPort
from availability_engine.domain.entities.availability_rule import AvailabilityRule
from availability_engine.domain.entities.booking import Booking, BookingStatus
from availability_engine.domain.entities.calendar_integration import CalendarIntegration
from availability_engine.domain.entities.time_slot import DateRange
from availability_engine.infrastructure.store.memory_store import filter_bookings, filter_rules


class JsonScheduleStore(
    AvailabilityRuleReaderPort,
    BookingReaderPort,
    IntegrationReaderPort,
    HostProfilePort,
):
    """
    Read-only snapshot store: one <owner_id>.json file per owner.

    File layout:
        {
          "timezone": "Europe/Berlin",
          "rules": [{...AvailabilityRule fields...}],
          "bookings": [{...Booking fields...}],
          "integrations": [{...CalendarIntegration fields...}]
        }

    Files are re-read on every call so edits show up without a restart.
    """

    def __init__(self, data_dir: str = "./data/owners") -> None:
        self._data_dir = Path(data_dir)
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def _get_file_path(self, owner_id: str) -> Path:
        return self._data_dir / f"{owner_id}.json"

    def _load_owner(self, owner_id: str) -> dict[str, Any]:
        file_path = self._get_file_path(owner_id)
        if not file_path.exists():
            return {}
        with self._lock:
            try:
                with open(file_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (json.JSONDecodeError, IOError) as e:
                self._logger.error(
                    "Failed to read owner snapshot",
                    extra={"host_id": owner_id, "error": str(e)},
                )
                raise
        if not isinstance(data, dict):
            raise ValueError(f"Owner snapshot for {owner_id} must be a JSON object")
        return data

    def _section(self, owner_id: str, key: str) -> list[dict[str, Any]]:
        items = self._load_owner(owner_id).get(key) or []
        # Owner id defaults to the file name when entries omit it.
        return [{"owner_id": owner_id, "host_id": owner_id, **item} for item in items]

    def read_availability_rules(self, owner_id: str, window: DateRange | None = None) -> list[AvailabilityRule]:
        rules = [AvailabilityRule.from_payload(item) for item in self._section(owner_id, "rules")]
        return filter_rules(rules, window)

    def read_bookings(
        self,
        host_id: str,
        start: datetime,
        end: datetime,
        statuses: Iterable[BookingStatus],
    ) -> list[Booking]:
        bookings = [Booking.from_payload(item) for item in self._section(host_id, "bookings")]
        return filter_bookings(bookings, start, end, statuses)

    def read_active_integrations(self, owner_id: str) -> list[CalendarIntegration]:
        integrations = [CalendarIntegration.from_payload(item) for item in self._section(owner_id, "integrations")]
        return [i for i in integrations if i.is_active]

    def read_timezone(self, host_id: str) -> str | None:
        return self._load_owner(host_id).get("timezone") or None
