#!/usr/bin/env python3
"""
Print a host's bookable slots from a JSON owner snapshot (no HTTP).

Usage:
  python3 scripts/show_slots.py HOST_ID 2026-03-02 --duration 30 [--buffer 10] [--data-dir ./data/owners] [--json]
  python3 scripts/show_slots.py HOST_ID 2026-03-02 --duration 30 --alternatives 2026-03-02T09:00
  python3 scripts/show_slots.py --generate-key
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import date, datetime
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from dotenv import load_dotenv

load_dotenv()

from availability_engine.application.exceptions import ConfigurationError, ValidationError
from availability_engine.application.use_cases.availability_engine import AvailabilityEngine
from availability_engine.application.use_cases.conflict_detection import ConflictDetector
from availability_engine.infrastructure.crypto.aes_cipher import AesGcmCredentialCipher
from availability_engine.infrastructure.store.json_store import JsonScheduleStore
from availability_engine.wiring.dependencies import get_calendar_providers, get_credential_cipher


def _build_engine(data_dir: str) -> AvailabilityEngine:
    store = JsonScheduleStore(data_dir=data_dir)
    detector = ConflictDetector(
        integrations=store,
        cipher=get_credential_cipher(),
        providers=get_calendar_providers(),
    )
    return AvailabilityEngine(rules=store, bookings=store, detector=detector, host_profiles=store)


def main() -> int:
    parser = argparse.ArgumentParser(description="Show available slots for a host.")
    parser.add_argument("host_id", nargs="?")
    parser.add_argument("date", nargs="?", type=date.fromisoformat)
    parser.add_argument("--duration", type=int, default=30)
    parser.add_argument("--buffer", type=int, default=0)
    parser.add_argument("--data-dir", default="./data/owners")
    parser.add_argument("--alternatives", type=datetime.fromisoformat, default=None)
    parser.add_argument("--json", action="store_true", help="Print slots as JSON")
    parser.add_argument("--generate-key", action="store_true", help="Print a new CREDENTIAL_ENCRYPTION_KEY")
    args = parser.parse_args()

    if args.generate_key:
        print(AesGcmCredentialCipher.generate_secret())
        return 0

    if not args.host_id or not args.date:
        parser.error("host_id and date are required")

    engine = _build_engine(args.data_dir)
    tz = engine.host_timezone(args.host_id)

    try:
        slots = engine.compute_available_slots(args.host_id, args.date, args.duration, args.buffer)
    except (ConfigurationError, ValidationError) as e:
        print(f"Error: {e}")
        return 1

    if args.json:
        print(json.dumps([slot.to_dict() for slot in slots], indent=2))
        return 0

    print(f"{len(slots)} slot(s) for {args.host_id} on {args.date.isoformat()} ({tz.key}):")
    for slot in slots:
        print(f"  {slot.start.astimezone(tz):%H:%M} - {slot.end.astimezone(tz):%H:%M}")

    if args.alternatives is not None:
        suggestions = engine.suggest_alternatives(args.host_id, args.alternatives, args.duration)
        print(f"\nAlternatives after {args.alternatives.isoformat()}:")
        for start in suggestions:
            print(f"  {start.astimezone(tz):%Y-%m-%d %H:%M}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
