from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query

from availability_engine.api.v1.schemas import (
    AlternativesRequestSchema,
    AlternativesResponseSchema,
    ConflictCheckRequestSchema,
    ConflictCheckResponseSchema,
    ConflictSchema,
    IntegrationCheckSchema,
    NextSlotResponseSchema,
    SlotAvailabilityResponseSchema,
    SlotsRangeResponseSchema,
    SlotsResponseSchema,
    TimeSlotSchema,
)
from availability_engine.application.exceptions import ConfigurationError
from availability_engine.application.use_cases.availability_engine import AvailabilityEngine
from availability_engine.wiring.dependencies import get_availability_engine

router = APIRouter()


@router.get("/hosts/{host_id}/slots", response_model=SlotsResponseSchema)
def get_slots(
    host_id: str,
    day: date = Query(..., alias="date"),
    duration: int = Query(...),
    buffer: int = Query(0),
    engine: AvailabilityEngine = Depends(get_availability_engine),
):
    try:
        slots = engine.compute_available_slots(host_id, day, duration, buffer)
    except ConfigurationError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return SlotsResponseSchema(
        host_id=host_id,
        date=day,
        duration_minutes=duration,
        buffer_minutes=buffer,
        slots=[TimeSlotSchema(start=s.start, end=s.end) for s in slots],
    )


@router.get("/hosts/{host_id}/slots/range", response_model=SlotsRangeResponseSchema)
def get_slots_in_range(
    host_id: str,
    start_date: date = Query(...),
    end_date: date = Query(...),
    duration: int = Query(...),
    buffer: int = Query(0),
    engine: AvailabilityEngine = Depends(get_availability_engine),
):
    try:
        by_day = engine.compute_available_slots_in_range(host_id, start_date, end_date, duration, buffer)
    except ConfigurationError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return SlotsRangeResponseSchema(
        host_id=host_id,
        duration_minutes=duration,
        buffer_minutes=buffer,
        days={
            day: [TimeSlotSchema(start=s.start, end=s.end) for s in slots]
            for day, slots in by_day.items()
        },
    )


@router.get("/hosts/{host_id}/slots/next", response_model=NextSlotResponseSchema)
def get_next_slot(
    host_id: str,
    from_date: date = Query(...),
    duration: int = Query(...),
    buffer: int = Query(0),
    horizon_days: int = Query(14),
    engine: AvailabilityEngine = Depends(get_availability_engine),
):
    try:
        slot = engine.next_available_slot(host_id, from_date, duration, buffer, horizon_days=horizon_days)
    except ConfigurationError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return NextSlotResponseSchema(
        host_id=host_id,
        slot=TimeSlotSchema(start=slot.start, end=slot.end) if slot else None,
    )


@router.post("/hosts/{host_id}/conflicts/check", response_model=ConflictCheckResponseSchema)
def check_conflicts(
    host_id: str,
    req: ConflictCheckRequestSchema,
    engine: AvailabilityEngine = Depends(get_availability_engine),
):
    try:
        result = engine.check_conflicts(host_id, req.start, req.end, req.exclude_booking_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ConflictCheckResponseSchema(
        has_conflicts=result.has_conflicts,
        conflicts=[ConflictSchema(**c.to_dict()) for c in result.conflicts],
        checked_integrations=[
            IntegrationCheckSchema(
                integration_id=r.integration_id,
                name=r.name,
                provider=r.provider,
                success=r.success,
                error=r.error,
            )
            for r in result.checked_integrations
        ],
    )


@router.post("/hosts/{host_id}/availability/check", response_model=SlotAvailabilityResponseSchema)
def check_slot_availability(
    host_id: str,
    req: ConflictCheckRequestSchema,
    engine: AvailabilityEngine = Depends(get_availability_engine),
):
    try:
        available = engine.is_time_slot_available(host_id, req.start, req.end, req.exclude_booking_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return SlotAvailabilityResponseSchema(host_id=host_id, available=available)


@router.post("/hosts/{host_id}/alternatives", response_model=AlternativesResponseSchema)
def suggest_alternatives(
    host_id: str,
    req: AlternativesRequestSchema,
    engine: AvailabilityEngine = Depends(get_availability_engine),
):
    try:
        suggestions = engine.suggest_alternatives(
            host_id,
            req.preferred_start,
            req.duration_minutes,
            search_days=req.search_days,
            max_suggestions=req.max_suggestions,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return AlternativesResponseSchema(host_id=host_id, suggestions=suggestions)
