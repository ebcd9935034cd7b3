# api/meal_events.py
from __future__ import annotations
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from api.deps import get_storage
from api.schemas import MealEventIn, MealEventOut, MealEventPatch
from core.models.meal_event import MealEventCreate
from services.storage import Storage

router = APIRouter()

_NOT_FOUND = "Meal event not found"


@router.get(
    "",
    response_model=list[MealEventOut],
    summary="List meal events, optionally only those overlapping a date range",
)
async def list_meal_events(
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    store: Storage = Depends(get_storage),
) -> list[MealEventOut]:
    """
    With both `startDate` and `endDate`, return events whose span overlaps
    the range (inclusive).  With either missing, return everything.
    """
    if start_date is not None and end_date is not None:
        events = await store.list_meal_events_in_range(start_date, end_date)
    else:
        events = await store.list_meal_events()
    return [MealEventOut.model_validate(e) for e in events]


@router.get("/{event_id}", response_model=MealEventOut)
async def fetch_meal_event(
    event_id: str, store: Storage = Depends(get_storage)
) -> MealEventOut:
    event = await store.get_meal_event(event_id)
    if event is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return MealEventOut.model_validate(event)


@router.post("", response_model=MealEventOut, status_code=status.HTTP_201_CREATED)
async def create_meal_event(
    body: MealEventIn, store: Storage = Depends(get_storage)
) -> MealEventOut:
    event = await store.create_meal_event(MealEventCreate(**body.model_dump()))
    return MealEventOut.model_validate(event)


@router.patch("/{event_id}", response_model=MealEventOut)
async def update_meal_event(
    event_id: str,
    body: MealEventPatch,
    store: Storage = Depends(get_storage),
) -> MealEventOut:
    event = await store.update_meal_event(event_id, body.changes())
    if event is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return MealEventOut.model_validate(event)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_meal_event(
    event_id: str, store: Storage = Depends(get_storage)
) -> Response:
    if not await store.delete_meal_event(event_id):
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
