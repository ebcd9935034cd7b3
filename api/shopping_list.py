# api/shopping_list.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from api.deps import get_storage
from api.schemas import GenerateRequest, ShoppingItemIn, ShoppingItemOut, ShoppingItemPatch
from core.models.shopping import ShoppingListItemCreate
from services.shopping import generate_shopping_list
from services.storage import Storage

router = APIRouter()

_NOT_FOUND = "Shopping list item not found"


# ───────────────────────── read ─────────────────────────────
@router.get("", response_model=list[ShoppingItemOut])
async def list_items(store: Storage = Depends(get_storage)) -> list[ShoppingItemOut]:
    return [ShoppingItemOut.model_validate(i) for i in await store.list_shopping_items()]


# ───────────────────────── generate ─────────────────────────
@router.post(
    "/generate",
    response_model=list[ShoppingItemOut],
    status_code=status.HTTP_200_OK,
    summary="Replace the shopping list with ingredients of meals in a date range",
)
async def generate(
    body: GenerateRequest,
    store: Storage = Depends(get_storage),
) -> list[ShoppingItemOut]:
    """
    Sum the ingredients of every meal event overlapping
    [startDate, endDate], per dish and per (name, unit).  The previous
    list, hand-added items included, is dropped.
    """
    items = await generate_shopping_list(store, body.start_date, body.end_date)
    return [ShoppingItemOut.model_validate(i) for i in items]


# ───────────────────────── ad hoc items ─────────────────────
@router.post("", response_model=ShoppingItemOut, status_code=status.HTTP_201_CREATED)
async def create_item(
    body: ShoppingItemIn, store: Storage = Depends(get_storage)
) -> ShoppingItemOut:
    item = await store.create_shopping_item(ShoppingListItemCreate(**body.model_dump()))
    return ShoppingItemOut.model_validate(item)


@router.patch("/{item_id}", response_model=ShoppingItemOut)
async def update_item(
    item_id: str,
    body: ShoppingItemPatch,
    store: Storage = Depends(get_storage),
) -> ShoppingItemOut:
    item = await store.update_shopping_item(item_id, body.changes())
    if item is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return ShoppingItemOut.model_validate(item)


# ───────────────────────── delete ──────────────────────────
@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(item_id: str, store: Storage = Depends(get_storage)) -> Response:
    if not await store.delete_shopping_item(item_id):
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT, summary="Clear the list")
async def clear_items(store: Storage = Depends(get_storage)) -> Response:
    await store.clear_shopping_list()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
