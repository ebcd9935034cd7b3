"""
services/storage.py
────────────────────────────────────────────────────────────────────────
Persistence behind one async interface.

* `Storage`        – abstract contract used by routes and services
* `MemoryStorage`  – volatile, insertion-ordered dicts keyed by uuid4
* `SqlStorage`     – async SQLAlchemy over the tables in `services.db`
* `build_storage`  – pick one from `Settings` at process start

Both implementations hand out detached pydantic models, never their own
internal objects.  `update_*` returns None and `delete_*` returns False
for unknown ids.
"""
from __future__ import annotations

import abc
import functools
import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any, Awaitable, Callable, Mapping, Sequence, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from config import Settings
from core.models.dish import Dish, DishCreate
from core.models.meal_event import MealEvent, MealEventCreate
from core.models.shopping import ShoppingListItem, ShoppingListItemCreate
from services import db

_LOG = logging.getLogger(__name__)

T = TypeVar("T")


class StorageError(RuntimeError):
    """Backing store failed; details are logged, never sent to clients."""


# ──────────────────────────────────────────────────────────────────────
#  Contract
# ──────────────────────────────────────────────────────────────────────
class Storage(abc.ABC):
    backend: str = "abstract"

    # ─── dishes ─────────────────────────────────────────────────────
    @abc.abstractmethod
    async def list_dishes(self) -> list[Dish]: ...

    @abc.abstractmethod
    async def get_dish(self, dish_id: str) -> Dish | None: ...

    @abc.abstractmethod
    async def create_dish(self, data: DishCreate) -> Dish: ...

    @abc.abstractmethod
    async def update_dish(self, dish_id: str, changes: Mapping[str, Any]) -> Dish | None: ...

    @abc.abstractmethod
    async def delete_dish(self, dish_id: str) -> bool: ...

    # ─── meal events ────────────────────────────────────────────────
    @abc.abstractmethod
    async def list_meal_events(self) -> list[MealEvent]: ...

    @abc.abstractmethod
    async def get_meal_event(self, event_id: str) -> MealEvent | None: ...

    @abc.abstractmethod
    async def list_meal_events_in_range(self, start: date, end: date) -> list[MealEvent]:
        """Events overlapping [start, end], both ends inclusive."""

    @abc.abstractmethod
    async def create_meal_event(self, data: MealEventCreate) -> MealEvent: ...

    @abc.abstractmethod
    async def update_meal_event(
        self, event_id: str, changes: Mapping[str, Any]
    ) -> MealEvent | None: ...

    @abc.abstractmethod
    async def delete_meal_event(self, event_id: str) -> bool: ...

    # ─── shopping list ──────────────────────────────────────────────
    @abc.abstractmethod
    async def list_shopping_items(self) -> list[ShoppingListItem]: ...

    @abc.abstractmethod
    async def get_shopping_item(self, item_id: str) -> ShoppingListItem | None: ...

    @abc.abstractmethod
    async def create_shopping_item(self, data: ShoppingListItemCreate) -> ShoppingListItem: ...

    @abc.abstractmethod
    async def update_shopping_item(
        self, item_id: str, changes: Mapping[str, Any]
    ) -> ShoppingListItem | None: ...

    @abc.abstractmethod
    async def delete_shopping_item(self, item_id: str) -> bool: ...

    @abc.abstractmethod
    async def clear_shopping_list(self) -> None: ...

    @abc.abstractmethod
    async def replace_shopping_list(
        self, items: Sequence[ShoppingListItemCreate]
    ) -> list[ShoppingListItem]:
        """Drop every item and insert `items` as one atomic step."""

    async def close(self) -> None:
        return None


# ──────────────────────────────────────────────────────────────────────
#  In-memory implementation
# ──────────────────────────────────────────────────────────────────────
def _stamp() -> tuple[str, datetime]:
    return str(uuid.uuid4()), datetime.now(timezone.utc)


class MemoryStorage(Storage):
    backend = "memory"

    def __init__(self) -> None:
        self._dishes: dict[str, Dish] = {}
        self._events: dict[str, MealEvent] = {}
        self._items: dict[str, ShoppingListItem] = {}

    @staticmethod
    def _patch(record: T, changes: Mapping[str, Any]) -> T:
        # re-validate so nested ingredient dicts become models again
        merged = {**record.model_dump(), **changes}  # type: ignore[attr-defined]
        return type(record).model_validate(merged)  # type: ignore[attr-defined]

    # ─── dishes ─────────────────────────────────────────────────────
    async def list_dishes(self) -> list[Dish]:
        return [d.model_copy(deep=True) for d in self._dishes.values()]

    async def get_dish(self, dish_id: str) -> Dish | None:
        dish = self._dishes.get(dish_id)
        return dish.model_copy(deep=True) if dish else None

    async def create_dish(self, data: DishCreate) -> Dish:
        new_id, now = _stamp()
        dish = Dish(id=new_id, created_at=now, **data.model_dump())
        self._dishes[new_id] = dish
        return dish.model_copy(deep=True)

    async def update_dish(self, dish_id: str, changes: Mapping[str, Any]) -> Dish | None:
        existing = self._dishes.get(dish_id)
        if existing is None:
            return None
        updated = self._patch(existing, changes)
        self._dishes[dish_id] = updated
        return updated.model_copy(deep=True)

    async def delete_dish(self, dish_id: str) -> bool:
        return self._dishes.pop(dish_id, None) is not None

    # ─── meal events ────────────────────────────────────────────────
    async def list_meal_events(self) -> list[MealEvent]:
        return [e.model_copy() for e in self._events.values()]

    async def get_meal_event(self, event_id: str) -> MealEvent | None:
        event = self._events.get(event_id)
        return event.model_copy() if event else None

    async def list_meal_events_in_range(self, start: date, end: date) -> list[MealEvent]:
        return [e.model_copy() for e in self._events.values() if e.overlaps(start, end)]

    async def create_meal_event(self, data: MealEventCreate) -> MealEvent:
        new_id, now = _stamp()
        event = MealEvent(id=new_id, created_at=now, **data.model_dump())
        self._events[new_id] = event
        return event.model_copy()

    async def update_meal_event(
        self, event_id: str, changes: Mapping[str, Any]
    ) -> MealEvent | None:
        existing = self._events.get(event_id)
        if existing is None:
            return None
        updated = self._patch(existing, changes)
        self._events[event_id] = updated
        return updated.model_copy()

    async def delete_meal_event(self, event_id: str) -> bool:
        return self._events.pop(event_id, None) is not None

    # ─── shopping list ──────────────────────────────────────────────
    async def list_shopping_items(self) -> list[ShoppingListItem]:
        return [i.model_copy() for i in self._items.values()]

    async def get_shopping_item(self, item_id: str) -> ShoppingListItem | None:
        item = self._items.get(item_id)
        return item.model_copy() if item else None

    def _build_item(self, data: ShoppingListItemCreate) -> ShoppingListItem:
        new_id, now = _stamp()
        return ShoppingListItem(id=new_id, created_at=now, **data.model_dump())

    async def create_shopping_item(self, data: ShoppingListItemCreate) -> ShoppingListItem:
        item = self._build_item(data)
        self._items[item.id] = item
        return item.model_copy()

    async def update_shopping_item(
        self, item_id: str, changes: Mapping[str, Any]
    ) -> ShoppingListItem | None:
        existing = self._items.get(item_id)
        if existing is None:
            return None
        updated = self._patch(existing, changes)
        self._items[item_id] = updated
        return updated.model_copy()

    async def delete_shopping_item(self, item_id: str) -> bool:
        return self._items.pop(item_id, None) is not None

    async def clear_shopping_list(self) -> None:
        self._items.clear()

    async def replace_shopping_list(
        self, items: Sequence[ShoppingListItemCreate]
    ) -> list[ShoppingListItem]:
        # no await between building and swapping: readers see old or new, never empty
        fresh = {item.id: item for item in map(self._build_item, items)}
        self._items = fresh
        return [i.model_copy() for i in fresh.values()]


# ──────────────────────────────────────────────────────────────────────
#  SQL implementation
# ──────────────────────────────────────────────────────────────────────
def _wrap_db_errors(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    @functools.wraps(fn)
    async def inner(*args: Any, **kwargs: Any) -> T:
        try:
            return await fn(*args, **kwargs)
        except SQLAlchemyError as exc:
            raise StorageError(f"{fn.__name__} failed") from exc

    return inner


def _dish(row: db.DishRow) -> Dish:
    return Dish.model_validate(row, from_attributes=True)


def _event(row: db.MealEventRow) -> MealEvent:
    return MealEvent.model_validate(row, from_attributes=True)


def _item(row: db.ShoppingListItemRow) -> ShoppingListItem:
    return ShoppingListItem.model_validate(row, from_attributes=True)


def _dish_columns(changes: Mapping[str, Any]) -> dict[str, Any]:
    # ingredients are stored as plain JSON
    out = dict(changes)
    if "ingredients" in out:
        out["ingredients"] = [
            i.model_dump() if hasattr(i, "model_dump") else dict(i)
            for i in out["ingredients"] or []
        ]
    return out


class SqlStorage(Storage):
    backend = "sql"

    def __init__(self, eng: AsyncEngine) -> None:
        self._engine = eng
        self._sessions: async_sessionmaker[AsyncSession] = db.session_factory(eng)

    async def close(self) -> None:
        await self._engine.dispose()

    async def _update(self, model: type, key: str, changes: Mapping[str, Any]) -> Any:
        async with self._sessions() as session:
            row = await session.get(model, key)
            if row is None:
                return None
            for column, value in changes.items():
                setattr(row, column, value)
            await session.commit()
            await session.refresh(row)
            return row

    async def _delete(self, model: type, key: str) -> bool:
        async with self._sessions() as session:
            row = await session.get(model, key)
            if row is None:
                return False
            await session.delete(row)
            await session.commit()
            return True

    async def _list(self, stmt: Any) -> list[Any]:
        async with self._sessions() as session:
            return list((await session.execute(stmt)).scalars().all())

    async def _add(self, row: Any) -> Any:
        async with self._sessions() as session:
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return row

    # ─── dishes ─────────────────────────────────────────────────────
    @_wrap_db_errors
    async def list_dishes(self) -> list[Dish]:
        rows = await self._list(
            select(db.DishRow).order_by(db.DishRow.created_at, db.DishRow.id)
        )
        return [_dish(r) for r in rows]

    @_wrap_db_errors
    async def get_dish(self, dish_id: str) -> Dish | None:
        async with self._sessions() as session:
            row = await session.get(db.DishRow, dish_id)
            return _dish(row) if row else None

    @_wrap_db_errors
    async def create_dish(self, data: DishCreate) -> Dish:
        row = await self._add(db.DishRow(**_dish_columns(data.model_dump())))
        return _dish(row)

    @_wrap_db_errors
    async def update_dish(self, dish_id: str, changes: Mapping[str, Any]) -> Dish | None:
        row = await self._update(db.DishRow, dish_id, _dish_columns(changes))
        return _dish(row) if row else None

    @_wrap_db_errors
    async def delete_dish(self, dish_id: str) -> bool:
        return await self._delete(db.DishRow, dish_id)

    # ─── meal events ────────────────────────────────────────────────
    @_wrap_db_errors
    async def list_meal_events(self) -> list[MealEvent]:
        rows = await self._list(
            select(db.MealEventRow).order_by(db.MealEventRow.created_at, db.MealEventRow.id)
        )
        return [_event(r) for r in rows]

    @_wrap_db_errors
    async def get_meal_event(self, event_id: str) -> MealEvent | None:
        async with self._sessions() as session:
            row = await session.get(db.MealEventRow, event_id)
            return _event(row) if row else None

    @_wrap_db_errors
    async def list_meal_events_in_range(self, start: date, end: date) -> list[MealEvent]:
        rows = await self._list(
            select(db.MealEventRow)
            .where(db.MealEventRow.start_date <= end, db.MealEventRow.end_date >= start)
            .order_by(db.MealEventRow.created_at, db.MealEventRow.id)
        )
        return [_event(r) for r in rows]

    @_wrap_db_errors
    async def create_meal_event(self, data: MealEventCreate) -> MealEvent:
        return _event(await self._add(db.MealEventRow(**data.model_dump())))

    @_wrap_db_errors
    async def update_meal_event(
        self, event_id: str, changes: Mapping[str, Any]
    ) -> MealEvent | None:
        row = await self._update(db.MealEventRow, event_id, changes)
        return _event(row) if row else None

    @_wrap_db_errors
    async def delete_meal_event(self, event_id: str) -> bool:
        return await self._delete(db.MealEventRow, event_id)

    # ─── shopping list ──────────────────────────────────────────────
    @_wrap_db_errors
    async def list_shopping_items(self) -> list[ShoppingListItem]:
        rows = await self._list(
            select(db.ShoppingListItemRow).order_by(
                db.ShoppingListItemRow.created_at, db.ShoppingListItemRow.id
            )
        )
        return [_item(r) for r in rows]

    @_wrap_db_errors
    async def get_shopping_item(self, item_id: str) -> ShoppingListItem | None:
        async with self._sessions() as session:
            row = await session.get(db.ShoppingListItemRow, item_id)
            return _item(row) if row else None

    @_wrap_db_errors
    async def create_shopping_item(self, data: ShoppingListItemCreate) -> ShoppingListItem:
        return _item(await self._add(db.ShoppingListItemRow(**data.model_dump())))

    @_wrap_db_errors
    async def update_shopping_item(
        self, item_id: str, changes: Mapping[str, Any]
    ) -> ShoppingListItem | None:
        row = await self._update(db.ShoppingListItemRow, item_id, changes)
        return _item(row) if row else None

    @_wrap_db_errors
    async def delete_shopping_item(self, item_id: str) -> bool:
        return await self._delete(db.ShoppingListItemRow, item_id)

    @_wrap_db_errors
    async def clear_shopping_list(self) -> None:
        async with self._sessions() as session:
            await session.execute(delete(db.ShoppingListItemRow))
            await session.commit()

    @_wrap_db_errors
    async def replace_shopping_list(
        self, items: Sequence[ShoppingListItemCreate]
    ) -> list[ShoppingListItem]:
        rows = [db.ShoppingListItemRow(**item.model_dump()) for item in items]
        async with self._sessions() as session:
            async with session.begin():
                await session.execute(delete(db.ShoppingListItemRow))
                session.add_all(rows)
            # expire_on_commit=False keeps the flushed values readable
            return [_item(r) for r in rows]


# ──────────────────────────────────────────────────────────────────────
#  Factory
# ──────────────────────────────────────────────────────────────────────
async def build_storage(settings: Settings) -> Storage:
    backend = settings.resolved_backend
    if backend == "memory":
        _LOG.info("using in-memory storage (no database configured)")
        return MemoryStorage()

    eng = db.create_engine(settings)
    if settings.database_url:
        _LOG.info("using SQL storage at %s", db.mask_url(settings.database_url))
    else:
        _LOG.info("using SQL storage via Cloud SQL instance %s", settings.cloud_sql_instance)
    if settings.create_tables:
        try:
            await db.create_tables(eng)
        except SQLAlchemyError as exc:
            await eng.dispose()
            raise StorageError("could not create tables") from exc
    return SqlStorage(eng)
