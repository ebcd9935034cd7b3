"""
services/db.py
────────────────────────────────────────────────────────────────────────
* Async SQLAlchemy v2 engine setup (plain URL or Cloud SQL connector)
* ORM models for the three tables: dishes, meal_events, shopping_list_items
* Small helpers used by the SQL storage, the app lifespan and scripts
"""
from __future__ import annotations

import ssl
import uuid
from datetime import date, datetime, timezone

from sqlalchemy import JSON, Boolean, Date, DateTime, String, Text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.ext.asyncio import (
    AsyncAttrs,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from config import Settings

_LOCAL_HOSTS = {"localhost", "127.0.0.1", "::1"}
_HOSTED_PROVIDERS = ("supabase", "neon.tech")
_CONNECT_TIMEOUT_S = 10
_POOL_RECYCLE_S = 30 * 60


# ───────── URL helpers ──────────────────────────────────────────────
def normalize_url(raw: str) -> URL:
    """Point bare postgres URLs at the asyncpg driver."""
    url = make_url(raw)
    if url.drivername in ("postgres", "postgresql"):
        url = url.set(drivername="postgresql+asyncpg")
    return url


def mask_url(raw: str) -> str:
    try:
        url = make_url(raw)
    except (ArgumentError, ValueError):
        return "invalid-url"
    if url.username:
        url = url.set(username="***")
    if url.password:
        url = url.set(password="***")
    return url.render_as_string(hide_password=False)


def wants_ssl(raw: str, env_ssl_mode: str | None = None) -> bool:
    """
    TLS is on for anything that is not local, unless explicitly disabled
    with `sslmode=disable` in the URL or `PGSSLMODE=disable`.
    """
    use_ssl = "sslmode=require" in raw or any(p in raw for p in _HOSTED_PROVIDERS)
    try:
        url = make_url(raw)
    except (ArgumentError, ValueError):
        return use_ssl
    if url.host is None:  # sqlite and friends
        return False
    disabled = url.query.get("sslmode") == "disable" or env_ssl_mode == "disable"
    if url.host not in _LOCAL_HOSTS and not disabled:
        use_ssl = True
    return use_ssl


def _unverified_ssl_context() -> ssl.SSLContext:
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


# ───────── engine factory ───────────────────────────────────────────
def _engine_from_url(raw: str, env_ssl_mode: str | None) -> AsyncEngine:
    url = normalize_url(raw)
    if url.get_backend_name() != "postgresql":
        return create_async_engine(url)

    connect_args: dict[str, object] = {"timeout": _CONNECT_TIMEOUT_S}
    if wants_ssl(raw, env_ssl_mode):
        connect_args["ssl"] = _unverified_ssl_context()
    # asyncpg does not understand libpq's sslmode
    url = url.difference_update_query(["sslmode"])
    return create_async_engine(
        url,
        connect_args=connect_args,
        pool_pre_ping=True,
        pool_recycle=_POOL_RECYCLE_S,
    )


def _engine_from_cloud_sql(settings: Settings) -> AsyncEngine:
    # lazy import, the connector is an optional extra
    try:
        from google.cloud.sql.connector import IPTypes, create_async_connector  # type: ignore
    except ImportError as exc:
        raise RuntimeError(
            "cloud-sql-python-connector missing. Run:\n"
            "pip install 'cloud-sql-python-connector[asyncpg]>=1.4.0'"
        ) from exc

    connector = None

    async def _getconn():  # type: ignore[no-untyped-def]
        nonlocal connector
        if connector is None:
            connector = await create_async_connector()
        return await connector.connect_async(
            settings.cloud_sql_instance,
            "asyncpg",
            user=settings.db_user,
            password=settings.db_pass,
            db=settings.db_name,
            ip_type=IPTypes.PRIVATE,
        )

    return create_async_engine(
        "postgresql+asyncpg://",
        async_creator=_getconn,
        pool_pre_ping=True,
    )


def create_engine(settings: Settings) -> AsyncEngine:
    # 1) plain URL
    if settings.database_url:
        return _engine_from_url(settings.database_url, settings.pg_ssl_mode)

    # 2) Cloud SQL connector (only if URL not supplied)
    if not settings.cloud_sql_instance:
        raise RuntimeError(
            "Set either DATABASE_URL or CLOUD_SQL_CONNECTION_NAME env var"
        )
    return _engine_from_cloud_sql(settings)


def session_factory(eng: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(eng, expire_on_commit=False)


# ───────── declarative base ──────────────────────────────────────────
class Base(AsyncAttrs, DeclarativeBase):
    pass


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DishRow(Base):
    __tablename__ = "dishes"

    id:          Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name:        Mapped[str] = mapped_column(Text)
    description: Mapped[str | None] = mapped_column(Text)
    meal_type:   Mapped[str] = mapped_column(String(16))
    ingredients: Mapped[list] = mapped_column(JSON, default=list)   # [{name, quantity, unit}]
    created_at:  Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class MealEventRow(Base):
    __tablename__ = "meal_events"

    id:         Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    dish_id:    Mapped[str] = mapped_column(String(36), index=True)   # no FK, may dangle
    start_date: Mapped[date] = mapped_column(Date, index=True)
    end_date:   Mapped[date] = mapped_column(Date, index=True)
    meal_type:  Mapped[str] = mapped_column(String(16))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class ShoppingListItemRow(Base):
    __tablename__ = "shopping_list_items"

    id:           Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name:         Mapped[str] = mapped_column(Text)
    quantity:     Mapped[str] = mapped_column(Text)
    unit:         Mapped[str] = mapped_column(Text)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    dish_name:    Mapped[str | None] = mapped_column(Text)
    planned_date: Mapped[date | None] = mapped_column(Date)
    created_at:   Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


# ───────── schema helper ─────────────────────────────────────────────
async def create_tables(eng: AsyncEngine) -> None:
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
