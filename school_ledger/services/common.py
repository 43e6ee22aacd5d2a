"""Shared Supabase data access helpers."""

from __future__ import annotations

import logging
import threading
import time
from typing import Any

from postgrest import APIError

from school_ledger.config import settings
from school_ledger.utils.errors import ForbiddenError, InvalidInputError, NotFoundError
from supabase import Client

ADMIN_ROLE = "admin"
logger = logging.getLogger(__name__)
_user_cache: dict[str, tuple[float, dict[str, Any]]] = {}
_cache_lock = threading.Lock()


def _cache_get(cache: dict[Any, tuple[float, Any]], key: Any) -> Any | None:
    now = time.monotonic()
    with _cache_lock:
        entry = cache.get(key)
        if not entry:
            return None
        expires_at, value = entry
        if expires_at <= now:
            cache.pop(key, None)
            return None
        return value


def _cache_set(
    cache: dict[Any, tuple[float, Any]],
    key: Any,
    value: Any,
    ttl_seconds: int,
) -> None:
    if ttl_seconds <= 0:
        return

    with _cache_lock:
        max_entries = max(100, settings.data_cache_max_entries)
        if len(cache) >= max_entries:
            oldest_key = next(iter(cache))
            cache.pop(oldest_key, None)
        cache[key] = (time.monotonic() + ttl_seconds, value)


def _apply_filters(query, filters: dict[str, Any] | None):
    for key, value in (filters or {}).items():
        if value is None:
            continue
        query = query.eq(key, value)
    return query


class SupabaseService:
    """Thin helper wrapper around a Supabase client."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def execute(self, query, default: Any = None) -> Any:
        """Execute a Supabase query and normalize API errors."""
        started = time.perf_counter()
        try:
            response = query.execute()
            elapsed_ms = (time.perf_counter() - started) * 1000
            threshold_ms = settings.slow_query_log_threshold_ms
            if threshold_ms > 0 and elapsed_ms >= threshold_ms:
                logger.warning("Slow Supabase query %.1fms", elapsed_ms)
            data = response.data
            return default if data is None and default is not None else data
        except APIError as exc:
            message = getattr(exc, "message", "Database request failed")
            raise InvalidInputError(str(message)) from exc

    def select_one(
        self,
        table: str,
        filters: dict[str, Any],
        columns: str = "*",
        not_found_label: str | None = None,
    ) -> dict[str, Any]:
        """Select a single row and raise NotFoundError when missing."""
        query = _apply_filters(self.client.table(table).select(columns), filters)
        rows = self.execute(query.limit(1), default=[])
        if not rows:
            label = not_found_label or table
            raise NotFoundError(label)
        return rows[0]

    def select_many(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        columns: str = "*",
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[dict[str, Any]]:
        """Select many rows with equality filters and paging.

        Filters whose value is ``None`` are skipped.
        """
        query = _apply_filters(self.client.table(table).select(columns), filters)
        if order_by:
            query = query.order(order_by, desc=descending)
        if offset:
            query = query.offset(offset)
        if limit:
            query = query.limit(limit)
        return self.execute(query, default=[])

    def select_all(
        self,
        table: str,
        filters: dict[str, Any] | None = None,
        columns: str = "*",
        order_by: tuple[str, ...] = ("id",),
        descending: bool = False,
        page_size: int | None = None,
    ) -> list[dict[str, Any]]:
        """Select every matching row, one ``range`` page at a time.

        PostgREST truncates unranged selects at its ``max-rows`` setting, so
        rows are requested in pages until a short page comes back.
        ``page_size`` must not exceed the server's ``max-rows``. The columns
        in ``order_by`` should identify a row uniquely so pages neither skip
        nor repeat rows.
        """
        size = page_size or settings.supabase_page_size
        rows: list[dict[str, Any]] = []
        start = 0
        while True:
            query = _apply_filters(self.client.table(table).select(columns), filters)
            for column in order_by:
                query = query.order(column, desc=descending)
            page = self.execute(query.range(start, start + size - 1), default=[])
            rows.extend(page)
            if len(page) < size:
                return rows
            start += size

    def count(self, table: str, filters: dict[str, Any] | None = None) -> int:
        """Count rows in a table with optional equality filters."""
        query = _apply_filters(
            self.client.table(table).select("*", count="exact", head=True),
            filters,
        )
        try:
            response = query.execute()
            return response.count or 0
        except APIError as exc:
            message = getattr(exc, "message", "Database request failed")
            raise InvalidInputError(str(message)) from exc

    def insert_one(self, table: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Insert one row and return the created object."""
        rows = self.execute(self.client.table(table).insert(payload), default=[])
        if not rows:
            raise InvalidInputError(f"Failed to insert into {table}")
        return rows[0]

    def delete(self, table: str, filters: dict[str, Any]) -> list[dict[str, Any]]:
        """Delete rows by equality filters and return removed rows."""
        if not filters:
            raise InvalidInputError("Refusing to delete without filters")
        query = self.client.table(table).delete()
        for key, value in filters.items():
            query = query.eq(key, value)
        return self.execute(query, default=[])

    def get_user(self, user_id: str) -> dict[str, Any]:
        """Return a public user record."""
        cache_key = str(user_id)
        cached_user = _cache_get(_user_cache, cache_key)
        if cached_user is not None:
            return dict(cached_user)

        user = self.select_one(settings.users_table, {"id": user_id}, not_found_label="User")
        _cache_set(_user_cache, cache_key, dict(user), settings.admin_cache_ttl_seconds)
        return user

    def ensure_school_admin(self, user_id: str, school_id: str) -> dict[str, Any]:
        """Raise ForbiddenError unless the user administers ``school_id``."""
        try:
            user = self.get_user(user_id)
        except NotFoundError as exc:
            raise ForbiddenError("Admin privileges required") from exc

        if user.get("role") != ADMIN_ROLE:
            raise ForbiddenError("Admin privileges required")
        if str(user.get("school_id")) != str(school_id):
            raise ForbiddenError("You are not an admin of this school")
        return user
