"""Shared Supabase data access helpers."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterable
from typing import Any

from postgrest import APIError

from app.config import settings
from app.utils.errors import NotFoundError, StoreError
from supabase import Client

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


def clear_caches() -> None:
    """Drop cached user rows (used after resets and in tests)."""
    with _cache_lock:
        _user_cache.clear()


def store_error_from(exc: APIError) -> StoreError:
    """Convert a PostgREST error into a ``StoreError`` keeping the SQLSTATE."""
    message = getattr(exc, "message", None) or "Database request failed"
    code = getattr(exc, "code", None) or ""
    return StoreError(str(message), pg_code=str(code))


class SupabaseService:
    """Thin helper wrapper around a Supabase client."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def execute(self, query, default: Any = None) -> Any:
        """Execute a Supabase query and normalize API errors."""
        started = time.perf_counter()
        try:
            response = query.execute()
        except APIError as exc:
            raise store_error_from(exc) from exc

        elapsed_ms = (time.perf_counter() - started) * 1000
        threshold_ms = settings.slow_query_log_threshold_ms
        if threshold_ms > 0 and elapsed_ms >= threshold_ms:
            logger.warning("Slow Supabase query %.1fms", elapsed_ms)
        data = response.data
        return default if data is None and default is not None else data

    def select_one(
        self,
        table: str,
        filters: dict[str, Any],
        columns: str = "*",
        not_found_label: str | None = None,
    ) -> dict[str, Any]:
        """Select a single row and raise NotFoundError when missing."""
        query = self.client.table(table).select(columns)
        for key, value in filters.items():
            query = query.eq(key, value)
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
        order_by: str | list[str] | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """Select many rows from a table with optional filters and a row limit."""
        query = self.client.table(table).select(columns)
        if filters:
            for key, value in filters.items():
                query = query.eq(key, value)
        if order_by:
            for column in [order_by] if isinstance(order_by, str) else order_by:
                query = query.order(column, desc=descending)
        if limit:
            query = query.limit(limit)
        return self.execute(query, default=[])

    def select_in(
        self,
        table: str,
        column: str,
        values: Iterable[Any],
        columns: str = "*",
    ) -> list[dict[str, Any]]:
        """Select rows whose ``column`` is one of ``values``."""
        ids = sorted({str(value) for value in values})
        if not ids:
            return []
        return self.execute(
            self.client.table(table).select(columns).in_(column, ids),
            default=[],
        )

    def count(self, table: str, filters: dict[str, Any] | None = None) -> int:
        """Count rows in a table with optional equality filters."""
        query = self.client.table(table).select("*", count="exact", head=True)
        if filters:
            for key, value in filters.items():
                query = query.eq(key, value)
        try:
            response = query.execute()
        except APIError as exc:
            raise store_error_from(exc) from exc
        return response.count or 0

    def insert_one(self, table: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Insert one row and return the created object."""
        rows = self.execute(self.client.table(table).insert(payload), default=[])
        if not rows:
            raise StoreError(f"Failed to insert into {table}")
        return rows[0]

    def insert_many(self, table: str, payloads: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Insert many rows and return inserted rows."""
        if not payloads:
            return []
        return self.execute(self.client.table(table).insert(payloads), default=[])

    def call_function(self, name: str, params: dict[str, Any]) -> dict[str, Any]:
        """Run a database function returning one ``(success, reason, payload)`` row.

        Multi-row writes live in these functions so each one commits or rolls
        back as a single transaction.
        """
        rows = self.execute(self.client.rpc(name, params), default=[])
        if isinstance(rows, dict):
            rows = [rows]
        if not rows:
            raise StoreError(f"Database function {name} returned no result")
        row = rows[0]
        return {
            "success": bool(row.get("success")),
            "reason": str(row.get("reason") or ""),
            "payload": row.get("payload") or {},
        }

    def get_users_map(self, user_ids: Iterable[str]) -> dict[str, dict[str, Any]]:
        """Fetch multiple users and return an id-keyed mapping."""
        ids = list({str(uid) for uid in user_ids if uid})
        if not ids:
            return {}

        result: dict[str, dict[str, Any]] = {}
        missing_ids: list[str] = []
        for user_id in ids:
            cached_user = _cache_get(_user_cache, user_id)
            if cached_user is None:
                missing_ids.append(user_id)
                continue
            result[user_id] = dict(cached_user)

        for row in self.select_in("users", "id", missing_ids):
            user_key = str(row["id"])
            user_payload = dict(row)
            result[user_key] = user_payload
            _cache_set(_user_cache, user_key, user_payload, settings.user_cache_ttl_seconds)

        return result

    def is_admin(self, user_id: str) -> bool:
        """Return whether a user carries the admin flag."""
        rows = self.select_many("users", filters={"id": user_id}, columns="is_admin", limit=1)
        return bool(rows and rows[0].get("is_admin"))


def index_by(rows: list[dict[str, Any]], key: str = "id") -> dict[str, dict[str, Any]]:
    """Map rows by the string value of ``key``."""
    return {str(row[key]): row for row in rows}
