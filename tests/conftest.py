"""
Pytest configuration for team-schedule tests.
"""

import asyncio
import os
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Set

import pytest

# Settings are loaded at import time and need the Supabase credentials.
os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key-0123456789")

from team_schedule.storage.data_source import (  # noqa: E402
    AnyOf,
    Eq,
    FilterExpr,
    Gte,
    OrderBy,
    QuerySourceError,
    Row,
)


def _as_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def _matches(row: Row, expr: FilterExpr) -> bool:
    if isinstance(expr, Eq):
        return row.get(expr.field) == expr.value
    if isinstance(expr, Gte):
        if row.get(expr.field) is None:
            return False
        return _as_datetime(row[expr.field]) >= _as_datetime(expr.value)
    return _matches(row, expr.left) or _matches(row, expr.right)


class FakeDataSource:
    """In-memory stand-in for the Supabase tables."""

    def __init__(
        self,
        tables: Optional[Dict[str, List[Row]]] = None,
        failing: Optional[Set[str]] = None,
        broken: Optional[Set[str]] = None,
        delays: Optional[Dict[str, float]] = None,
    ):
        self.tables = tables or {}
        self.failing = failing or set()
        self.broken = broken or set()
        self.delays = delays or {}
        self.calls: List[dict] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def query_rows(
        self,
        table: str,
        filters: Sequence[FilterExpr],
        order_by: OrderBy,
        limit: Optional[int] = None,
    ) -> List[Row]:
        self.calls.append(
            {"table": table, "filters": list(filters), "order_by": order_by, "limit": limit}
        )
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(table, 0.01))
        finally:
            self.in_flight -= 1

        if table in self.failing:
            raise QuerySourceError(table, 'relation "public.%s" does not exist' % table)
        if table in self.broken:
            raise RuntimeError("connection reset by peer")

        rows = [
            row
            for row in self.tables.get(table, [])
            if all(_matches(row, expr) for expr in filters)
        ]
        rows.sort(
            key=lambda r: _as_datetime(r[order_by.field])
            if r.get(order_by.field) is not None
            else datetime.max.replace(tzinfo=timezone.utc),
            reverse=not order_by.ascending,
        )
        if limit is not None:
            rows = rows[:limit]
        return rows


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)
