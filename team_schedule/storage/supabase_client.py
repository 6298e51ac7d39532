# team_schedule/storage/supabase_client.py
from datetime import datetime
from typing import Any, List, Optional, Sequence

from loguru import logger
from supabase import create_async_client, AsyncClient
from postgrest import APIResponse
from postgrest.exceptions import APIError

from team_schedule.config.settings import settings
from team_schedule.storage.data_source import (
    AnyOf,
    Eq,
    FilterExpr,
    Gte,
    OrderBy,
    QuerySourceError,
    Row,
)

# Module-level storage for the async client instance
_async_supabase_client: Optional[AsyncClient] = None


async def initialize_supabase() -> Optional[AsyncClient]:
    """Initializes the global ASYNC Supabase client and returns it."""
    global _async_supabase_client
    if _async_supabase_client:
        logger.debug("Async Supabase client already initialized.")
        return _async_supabase_client

    url = str(settings.supabase_url).rstrip("/")
    logger.debug(f"Attempting to initialize Async Supabase client with URL: {url}")
    key_snippet = f"{settings.supabase_key[:5]}...{settings.supabase_key[-5:]}"
    logger.debug(f"Using Supabase Key (snippet): {key_snippet}")

    try:
        client: AsyncClient = await create_async_client(url, settings.supabase_key)
        _async_supabase_client = client
        logger.success("Async Supabase client initialized successfully.")
        return client
    except Exception as e:
        logger.exception(f"Failed to initialize Async Supabase client: {e}")
        return None


def _filter_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _or_clause(clause: FilterExpr) -> str:
    """Renders one side of an OR filter in PostgREST syntax, e.g. ``team1_id.eq.42``."""
    if isinstance(clause, Eq):
        return f"{clause.field}.eq.{_filter_value(clause.value)}"
    if isinstance(clause, Gte):
        return f"{clause.field}.gte.{_filter_value(clause.value)}"
    raise TypeError(f"Nested OR filters are not supported: {clause!r}")


class SupabaseDataSource:
    """Runs filtered, ordered row queries against Supabase tables."""

    def __init__(self, client: AsyncClient):
        self.client = client

    def _build_query(
        self,
        table: str,
        filters: Sequence[FilterExpr],
        order_by: OrderBy,
        limit: Optional[int],
    ):
        query = self.client.table(table).select("*")
        for expr in filters:
            if isinstance(expr, Eq):
                query = query.eq(expr.field, _filter_value(expr.value))
            elif isinstance(expr, Gte):
                query = query.gte(expr.field, _filter_value(expr.value))
            elif isinstance(expr, AnyOf):
                query = query.or_(f"{_or_clause(expr.left)},{_or_clause(expr.right)}")
            else:
                raise TypeError(f"Unsupported filter expression: {expr!r}")
        query = query.order(order_by.field, desc=not order_by.ascending)
        if limit is not None:
            query = query.limit(limit)
        return query

    async def query_rows(
        self,
        table: str,
        filters: Sequence[FilterExpr],
        order_by: OrderBy,
        limit: Optional[int] = None,
    ) -> List[Row]:
        logger.debug(
            f"Querying {table} with {len(filters)} filter(s), "
            f"order={order_by.field} asc={order_by.ascending}, limit={limit}"
        )
        query = self._build_query(table, filters, order_by, limit)
        try:
            response: APIResponse = await query.execute()
        except APIError as e:
            logger.debug(f"Full APIError details: {e}")
            raise QuerySourceError(table, e.message or str(e)) from e
        except Exception as e:
            raise QuerySourceError(table, str(e)) from e

        rows = response.data or []
        logger.debug(f"Fetched {len(rows)} rows from {table}.")
        return rows
