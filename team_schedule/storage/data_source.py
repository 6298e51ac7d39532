from typing import Any, Dict, List, Optional, Protocol, Sequence, Union

from pydantic import BaseModel, ConfigDict

Row = Dict[str, Any]


class QuerySourceError(Exception):
    """Raised when a table query fails (network, missing table/column, permission)."""

    def __init__(self, table: str, message: str):
        super().__init__(f"{table}: {message}")
        self.table = table
        self.message = message


class Eq(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    value: Any


class Gte(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    value: Any


class AnyOf(BaseModel):
    """OR of two simple clauses, e.g. ``team1_id = X OR team2_id = X``."""

    model_config = ConfigDict(frozen=True)

    left: Union[Eq, Gte]
    right: Union[Eq, Gte]


FilterExpr = Union[Eq, Gte, AnyOf]


class OrderBy(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    ascending: bool = True


class DataSource(Protocol):
    async def query_rows(
        self,
        table: str,
        filters: Sequence[FilterExpr],
        order_by: OrderBy,
        limit: Optional[int] = None,
    ) -> List[Row]:
        """Returns rows of ``table`` matching every filter, or raises QuerySourceError."""
        ...
