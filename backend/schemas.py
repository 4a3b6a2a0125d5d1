from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Metric(str, Enum):
    """Targets this backend knows how to answer."""
    BLOG_HITS = "blog_hits"
    SITES = "sites"
    OUTBOUND_DATA = "outbound_data"


class TimeRange(BaseModel):
    """Inclusive time range of a query. `from` <= `to` is checked by validation."""
    start: datetime = Field(alias="from")
    end: datetime = Field(alias="to")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @field_validator("start", "end")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # Naive timestamps are UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class Target(BaseModel):
    target: str

    model_config = ConfigDict(extra="ignore")


class QueryRequest(BaseModel):
    """Schema for a dashboard query. Fields the backend does not use are ignored."""
    range: TimeRange
    interval_ms: int = Field(alias="intervalMs")
    targets: List[Target] = []

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SearchRequest(BaseModel):
    target: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class SeriesResponse(BaseModel):
    """Schema for a time series: datapoints are [value, epoch ms] pairs."""
    target: str
    datapoints: List[List[int]]


class TableColumn(BaseModel):
    text: str
    type: str


class TableResponse(BaseModel):
    """Schema for a table. Row values follow the column order."""
    type: Literal["table"] = "table"
    columns: List[TableColumn]
    rows: List[List[Any]]


QueryResponse = List[Union[SeriesResponse, TableResponse]]
