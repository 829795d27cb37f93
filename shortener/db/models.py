"""
Database Models for the Key-Value Store

Each namespace of the store is a two-column table: a text primary key and a
text value. SQLite compares TEXT primary keys bytewise, so scans ordered by
key come back in lexicographic order.

Namespaces:
- urls:  short code -> JSON document {"url": ..., "created_at": ...}
- stats: short code -> decimal click counter ("0", "1", ...)
"""

from datetime import datetime, timezone
from typing import Dict, Type

from pydantic import BaseModel
from sqlalchemy import String, Text
from sqlmodel import SQLModel, Field, Column

URLS_NAMESPACE = "urls"
STATS_NAMESPACE = "stats"


class URLEntry(SQLModel, table=True):
    """Row of the urls namespace."""
    __tablename__ = URLS_NAMESPACE

    key: str = Field(sa_column=Column(String(64), primary_key=True))
    value: str = Field(sa_column=Column(Text, nullable=False))


class StatsEntry(SQLModel, table=True):
    """Row of the stats namespace."""
    __tablename__ = STATS_NAMESPACE

    key: str = Field(sa_column=Column(String(64), primary_key=True))
    value: str = Field(sa_column=Column(Text, nullable=False))


NAMESPACES: Dict[str, Type[SQLModel]] = {
    URLS_NAMESPACE: URLEntry,
    STATS_NAMESPACE: StatsEntry,
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class URLRecord(BaseModel):
    """
    Value stored in the urls namespace.

    Immutable once written: short codes are never reassigned.
    """
    url: str
    created_at: datetime
