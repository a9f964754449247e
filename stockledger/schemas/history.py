import uuid
from datetime import datetime
from enum import Enum as PyEnum

from pydantic import BaseModel, Field

from stockledger.schemas.product import Product


class HistoryKind(str, PyEnum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    STOCK_IN = "in"
    STOCK_OUT = "out"


class HistoryEntry(BaseModel):
    """Immutable audit line. Products are referenced by name only."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    action: str
    kind: HistoryKind
    change: int | None = None  # positive=in, negative=out
    timestamp: datetime

    model_config = {"frozen": True}


class Snapshot(BaseModel):
    products: list[Product]
    history: list[HistoryEntry]
    export_date: datetime
