import math
from datetime import datetime
from enum import Enum as PyEnum

from pydantic import BaseModel, Field, StrictInt, StrictStr, ValidationInfo, field_validator


class AlertStatus(str, PyEnum):
    OK = "ok"
    LOW = "low"
    CRITICAL = "critical"


class AlertFilter(str, PyEnum):
    ALL = "all"
    ALERT = "alert"


class MovementDirection(str, PyEnum):
    IN = "in"
    OUT = "out"


def _blank(v) -> bool:
    return v is None or (isinstance(v, str) and not v.strip())


def _lenient(info: ValidationInfo) -> bool:
    return bool(info.context and info.context.get("lenient"))


class ProductInput(BaseModel):
    """Editable product fields as submitted by a form.

    Blank quantities and prices read as 0. With ``context={"lenient": True}``
    unparseable numbers also read as 0 instead of failing validation.
    """

    name: str = Field("", validate_default=True)
    code: str = ""
    category: str = ""
    supplier: str = ""
    stock: int = Field(0, ge=0)
    min_stock: int = Field(0, ge=0)
    buy_price: float = Field(0.0, ge=0, allow_inf_nan=False)
    sell_price: float = Field(0.0, ge=0, allow_inf_nan=False)

    model_config = {"extra": "ignore"}

    @field_validator("name", "code", "category", "supplier", mode="before")
    @classmethod
    def strip_text(cls, v):
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("stock", "min_stock", mode="before")
    @classmethod
    def parse_quantity(cls, v, info: ValidationInfo):
        if _blank(v):
            return 0
        if _lenient(info):
            try:
                return int(float(v))
            except (TypeError, ValueError, OverflowError):
                return 0
        return v

    @field_validator("buy_price", "sell_price", mode="before")
    @classmethod
    def parse_price(cls, v, info: ValidationInfo):
        if _blank(v):
            return 0.0
        if _lenient(info):
            try:
                value = float(v)
            except (TypeError, ValueError):
                return 0.0
            return value if math.isfinite(value) else 0.0
        return v


class Product(ProductInput):
    id: str
    sales: int = Field(0, ge=0)  # units moved out over the product's lifetime
    created_at: datetime
    last_update: datetime


class ProductOut(Product):
    status: AlertStatus
    stock_percentage: float


class StockMovement(BaseModel):
    direction: MovementDirection
    quantity: StrictInt | StrictStr
