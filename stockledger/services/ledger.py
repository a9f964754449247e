"""The stock ledger: products, stock movements and their history.

A ``StockLedger`` owns the product collection and the history log in memory
and mirrors both to a storage adapter after every successful mutation.
Operations either apply completely or raise before touching any state. The
one exception is ``PersistenceError``, raised after the in-memory change when
the adapter fails to save. Public operations hold the ledger lock, so they
run one at a time even when called from several threads.
"""
import functools
import logging
import threading
import uuid
from collections.abc import Callable, Iterator
from datetime import datetime, timezone
from typing import Any, Protocol

import pydantic

from stockledger.config import Settings, settings as default_settings
from stockledger.exceptions import (
    ImportFormatError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from stockledger.schemas.history import HistoryEntry, HistoryKind, Snapshot
from stockledger.schemas.product import (
    AlertFilter,
    AlertStatus,
    MovementDirection,
    Product,
    ProductInput,
)
from stockledger.services.metrics import derive_alert_status, derive_stock_percentage

logger = logging.getLogger(__name__)


class Storage(Protocol):
    def load(self, key: str) -> list: ...

    def save(self, key: str, records: list) -> None: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _first_error(exc: pydantic.ValidationError, default_field: str = "input") -> ValidationError:
    err = exc.errors()[0]
    field = ".".join(str(p) for p in err["loc"]) or default_field
    reason = err["msg"].removeprefix("Value error, ")
    return ValidationError(field, reason)


def _locked(method):
    """Run the whole method while holding the ledger lock."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper


def _parse_direction(direction) -> MovementDirection:
    try:
        return MovementDirection(direction)
    except ValueError:
        raise ValidationError("direction", "must be 'in' or 'out'") from None


def _parse_movement_quantity(quantity) -> int:
    if isinstance(quantity, str):
        try:
            quantity = int(quantity.strip())
        except ValueError:
            raise ValidationError("quantity", "must be a positive integer") from None
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError("quantity", "must be a positive integer")
    return quantity


class ProductQuery:
    """Filtered view over the ledger's products.

    Iterating it again re-applies the filter to the current collection.
    """

    def __init__(self, products: list[Product], lock, filter_text: str, alert_filter: AlertFilter):
        self._products = products
        self._lock = lock
        self.filter_text = filter_text.lower()
        self.alert_filter = alert_filter

    def _matches(self, product: Product) -> bool:
        term = self.filter_text
        if term and term not in product.name.lower() and term not in product.code.lower():
            return False
        if self.alert_filter == AlertFilter.ALERT:
            return derive_alert_status(product) != AlertStatus.OK
        return True

    def __iter__(self) -> Iterator[Product]:
        with self._lock:
            products = list(self._products)
        return (p for p in products if self._matches(p))


class StockLedger:
    def __init__(
        self,
        storage: Storage,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.storage = storage
        self.settings = settings or default_settings
        self._clock = clock or _utcnow
        # Operations run one at a time, persistence included
        self._lock = threading.RLock()
        self._products: list[Product] = self._load(self.settings.PRODUCTS_KEY, Product)
        self._history: list[HistoryEntry] = self._load(self.settings.HISTORY_KEY, HistoryEntry)
        self._trim_history()

    def _load(self, key: str, model: type[pydantic.BaseModel]) -> list:
        records = self.storage.load(key)
        try:
            return [model.model_validate(r) for r in records]
        except pydantic.ValidationError as e:
            logger.warning("Discarding unreadable '%s' collection: %s", key, _first_error(e).message)
            return []

    # --- Reads ---

    @_locked
    def list_products(self) -> list[Product]:
        return list(self._products)

    @_locked
    def list_history(self) -> list[HistoryEntry]:
        """Most recent entry first."""
        return list(reversed(self._history))

    @_locked
    def get_product(self, product_id: str) -> Product:
        return self._products[self._index(product_id)]

    def query(self, filter_text: str = "", alert_filter: AlertFilter | str = AlertFilter.ALL) -> ProductQuery:
        try:
            alert_filter = AlertFilter(alert_filter)
        except ValueError:
            raise ValidationError("alert_filter", "must be 'all' or 'alert'") from None
        return ProductQuery(self._products, self._lock, filter_text or "", alert_filter)

    derive_alert_status = staticmethod(derive_alert_status)
    derive_stock_percentage = staticmethod(derive_stock_percentage)

    # --- Mutations ---

    @_locked
    def create(self, data: ProductInput | dict[str, Any]) -> Product:
        fields = self._validate_input(data)
        now = self._clock()
        product = Product(
            id=str(uuid.uuid4()),
            created_at=now,
            last_update=now,
            **fields.model_dump(),
        )
        self._products.append(product)
        self._record(HistoryKind.CREATED, f"Created product '{product.name}'")
        logger.info("Created product %s (%s)", product.id, product.name)
        self._persist()
        return product

    @_locked
    def update(self, product_id: str, data: ProductInput | dict[str, Any]) -> Product:
        idx = self._index(product_id)
        fields = self._validate_input(data)
        current = self._products[idx]
        product = current.model_copy(update={**fields.model_dump(), "last_update": self._clock()})
        self._products[idx] = product

        action = f"Updated product '{product.name}'"
        if product.stock != current.stock:
            action += f" (stock {current.stock}→{product.stock})"
        self._record(HistoryKind.UPDATED, action)
        logger.info("Updated product %s (%s)", product.id, product.name)
        self._persist()
        return product

    @_locked
    def delete(self, product_id: str) -> None:
        product = self._products.pop(self._index(product_id))
        self._record(HistoryKind.DELETED, f"Deleted product '{product.name}'")
        logger.info("Deleted product %s (%s)", product.id, product.name)
        self._persist()

    @_locked
    def move_stock(self, product_id: str, direction: MovementDirection | str, quantity: int | str) -> Product:
        direction = _parse_direction(direction)
        quantity = _parse_movement_quantity(quantity)
        idx = self._index(product_id)
        current = self._products[idx]

        if direction == MovementDirection.OUT:
            if quantity > current.stock:
                raise InsufficientStockError(requested=quantity, available=current.stock)
            change = -quantity
            sales = current.sales + quantity
        else:
            change = quantity
            sales = current.sales

        after = current.stock + change
        product = current.model_copy(update={"stock": after, "sales": sales, "last_update": self._clock()})
        self._products[idx] = product
        self._record(
            HistoryKind(direction.value),
            f"'{product.name}': stock {direction.value} {quantity} ({current.stock}→{after})",
            change=change,
        )
        logger.info("Stock %s %d for %s: %d -> %d", direction.value, quantity, product.id, current.stock, after)
        self._persist()
        return product

    # --- Snapshots ---

    @_locked
    def export_snapshot(self) -> Snapshot:
        return Snapshot(
            products=self.list_products(),
            history=list(self._history),
            export_date=self._clock(),
        )

    @_locked
    def import_snapshot(self, bundle: Any) -> Snapshot:
        """Replace both collections with the contents of an exported bundle."""
        if not isinstance(bundle, dict):
            raise ImportFormatError("expected an object with 'products' and 'history'")
        if not isinstance(bundle.get("products"), list):
            raise ImportFormatError("'products' must be a list")
        history = bundle.get("history", [])
        if history is None:
            history = []
        if not isinstance(history, list):
            raise ImportFormatError("'history' must be a list")

        try:
            products = [Product.model_validate(p) for p in bundle["products"]]
            entries = [HistoryEntry.model_validate(h) for h in history]
        except pydantic.ValidationError as e:
            raise ImportFormatError(_first_error(e).message) from e

        self._products[:] = products
        self._history[:] = entries
        self._trim_history()
        logger.info("Imported %d products and %d history entries", len(products), len(self._history))
        self._persist()
        return self.export_snapshot()

    # --- Internals ---

    def _index(self, product_id: str) -> int:
        for idx, product in enumerate(self._products):
            if product.id == product_id:
                return idx
        raise NotFoundError(product_id)

    def _validate_input(self, data: ProductInput | dict[str, Any]) -> ProductInput:
        if isinstance(data, ProductInput):
            data = data.model_dump()
        if not isinstance(data, dict):
            raise ValidationError("input", "expected a mapping of product fields")
        context = {"lenient": not self.settings.STRICT_NUMERIC_INPUT}
        try:
            return ProductInput.model_validate(data, context=context)
        except pydantic.ValidationError as e:
            raise _first_error(e) from e

    def _record(self, kind: HistoryKind, action: str, change: int | None = None) -> None:
        self._history.append(HistoryEntry(action=action, kind=kind, change=change, timestamp=self._clock()))
        self._trim_history()

    def _trim_history(self) -> None:
        limit = self.settings.HISTORY_LIMIT
        if len(self._history) > limit:
            del self._history[: len(self._history) - limit]

    def _persist(self) -> None:
        self.storage.save(self.settings.PRODUCTS_KEY, [p.model_dump(mode="json") for p in self._products])
        self.storage.save(self.settings.HISTORY_KEY, [h.model_dump(mode="json") for h in self._history])
