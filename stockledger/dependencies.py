from functools import lru_cache

from stockledger.database import SessionLocal
from stockledger.services.ledger import StockLedger
from stockledger.storage import SqlStorage


@lru_cache
def get_ledger() -> StockLedger:
    """Single ledger for the process, backed by the configured database."""
    return StockLedger(SqlStorage(SessionLocal))
