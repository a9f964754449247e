from fastapi import APIRouter, Depends

from stockledger.dependencies import get_ledger
from stockledger.schemas.history import HistoryEntry
from stockledger.services.ledger import StockLedger

router = APIRouter(prefix="/history", tags=["History"])


@router.get("", response_model=list[HistoryEntry])
def list_history(ledger: StockLedger = Depends(get_ledger)):
    """Most recent movement first."""
    return ledger.list_history()
