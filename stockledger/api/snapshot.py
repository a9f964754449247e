from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from stockledger.dependencies import get_ledger
from stockledger.schemas.history import Snapshot
from stockledger.services.ledger import StockLedger

router = APIRouter(prefix="/snapshot", tags=["Snapshot"])


@router.get("")
def export_snapshot(ledger: StockLedger = Depends(get_ledger)):
    snapshot = ledger.export_snapshot()
    filename = f"inventory_{snapshot.export_date:%Y%m%d_%H%M%S}.json"
    return JSONResponse(
        snapshot.model_dump(mode="json"),
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.post("", response_model=Snapshot)
def import_snapshot(bundle=Body(...), ledger: StockLedger = Depends(get_ledger)):
    return ledger.import_snapshot(bundle)
