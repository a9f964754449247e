from fastapi import APIRouter, Depends

from stockledger.dependencies import get_ledger
from stockledger.services import report_service
from stockledger.services.ledger import StockLedger

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/inventory")
def inventory_report(ledger: StockLedger = Depends(get_ledger)):
    return report_service.inventory_summary(ledger)


@router.get("/charts")
def charts(ledger: StockLedger = Depends(get_ledger)):
    return {
        "stock": report_service.stock_chart(ledger),
        "sales": report_service.sales_chart(ledger),
    }
