from fastapi import APIRouter, Body, Depends, Response

from stockledger.dependencies import get_ledger
from stockledger.schemas.product import AlertFilter, Product, ProductInput, ProductOut, StockMovement
from stockledger.services.ledger import StockLedger

router = APIRouter(prefix="/products", tags=["Products"])

# Bodies stay plain dicts so the ledger applies its own numeric policy;
# the documented schema is the one the ledger validates against.
PRODUCT_BODY = {
    "requestBody": {
        "required": True,
        "content": {
            "application/json": {
                "schema": ProductInput.model_json_schema(),
                "example": {
                    "name": "Widget",
                    "code": "W-001",
                    "category": "Hardware",
                    "supplier": "ACME",
                    "stock": 10,
                    "min_stock": 5,
                    "buy_price": 2.5,
                    "sell_price": 4.0,
                },
            }
        },
    }
}


def _to_out(product: Product) -> ProductOut:
    return ProductOut(
        **product.model_dump(),
        status=StockLedger.derive_alert_status(product),
        stock_percentage=round(StockLedger.derive_stock_percentage(product), 2),
    )


@router.post("", response_model=ProductOut, status_code=201, openapi_extra=PRODUCT_BODY)
def create_product(data: dict = Body(...), ledger: StockLedger = Depends(get_ledger)):
    return _to_out(ledger.create(data))


@router.get("", response_model=list[ProductOut])
def list_products(q: str = "", alert: AlertFilter = AlertFilter.ALL, ledger: StockLedger = Depends(get_ledger)):
    return [_to_out(p) for p in ledger.query(q, alert)]


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: str, ledger: StockLedger = Depends(get_ledger)):
    return _to_out(ledger.get_product(product_id))


@router.put("/{product_id}", response_model=ProductOut, openapi_extra=PRODUCT_BODY)
def update_product(product_id: str, data: dict = Body(...), ledger: StockLedger = Depends(get_ledger)):
    return _to_out(ledger.update(product_id, data))


@router.delete("/{product_id}", status_code=204)
def delete_product(product_id: str, ledger: StockLedger = Depends(get_ledger)):
    ledger.delete(product_id)
    return Response(status_code=204)


@router.post("/{product_id}/stock", response_model=ProductOut)
def move_stock(product_id: str, data: StockMovement, ledger: StockLedger = Depends(get_ledger)):
    return _to_out(ledger.move_stock(product_id, data.direction, data.quantity))
