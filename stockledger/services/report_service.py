from stockledger.schemas.product import AlertStatus, Product
from stockledger.services.ledger import StockLedger
from stockledger.services.metrics import derive_alert_status, derive_stock_percentage


def stock_chart(ledger: StockLedger) -> dict:
    products = ledger.list_products()
    return {
        "label": "Current stock",
        "labels": [p.name for p in products],
        "data": [p.stock for p in products],
    }


def sales_chart(ledger: StockLedger) -> dict:
    products = ledger.list_products()
    return {
        "label": "Outbound movements",
        "labels": [p.name for p in products],
        "data": [p.sales for p in products],
    }


def inventory_summary(ledger: StockLedger) -> dict:
    products = ledger.list_products()
    by_status = {status.value: 0 for status in AlertStatus}
    alert_items = []
    for p in products:
        status = derive_alert_status(p)
        by_status[status.value] += 1
        if status != AlertStatus.OK:
            alert_items.append({
                "id": p.id,
                "name": p.name,
                "code": p.code,
                "stock": p.stock,
                "min_stock": p.min_stock,
                "status": status.value,
                "stock_percentage": round(derive_stock_percentage(p), 2),
            })

    return {
        "total_products": len(products),
        "total_units_in_stock": sum(p.stock for p in products),
        "inventory_cost_value": round(sum(p.stock * p.buy_price for p in products), 2),
        "inventory_sale_value": round(sum(p.stock * p.sell_price for p in products), 2),
        "by_status": by_status,
        "alert_items": alert_items,
        "by_category": _group_by_category(products),
    }


def _group_by_category(products: list[Product]) -> list[dict]:
    """Units, cost and sale value, and products needing attention per category."""
    groups: dict[str, dict] = {}
    for p in products:
        group = groups.setdefault(p.category or "Uncategorized", {
            "category": p.category or "Uncategorized",
            "product_count": 0,
            "alert_count": 0,
            "total_units": 0,
            "cost_value": 0.0,
            "sale_value": 0.0,
        })
        group["product_count"] += 1
        group["total_units"] += p.stock
        group["cost_value"] += p.stock * p.buy_price
        group["sale_value"] += p.stock * p.sell_price
        if derive_alert_status(p) != AlertStatus.OK:
            group["alert_count"] += 1
    for group in groups.values():
        group["cost_value"] = round(group["cost_value"], 2)
        group["sale_value"] = round(group["sale_value"], 2)
    return list(groups.values())
