"""Derived, never-stored stock metrics."""
from stockledger.schemas.product import AlertStatus, Product


def derive_alert_status(product: Product) -> AlertStatus:
    if product.stock <= 0:
        return AlertStatus.CRITICAL
    if product.stock <= product.min_stock:
        return AlertStatus.LOW
    return AlertStatus.OK


def derive_stock_percentage(product: Product) -> float:
    """Fill level for a stock bar; full at twice the reorder threshold."""
    if product.min_stock == 0:
        return 100.0 if product.stock > 0 else 0.0
    percent = product.stock / (product.min_stock * 2) * 100
    return float(min(100.0, max(0.0, percent)))
