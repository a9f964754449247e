import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from stockledger.api import history, products, reports, snapshot
from stockledger.config import configure_logging, settings
from stockledger.database import init_db
from stockledger.exceptions import (
    ImportFormatError,
    InsufficientStockError,
    LedgerError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: 422,
    NotFoundError: 404,
    InsufficientStockError: 409,
    ImportFormatError: 400,
    PersistenceError: 507,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    init_db()
    logger.info("%s started with database %s", settings.APP_NAME, settings.DATABASE_URL)
    yield


app = FastAPI(
    title="Stock Ledger API",
    description="Products, stock movements, low-stock alerts and movement history",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(LedgerError)
async def ledger_exception_handler(request: Request, exc: LedgerError):
    status = ERROR_STATUS.get(type(exc), 400)
    if isinstance(exc, PersistenceError):
        logger.error("Persistence failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content=exc.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Return JSON for unhandled exceptions so the frontend can parse the error."""
    logger.error("Unhandled error: %s\n%s", exc, traceback.format_exc())
    return JSONResponse(status_code=500, content={"detail": str(exc)})


app.include_router(products.router, prefix="/api/v1")
app.include_router(history.router, prefix="/api/v1")
app.include_router(reports.router, prefix="/api/v1")
app.include_router(snapshot.router, prefix="/api/v1")


@app.get("/health")
def health():
    return {"status": "ok"}
