from contextlib import asynccontextmanager

from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from retailops.api.health import router as health_router
from retailops.api.routes_barcode import router as barcode_router
from retailops.api.routes_catalogue import router as catalogue_router
from retailops.api.routes_checkout import router as checkout_router
from retailops.api.routes_inventory import router as inventory_router
from retailops.api.routes_order import router as order_router
from retailops.config import settings
from retailops.db import SessionLocal, init_db
from retailops.services.errors import (
    BusinessRuleViolation,
    Conflict,
    DuplicateBarcode,
    DuplicateSku,
    InvalidInput,
    NotFound,
    PermissionDenied,
    RetailOpsError,
    StorageFailure,
)
from retailops.services.report_service import ReportService
from retailops.utils.logging import get_logger

log = get_logger("main")

# most specific first; subclasses inherit their parent's status
ERROR_STATUS = [
    (InvalidInput, 400),
    (BusinessRuleViolation, 400),
    (NotFound, 404),
    (DuplicateSku, 409),
    (DuplicateBarcode, 409),
    (Conflict, 409),
    (PermissionDenied, 403),
    (StorageFailure, 500),
]


def status_for(exc: RetailOpsError) -> int:
    for cls, code in ERROR_STATUS:
        if isinstance(exc, cls):
            return code
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    init_db(reset=settings.RESET_DB, seed=settings.SEED_DEMO_DATA)

    scheduler = None
    if settings.LOW_STOCK_SCAN_SECONDS > 0:
        scheduler = BackgroundScheduler()

        def low_stock_job():
            db = SessionLocal()
            try:
                ReportService(db).sweep_low_stock()
            except RetailOpsError as e:
                log.error(f"low-stock sweep failed: {e.message}")
            finally:
                db.close()

        scheduler.add_job(
            low_stock_job,
            "interval",
            seconds=settings.LOW_STOCK_SCAN_SECONDS,
            id="low_stock_sweep",
        )
        scheduler.start()

    try:
        yield
    finally:
        if scheduler:
            scheduler.shutdown(wait=False)


app = FastAPI(title="RetailOps - Inventory & Checkout", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RetailOpsError)
async def retailops_error_handler(request: Request, exc: RetailOpsError):
    return JSONResponse(status_code=status_for(exc), content=exc.to_dict())


app.include_router(health_router, prefix="/api", tags=["health"])

app.include_router(catalogue_router, prefix="/api/products", tags=["catalogue"])

app.include_router(barcode_router, prefix="/api/barcodes", tags=["catalogue"])

app.include_router(inventory_router, prefix="/api/inventory", tags=["inventory"])

app.include_router(checkout_router, prefix="/api/checkout", tags=["checkout"])

app.include_router(order_router, prefix="/api/orders", tags=["orders"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("retailops.main:app", host=settings.APP_HOST, port=settings.APP_PORT)
