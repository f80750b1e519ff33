from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from retailops.db import engine
from retailops.utils.logging import get_logger

router = APIRouter()
log = get_logger("health")


@router.get("/health", tags=["health"])
def health():
    db_ok = False
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            db_ok = True
    except SQLAlchemyError as e:
        log.error(f"database ping failed: {e}")

    return {"status": "ok" if db_ok else "degraded", "db": db_ok}
