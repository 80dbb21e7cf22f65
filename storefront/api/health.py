from fastapi import APIRouter
from sqlalchemy import text

from storefront.api.deps import get_notifier
from storefront.db import engine

router = APIRouter()


@router.get("/health", tags=["health"])
def health():
    db_ok = False
    notifier_ok = False
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            db_ok = True
    except Exception:
        db_ok = False
    try:
        notifier_ok = get_notifier().health_check()
    except Exception:
        notifier_ok = False

    return {
        "status": "ok" if db_ok and notifier_ok else "degraded",
        "db": db_ok,
        "notifier": notifier_ok,
    }
