import importlib
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from storefront.config import settings

log = logging.getLogger("storefront.db")

DATABASE_URL = settings.DATABASE_URL


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # TestClient and the server threadpool hand sessions across threads
        return {"connect_args": {"check_same_thread": False}}
    kwargs = {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_pre_ping": True,
    }
    if url.startswith("postgresql"):
        kwargs["connect_args"] = {
            "options": f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}"
        }
    return kwargs


engine = create_engine(DATABASE_URL, future=True, echo=False, **_engine_kwargs(DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

MODEL_MODULES = [
    "storefront.models.admin",
    "storefront.models.user",
    "storefront.models.product",
    "storefront.models.inventory",
    "storefront.models.cart",
    "storefront.models.cart_item",
    "storefront.models.order",
]


def init_db(reset: bool = False):
    """
    Initialize DB schema.

    Every model module is imported first so the metadata is complete. With
    ``reset`` (or the RESET_DB setting) all tables are dropped and recreated,
    which is what the test suite relies on for a clean store.
    """
    for mod in MODEL_MODULES:
        importlib.import_module(mod)

    if reset or settings.RESET_DB:
        log.info("Resetting database schema")
        Base.metadata.drop_all(bind=engine)

    Base.metadata.create_all(bind=engine)
    log.info("Database initialized (%d tables)", len(Base.metadata.tables))


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
