from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

from retailops.config import settings
from retailops.utils.logging import get_logger

log = get_logger("db")

DATABASE_URL = settings.DATABASE_URL
_is_sqlite = DATABASE_URL.startswith("sqlite")

engine = create_engine(
    DATABASE_URL,
    future=True,
    echo=False,
    connect_args={"check_same_thread": False, "timeout": 30} if _is_sqlite else {},
)

if _is_sqlite:
    # pysqlite defers BEGIN until the first DML statement, which breaks read-then-write
    # isolation and SAVEPOINTs. Take over transaction control explicitly.
    # BEGIN IMMEDIATE: concurrent writers queue on the busy timeout instead of
    # deadlocking on the SHARED -> RESERVED upgrade.
    @event.listens_for(engine, "connect")
    def _sqlite_on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _sqlite_on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# model modules must be imported so Base.metadata knows every table
MODEL_MODULES = [
    "retailops.models.product",
    "retailops.models.barcode",
    "retailops.models.inventory",
    "retailops.models.order",
]


def init_db(reset: bool = False, seed: bool = False):
    """
    Initialize DB schema.

    Behavior:
      - reset=True drops every table first (tests, RESET_DB=1).
      - seed=True creates the demo catalogue when the products table is empty.
    """
    import importlib

    for mod in MODEL_MODULES:
        importlib.import_module(mod)

    if reset:
        log.info("Resetting database...")
        Base.metadata.drop_all(bind=engine)

    Base.metadata.create_all(bind=engine)
    log.info("Database initialized.")

    if seed:
        from retailops.db.seed import seed_demo_catalog

        s = SessionLocal()
        try:
            created = seed_demo_catalog(s)
            if created:
                log.info(f"Seeded {created} demo products.")
        finally:
            s.close()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
