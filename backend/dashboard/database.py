import logging

from databases import Database
from sqlalchemy import MetaData, create_engine, inspect, text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

metadata = MetaData()


def sync_url(database_url: str) -> str:
    """Strip the async driver so the same URL works for a synchronous engine."""
    return database_url.replace("+asyncpg", "").replace("+aiosqlite", "")


def build_database(database_url: str) -> Database:
    # Async database instance for request handling
    return Database(database_url)


def build_engine(database_url: str) -> Engine:
    # SQLAlchemy engine for schema creation and upgrades
    url = sync_url(database_url)
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


# ---------- Auto Schema Upgrade Helper ----------
def upgrade_schema_if_needed(engine: Engine) -> None:
    """
    Creates missing tables and makes sure dashboard_metrics carries the
    optional category/region columns that older deployments lack.
    """
    from . import models  # noqa: F401  registers tables on metadata

    inspector = inspect(engine)
    tables = inspector.get_table_names()
    if "users" not in tables or "dashboard_metrics" not in tables:
        metadata.create_all(bind=engine)
        logger.info("[DB INIT] Created missing tables.")
        return

    existing_columns = [col["name"] for col in inspector.get_columns("dashboard_metrics")]

    expected_columns = {
        "product_category": "VARCHAR(100)",
        "region": "VARCHAR(50)",
    }

    with engine.begin() as conn:
        for col_name, col_type in expected_columns.items():
            if col_name not in existing_columns:
                conn.execute(text(f'ALTER TABLE dashboard_metrics ADD COLUMN "{col_name}" {col_type}'))
                logger.info("[DB UPGRADE] Added missing column: %s", col_name)
    logger.info("Database tables checked.")
