import asyncio
import logging
from datetime import date
from typing import Iterable, List, Optional

from databases import Database
from sqlalchemy import and_, func, select

from . import generator
from .auth import get_password_hash, verify_password
from .exceptions import AuthenticationError, ConflictError, ValidationError
from .models import dashboard_metrics, users
from .query_builder import (
    FilterSpec,
    build_date_range_query,
    build_distinct_query,
    build_export_query,
    build_rows_query,
    build_summary_query,
)

logger = logging.getLogger(__name__)

RECORD_FIELDS = ("date", "revenue", "units_sold", "cost_of_goods", "product_category", "region")
INSERT_CONCURRENCY = 10


def _iso(value) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat() if hasattr(value, "isoformat") else str(value)


def _num(value) -> float:
    return float(value) if value is not None else 0.0


def _missing(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# ------------------------
# Users
# ------------------------

def normalize_email(email: str) -> str:
    """Lowercase the domain part, matching what EmailStr stores on registration."""
    local, at, domain = email.strip().rpartition("@")
    return f"{local}{at}{domain.lower()}" if at else email.strip()


async def get_user_by_email(db: Database, email: str):
    query = users.select().where(users.c.email == normalize_email(email))
    return await db.fetch_one(query)


async def create_user(db: Database, email: Optional[str], password: Optional[str], rounds: int = 10) -> int:
    if _missing(email) or _missing(password):
        raise ValidationError("Email and password are required.")
    email = normalize_email(email)
    if await get_user_by_email(db, email):
        raise ConflictError("User already exists.")
    query = users.insert().values(
        email=email,
        password_hash=get_password_hash(password, rounds),
    )
    try:
        user_id = await db.execute(query)
    except Exception as exc:
        # a concurrent registration won the unique index
        if await get_user_by_email(db, email):
            raise ConflictError("User already exists.") from exc
        raise
    logger.info("Registered user %s (id=%s)", email, user_id)
    return user_id


async def authenticate_user(db: Database, email: Optional[str], password: Optional[str]):
    if _missing(email) or _missing(password):
        raise ValidationError("Email and password are required.")
    user = await get_user_by_email(db, email)
    # same error for unknown email and wrong password
    if not user or not verify_password(password, user["password_hash"]):
        raise AuthenticationError()
    return user


# ------------------------
# Reads
# ------------------------

def serialize_metric(row) -> dict:
    return {
        "date": _iso(row["date"]),
        "revenue": round(_num(row["revenue"]), 2),
        "units_sold": int(row["units_sold"]),
        "cost_of_goods": round(_num(row["cost_of_goods"]), 2),
        "profit": round(_num(row["profit"]), 2),
        "product_category": row["product_category"],
        "region": row["region"],
    }


async def get_dashboard_rows(db: Database, spec: FilterSpec) -> List[dict]:
    rows = await db.fetch_all(build_rows_query(spec))
    return [serialize_metric(row) for row in rows]


async def get_export_rows(db: Database, spec: FilterSpec) -> List[dict]:
    rows = await db.fetch_all(build_export_query(spec))
    return [serialize_metric(row) for row in rows]


async def get_summary(db: Database, spec: FilterSpec) -> dict:
    row = await db.fetch_one(build_summary_query(spec))
    return {
        "totalRevenue": round(_num(row["total_revenue"]), 2),
        "totalProfit": round(_num(row["total_profit"]), 2),
        "totalUnits": int(row["total_units"] or 0),
        "avgRevenue": round(_num(row["avg_revenue"]), 2),
        "recordCount": int(row["record_count"] or 0),
    }


async def get_unique_field_values(db: Database, fieldname: str) -> List[str]:
    rows = await db.fetch_all(build_distinct_query(fieldname))
    return [row["value"] for row in rows]


async def get_filter_options(db: Database) -> dict:
    categories = await get_unique_field_values(db, "product_category")
    regions = await get_unique_field_values(db, "region")
    date_range = await db.fetch_one(build_date_range_query())
    return {
        "categories": categories,
        "regions": regions,
        "dateRange": {
            "minDate": _iso(date_range["min_date"]),
            "maxDate": _iso(date_range["max_date"]),
        },
    }


async def count_metrics(db: Database) -> int:
    return await db.fetch_val(select(func.count()).select_from(dashboard_metrics))


async def get_period_totals(db: Database, start: date, end: Optional[date] = None) -> dict:
    """Revenue/profit/units summed over ``start <= date`` (and ``date < end`` when given)."""
    t = dashboard_metrics.c
    clauses = [t.date >= start]
    if end is not None:
        clauses.append(t.date < end)
    query = select(
        func.sum(t.revenue).label("revenue"),
        func.sum(t.profit).label("profit"),
        func.sum(t.units_sold).label("units"),
    ).where(and_(*clauses))
    row = await db.fetch_one(query)
    return {
        "revenue": round(_num(row["revenue"]), 2),
        "profit": round(_num(row["profit"]), 2),
        "units": int(row["units"] or 0),
    }


async def get_category_trends(db: Database, since: date) -> List[dict]:
    t = dashboard_metrics.c
    total_revenue = func.sum(t.revenue).label("total_revenue")
    query = (
        select(
            t.product_category,
            total_revenue,
            func.sum(t.profit).label("total_profit"),
            func.sum(t.units_sold).label("total_units"),
            func.count().label("transaction_count"),
        )
        .where(t.date >= since)
        .group_by(t.product_category)
        .order_by(total_revenue.desc())
    )
    rows = await db.fetch_all(query)
    return [
        {
            "product_category": row["product_category"],
            "total_revenue": round(_num(row["total_revenue"]), 2),
            "total_profit": round(_num(row["total_profit"]), 2),
            "total_units": int(row["total_units"] or 0),
            "transaction_count": int(row["transaction_count"]),
        }
        for row in rows
    ]


async def get_daily_revenue(db: Database, since: date) -> List[dict]:
    t = dashboard_metrics.c
    query = (
        select(t.date, func.sum(t.revenue).label("daily_revenue"))
        .where(t.date >= since)
        .group_by(t.date)
        .order_by(t.date)
    )
    rows = await db.fetch_all(query)
    return [{"date": _iso(row["date"]), "daily_revenue": round(_num(row["daily_revenue"]), 2)} for row in rows]


# ------------------------
# Writes
# ------------------------

async def add_metric_record(db: Database, payload: dict) -> dict:
    missing = [field for field in RECORD_FIELDS if _missing(payload.get(field))]
    if missing:
        raise ValidationError(
            "All fields are required: " + ", ".join(RECORD_FIELDS)
        )
    revenue = round(float(payload["revenue"]), 2)
    cost_of_goods = round(float(payload["cost_of_goods"]), 2)
    values = {
        "date": payload["date"],
        "revenue": revenue,
        "units_sold": int(payload["units_sold"]),
        "cost_of_goods": cost_of_goods,
        # client-supplied profit is ignored
        "profit": round(revenue - cost_of_goods, 2),
        "product_category": payload["product_category"],
        "region": payload["region"],
    }
    record_id = await db.execute(dashboard_metrics.insert().values(**values))
    return {"id": record_id, **values, "date": _iso(values["date"])}


def insert_concurrency(db: Database) -> int:
    """SQLite allows a single writer, so its inserts are issued one at a time."""
    return 1 if db.url.dialect == "sqlite" else INSERT_CONCURRENCY


async def insert_metric_rows(db: Database, rows: Iterable[dict]) -> int:
    """Insert rows concurrently (bounded per backend); there is no transaction around the batch."""
    query = dashboard_metrics.insert()
    rows = list(rows)
    semaphore = asyncio.Semaphore(insert_concurrency(db))

    async def insert_one(row):
        async with semaphore:
            await db.execute(query.values(**row))

    await asyncio.gather(*(insert_one(row) for row in rows))
    return len(rows)


async def delete_all_metrics(db: Database) -> None:
    await db.execute(dashboard_metrics.delete())


async def seed_sample_data(db: Database, today: Optional[date] = None) -> int:
    """Populate the canonical 90-day dataset when the table is empty."""
    existing = await count_metrics(db)
    if existing:
        logger.info("Sample data already exists (%s records).", existing)
        return 0
    logger.info("Generating sample dashboard data...")
    inserted = await insert_metric_rows(db, generator.sample_records(today))
    logger.info("Sample data generated: %s records.", inserted)
    return inserted


async def reset_metrics(db: Database, today: Optional[date] = None) -> int:
    await delete_all_metrics(db)
    return await seed_sample_data(db, today)


async def regenerate_metrics(db: Database, count: int, scenario: str) -> int:
    await delete_all_metrics(db)
    return await insert_metric_rows(db, generator.generate_records(count, scenario))


async def scale_metrics(
    db: Database,
    multipliers: dict,
    category: Optional[str] = None,
    region: Optional[str] = None,
) -> int:
    """Multiply the given money columns in place for rows matching category/region."""
    t = dashboard_metrics.c
    values = {column: getattr(t, column) * factor for column, factor in multipliers.items()}
    query = dashboard_metrics.update().values(**values)
    counter = select(func.count()).select_from(dashboard_metrics)
    clauses = FilterSpec(category=category, region=region).clauses()
    if clauses:
        query = query.where(and_(*clauses))
        counter = counter.where(and_(*clauses))
    # databases does not expose rowcount, so count the matching rows alongside the update
    async with db.transaction():
        affected = await db.fetch_val(counter)
        await db.execute(query)
    logger.info("Scaled %s rows by %s", affected, multipliers)
    return affected


async def apply_scenario(db: Database, name: str) -> dict:
    scenario = generator.SCENARIOS.get(name)
    if scenario is None:
        raise ValidationError(
            "Invalid scenario. Available: " + ", ".join(generator.SCENARIOS)
        )
    predicate = {"category": None, "region": None}
    predicate["category" if scenario["column"] == "product_category" else "region"] = scenario["value"]
    affected = await scale_metrics(db, scenario["multipliers"], **predicate)
    return {"scenario": name, "description": scenario["description"], "affectedRows": affected}
