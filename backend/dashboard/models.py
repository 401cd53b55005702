from sqlalchemy import Table, Column, Integer, String, Numeric, Date, DateTime, func
from .database import metadata

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("email", String(255), unique=True, index=True, nullable=False),
    Column("password_hash", String(255), nullable=False),
    Column("created_at", DateTime(timezone=True), server_default=func.current_timestamp()),
)

dashboard_metrics = Table(
    "dashboard_metrics",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("date", Date, index=True, nullable=False),
    Column("revenue", Numeric(10, 2, asdecimal=False), nullable=False),
    Column("units_sold", Integer, nullable=False),
    Column("cost_of_goods", Numeric(10, 2, asdecimal=False), nullable=False),
    Column("profit", Numeric(10, 2, asdecimal=False), nullable=False),

    # --- Slicing columns (optional, used by filters, trends and scenarios) ---
    Column("product_category", String(100), index=True, nullable=True),
    Column("region", String(50), index=True, nullable=True),
    Column("created_at", DateTime(timezone=True), server_default=func.current_timestamp()),
)
