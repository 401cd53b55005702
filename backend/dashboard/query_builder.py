"""
Builds the read and aggregate queries behind the dashboard endpoints.

A ``FilterSpec`` turns into an ordered list of predicates (date bounds
first, then category, then region). Every filter value travels as a bound
parameter; nothing from the request is ever formatted into SQL text.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, distinct, func, select
from sqlalchemy.sql import ClauseElement, Select

from .exceptions import ValidationError
from .models import dashboard_metrics

ROW_LIMIT = 1000

# Columns returned by the listing and export queries, in CSV order.
METRIC_COLUMNS = (
    dashboard_metrics.c.date,
    dashboard_metrics.c.revenue,
    dashboard_metrics.c.units_sold,
    dashboard_metrics.c.cost_of_goods,
    dashboard_metrics.c.profit,
    dashboard_metrics.c.product_category,
    dashboard_metrics.c.region,
)

DISTINCT_COLUMNS = {
    "product_category": dashboard_metrics.c.product_category,
    "region": dashboard_metrics.c.region,
}


@dataclass(frozen=True)
class FilterSpec:
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    category: Optional[str] = None
    region: Optional[str] = None

    def clauses(self) -> List[ClauseElement]:
        t = dashboard_metrics.c
        clauses = []
        if self.start_date is not None:
            clauses.append(t.date >= self.start_date)
        if self.end_date is not None:
            clauses.append(t.date <= self.end_date)
        if self.category:
            clauses.append(t.product_category == self.category)
        if self.region:
            clauses.append(t.region == self.region)
        return clauses

    def require_date_range(self) -> None:
        if self.start_date is None or self.end_date is None:
            raise ValidationError("startDate and endDate are required")


def _filtered(query: Select, spec: FilterSpec) -> Select:
    clauses = spec.clauses()
    if clauses:
        query = query.where(and_(*clauses))
    return query


def build_rows_query(spec: FilterSpec, limit: int = ROW_LIMIT) -> Select:
    spec.require_date_range()
    query = _filtered(select(*METRIC_COLUMNS), spec)
    return query.order_by(dashboard_metrics.c.date.asc(), dashboard_metrics.c.id.asc()).limit(limit)


def build_export_query(spec: FilterSpec) -> Select:
    query = _filtered(select(*METRIC_COLUMNS), spec)
    return query.order_by(dashboard_metrics.c.date.asc(), dashboard_metrics.c.id.asc())


def build_summary_query(spec: FilterSpec) -> Select:
    t = dashboard_metrics.c
    query = select(
        func.sum(t.revenue).label("total_revenue"),
        func.sum(t.profit).label("total_profit"),
        func.sum(t.units_sold).label("total_units"),
        func.avg(t.revenue).label("avg_revenue"),
        func.count().label("record_count"),
    ).select_from(dashboard_metrics)
    return _filtered(query, spec)


def build_distinct_query(fieldname: str) -> Select:
    # only whitelisted columns can be enumerated
    if fieldname not in DISTINCT_COLUMNS:
        raise ValueError(f"Field {fieldname} is not allowed.")
    column = DISTINCT_COLUMNS[fieldname]
    return select(distinct(column).label("value")).where(column.isnot(None)).order_by(column)


def build_date_range_query() -> Select:
    t = dashboard_metrics.c
    return select(func.min(t.date).label("min_date"), func.max(t.date).label("max_date"))


def compile_query(query: ClauseElement, dialect=None) -> Tuple[str, Dict[str, Any]]:
    """Render ``query`` to its SQL text and the parameters bound alongside it."""
    compiled = query.compile(dialect=dialect)
    return str(compiled), dict(compiled.params)
