import logging
from datetime import date
from typing import Optional

import pandas as pd
from databases import Database
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from . import crud
from .auth import require_user
from .deps import get_db
from .exceptions import store_error
from .query_builder import FilterSpec

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dashboard", dependencies=[Depends(require_user)])

CSV_HEADER = ["Date", "Revenue", "Units Sold", "Cost of Goods", "Profit", "Category", "Region"]


def filter_spec(
    startDate: Optional[date] = Query(None),
    endDate: Optional[date] = Query(None),
    category: Optional[str] = Query(None),
    region: Optional[str] = Query(None),
) -> FilterSpec:
    return FilterSpec(start_date=startDate, end_date=endDate, category=category or None, region=region or None)


def to_csv(rows) -> str:
    """Serialize metric rows with the fixed export header; missing values become empty fields."""
    df = pd.DataFrame(
        rows,
        columns=["date", "revenue", "units_sold", "cost_of_goods", "profit", "product_category", "region"],
    )
    df.columns = CSV_HEADER
    return df.to_csv(index=False, na_rep="", float_format="%.2f", lineterminator="\n")


@router.get("/data")
async def dashboard_data(spec: FilterSpec = Depends(filter_spec), db: Database = Depends(get_db)):
    spec.require_date_range()
    try:
        rows = await crud.get_dashboard_rows(db, spec)
    except Exception as exc:
        raise store_error("Failed to retrieve dashboard data.", exc) from exc
    logger.debug("Dashboard query returned %s rows", len(rows))
    return {"status": "success", "message": "Dashboard data retrieved successfully.", "data": rows}


@router.get("/summary")
async def dashboard_summary(spec: FilterSpec = Depends(filter_spec), db: Database = Depends(get_db)):
    try:
        summary = await crud.get_summary(db, spec)
    except Exception as exc:
        raise store_error("Failed to get summary data.", exc) from exc
    return {"status": "success", "data": summary}


@router.get("/filters")
async def dashboard_filters(db: Database = Depends(get_db)):
    """
    Returns the distinct categories and regions plus the overall date range,
    used to populate the frontend dropdowns.
    """
    try:
        options = await crud.get_filter_options(db)
    except Exception as exc:
        raise store_error("Failed to get filter options.", exc) from exc
    return {"status": "success", "data": options}


@router.get("/export")
async def dashboard_export(spec: FilterSpec = Depends(filter_spec), db: Database = Depends(get_db)):
    try:
        rows = await crud.get_export_rows(db, spec)
    except Exception as exc:
        raise store_error("Failed to export data.", exc) from exc
    return Response(
        content=to_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=dashboard-export.csv"},
    )
