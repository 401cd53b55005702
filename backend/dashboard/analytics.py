import logging
import random
from datetime import date, timedelta
from typing import List, Optional, Tuple

import pandas as pd
from databases import Database
from fastapi import APIRouter, Depends, Query

from . import crud
from .auth import require_user
from .deps import get_db
from .exceptions import ValidationError, store_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analytics", dependencies=[Depends(require_user)])

PERIODS = ("month", "week")
TREND_WINDOW_DAYS = 30
HISTORY_DAYS = 90
FORECAST_DAYS = 30
FORECAST_WINDOW = 30
FORECAST_JITTER = 0.05
BASE_CONFIDENCE = 0.85
CONFIDENCE_DECAY = 0.02


def period_bounds(period: str, today: date) -> Tuple[date, date]:
    """Start of the current calendar period and of the one before it."""
    if period == "month":
        current = today.replace(day=1)
        previous = (current - timedelta(days=1)).replace(day=1)
    elif period == "week":
        current = today - timedelta(days=today.weekday())
        previous = current - timedelta(days=7)
    else:
        raise ValidationError("Invalid period parameter")
    return current, previous


def growth_rate(current: float, previous: float) -> float:
    if previous == 0:
        return 0
    return (current - previous) / previous * 100


def revenue_forecast(
    historical: List[dict],
    today: date,
    rng: Optional[random.Random] = None,
) -> List[dict]:
    """
    Naive forecast: the mean of the last ``FORECAST_WINDOW`` daily revenue
    sums, projected for each of the next ``FORECAST_DAYS`` days with +/-5%
    uniform jitter. Confidence falls by 0.02 per day from 0.85. This is a
    placeholder heuristic, not a fitted model.
    """
    if len(historical) < 2:
        return []
    rng = rng or random.Random()

    df = pd.DataFrame(historical)
    average = pd.to_numeric(df["daily_revenue"], errors="coerce").fillna(0).tail(FORECAST_WINDOW).mean()
    future = pd.date_range(today + timedelta(days=1), periods=FORECAST_DAYS, freq="D")

    forecasts = []
    for offset, day in enumerate(future, start=1):
        jitter = rng.uniform(-FORECAST_JITTER, FORECAST_JITTER)
        forecasts.append({
            "date": day.date().isoformat(),
            "forecasted_revenue": round(float(average) * (1 + jitter), 2),
            "confidence": round(BASE_CONFIDENCE - offset * CONFIDENCE_DECAY, 2),
        })
    return forecasts


@router.get("/growth")
async def growth(period: str = Query("month"), db: Database = Depends(get_db)):
    current_start, previous_start = period_bounds(period, date.today())
    try:
        current = await crud.get_period_totals(db, current_start)
        previous = await crud.get_period_totals(db, previous_start, current_start)
    except Exception as exc:
        raise store_error("Failed to analyze growth", exc) from exc

    growth_rates = {key: growth_rate(current[key], previous[key]) for key in ("revenue", "profit", "units")}
    return {
        "status": "success",
        "data": {
            "period": period,
            "currentPeriod": current,
            "previousPeriod": previous,
            "growthRates": growth_rates,
        },
    }


@router.get("/trends")
async def trends(db: Database = Depends(get_db)):
    since = date.today() - timedelta(days=TREND_WINDOW_DAYS)
    try:
        breakdown = await crud.get_category_trends(db, since)
    except Exception as exc:
        raise store_error("Failed to analyze trends", exc) from exc
    return {
        "status": "success",
        "data": {
            "topPerformer": breakdown[0] if breakdown else None,
            "categoryBreakdown": breakdown,
            "totalCategories": len(breakdown),
        },
    }


@router.get("/forecast")
async def forecast(db: Database = Depends(get_db)):
    today = date.today()
    try:
        historical = await crud.get_daily_revenue(db, today - timedelta(days=HISTORY_DAYS))
    except Exception as exc:
        raise store_error("Failed to generate forecast", exc) from exc
    return {
        "status": "success",
        "data": {
            "historical": historical,
            "forecast": revenue_forecast(historical, today),
        },
    }
