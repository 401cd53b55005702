"""
Synthetic sales data: the canonical 90-day seed, scenario-driven bulk
generation and the catalogue of scripted bulk updates.
"""

import math
import random
from datetime import date, timedelta
from typing import Dict, List, Optional

CATEGORIES = ["Electronics", "Clothing", "Home Goods", "Books", "Sports"]
REGIONS = ["North", "South", "East", "West"]

BASE_REVENUE = {
    "Electronics": 1500,
    "Clothing": 300,
    "Home Goods": 600,
    "Books": 100,
    "Sports": 400,
}
DEFAULT_BASE_REVENUE = 500

SCENARIO_MULTIPLIERS = {
    "normal": 1.0,
    "growth": 1.3,
    "recession": 0.7,
    "spike": 2.0,
}

SEED_DAYS = 90

# name -> description, predicate column/value and per-column multipliers
SCENARIOS: Dict[str, dict] = {
    "revenue-spike": {
        "description": "50% Revenue Spike in Electronics",
        "column": "product_category",
        "value": "Electronics",
        "multipliers": {"revenue": 1.5, "profit": 1.5},
    },
    "profit-drop": {
        "description": "30% Profit Drop in Clothing",
        "column": "product_category",
        "value": "Clothing",
        "multipliers": {"profit": 0.7, "revenue": 0.9},
    },
    "category-leader": {
        "description": "Make Sports Category the Leader",
        "column": "product_category",
        "value": "Sports",
        "multipliers": {"revenue": 2.0, "profit": 2.0},
    },
    "regional-boom": {
        "description": "West Region Business Boom",
        "column": "region",
        "value": "West",
        "multipliers": {"revenue": 1.8, "profit": 1.8},
    },
}


def scenario_multiplier(scenario: str) -> float:
    return SCENARIO_MULTIPLIERS.get(scenario, 1.0)


def make_record(day: date, category: str, region: str, base_revenue: float, rng: random.Random) -> dict:
    revenue = max(100.0, base_revenue + (rng.random() - 0.5) * base_revenue)
    cost_of_goods = revenue * (0.3 + rng.random() * 0.3)  # 30-60% COGS
    revenue = round(revenue, 2)
    cost_of_goods = round(cost_of_goods, 2)
    return {
        "date": day,
        "revenue": revenue,
        "units_sold": max(1, math.floor(revenue / (base_revenue * 0.3))),
        "cost_of_goods": cost_of_goods,
        "profit": round(revenue - cost_of_goods, 2),
        "product_category": category,
        "region": region,
    }


def sample_records(today: Optional[date] = None, rng: Optional[random.Random] = None) -> List[dict]:
    """One record per day for the trailing ``SEED_DAYS`` days, ending today."""
    today = today or date.today()
    rng = rng or random.Random()
    rows = []
    for i in range(SEED_DAYS):
        day = today - timedelta(days=SEED_DAYS - 1 - i)
        category = rng.choice(CATEGORIES)
        region = rng.choice(REGIONS)
        base = BASE_REVENUE.get(category, DEFAULT_BASE_REVENUE)
        rows.append(make_record(day, category, region, base, rng))
    return rows


def generate_records(
    count: int = 50,
    scenario: str = "normal",
    today: Optional[date] = None,
    rng: Optional[random.Random] = None,
) -> List[dict]:
    """``count`` records scattered over the trailing 90 days with the scenario multiplier applied."""
    today = today or date.today()
    rng = rng or random.Random()
    multiplier = scenario_multiplier(scenario)
    rows = []
    for _ in range(count):
        day = today - timedelta(days=rng.randrange(SEED_DAYS))
        category = rng.choice(CATEGORIES)
        region = rng.choice(REGIONS)
        base = BASE_REVENUE[category] * multiplier
        rows.append(make_record(day, category, region, base, rng))
    return rows
