"""
Tests for growth, trend and forecast analytics.
"""

import random
from datetime import date, timedelta

import pytest

from dashboard.analytics import growth_rate, period_bounds, revenue_forecast
from dashboard.exceptions import ValidationError

from conftest import days_ago, metric_row


class TestGrowthRate:

    def test_zero_previous_period(self):
        assert growth_rate(100, 0) == 0

    def test_positive_growth(self):
        assert growth_rate(150, 100) == 50.0

    def test_decline(self):
        assert growth_rate(75, 100) == -25.0


class TestPeriodBounds:

    def test_month(self):
        assert period_bounds("month", date(2024, 3, 15)) == (date(2024, 3, 1), date(2024, 2, 1))

    def test_month_across_year(self):
        assert period_bounds("month", date(2024, 1, 10)) == (date(2024, 1, 1), date(2023, 12, 1))

    def test_week_starts_monday(self):
        # 2024-03-14 is a Thursday
        assert period_bounds("week", date(2024, 3, 14)) == (date(2024, 3, 11), date(2024, 3, 4))

    def test_invalid_period(self):
        with pytest.raises(ValidationError):
            period_bounds("quarter", date(2024, 3, 14))


class TestRevenueForecast:

    def test_needs_two_days_of_history(self):
        assert revenue_forecast([], date(2024, 1, 1)) == []
        assert revenue_forecast([{"date": "2024-01-01", "daily_revenue": 10.0}], date(2024, 1, 1)) == []

    def test_projection_shape(self):
        history = [{"date": f"2024-01-{d:02d}", "daily_revenue": 1000.0} for d in range(1, 11)]
        forecast = revenue_forecast(history, date(2024, 1, 10), rng=random.Random(42))

        assert len(forecast) == 30
        assert forecast[0]["date"] == "2024-01-11"
        assert forecast[-1]["date"] == "2024-02-09"
        for day, point in enumerate(forecast, start=1):
            assert 950.0 <= point["forecasted_revenue"] <= 1050.0
            assert point["confidence"] == pytest.approx(0.85 - 0.02 * day)

    def test_uses_trailing_thirty_days(self):
        history = [{"date": f"d{i}", "daily_revenue": 1_000_000.0} for i in range(20)]
        history += [{"date": f"e{i}", "daily_revenue": 100.0} for i in range(30)]
        forecast = revenue_forecast(history, date(2024, 1, 1), rng=random.Random(1))
        assert all(95.0 <= point["forecasted_revenue"] <= 105.0 for point in forecast)


class TestAnalyticsAPI:

    def test_growth_month(self, client, auth_headers, insert_metrics):
        current_start, previous_start = period_bounds("month", date.today())
        insert_metrics([
            metric_row(current_start, revenue=150.0, cost=50.0, units=3),
            metric_row(previous_start, revenue=100.0, cost=50.0, units=2),
            metric_row(previous_start - timedelta(days=1), revenue=5000.0, cost=1.0, units=50),
        ])
        response = client.get("/api/analytics/growth", params={"period": "month"}, headers=auth_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["currentPeriod"] == {"revenue": 150.0, "profit": 100.0, "units": 3}
        assert data["previousPeriod"] == {"revenue": 100.0, "profit": 50.0, "units": 2}
        assert data["growthRates"]["revenue"] == 50.0
        assert data["growthRates"]["profit"] == 100.0
        assert data["growthRates"]["units"] == 50.0

    def test_growth_without_previous_data(self, client, auth_headers, insert_metrics):
        current_start, _ = period_bounds("week", date.today())
        insert_metrics([metric_row(current_start, revenue=100.0)])
        data = client.get("/api/analytics/growth", params={"period": "week"}, headers=auth_headers).json()["data"]
        assert data["growthRates"] == {"revenue": 0, "profit": 0, "units": 0}

    def test_growth_invalid_period(self, client, auth_headers):
        response = client.get("/api/analytics/growth", params={"period": "year"}, headers=auth_headers)
        assert response.status_code == 400
        assert response.json() == {"status": "error", "message": "Invalid period parameter"}

    def test_trends(self, client, auth_headers, insert_metrics):
        insert_metrics([
            metric_row(days_ago(1), revenue=500.0, category="Sports"),
            metric_row(days_ago(2), revenue=700.0, category="Sports"),
            metric_row(days_ago(3), revenue=900.0, category="Electronics"),
            metric_row(days_ago(45), revenue=99999.0, category="Books"),
        ])
        data = client.get("/api/analytics/trends", headers=auth_headers).json()["data"]
        assert data["totalCategories"] == 2
        assert [row["product_category"] for row in data["categoryBreakdown"]] == ["Sports", "Electronics"]
        assert data["topPerformer"]["product_category"] == "Sports"
        assert data["topPerformer"]["total_revenue"] == 1200.0
        assert data["topPerformer"]["transaction_count"] == 2

    def test_trends_empty(self, client, auth_headers):
        data = client.get("/api/analytics/trends", headers=auth_headers).json()["data"]
        assert data == {"topPerformer": None, "categoryBreakdown": [], "totalCategories": 0}

    def test_forecast(self, client, auth_headers, insert_metrics):
        insert_metrics([metric_row(days_ago(i), revenue=200.0) for i in range(1, 11)])
        data = client.get("/api/analytics/forecast", headers=auth_headers).json()["data"]
        assert len(data["historical"]) == 10
        assert len(data["forecast"]) == 30
        assert data["forecast"][0]["date"] == (date.today() + timedelta(days=1)).isoformat()
        assert all(190.0 <= point["forecasted_revenue"] <= 210.0 for point in data["forecast"])
