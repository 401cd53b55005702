"""
Pytest configuration: every test gets its own SQLite database file and a
freshly built app.
"""

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from dashboard.config import Settings
from dashboard.main import create_app
from dashboard.models import dashboard_metrics

TEST_EMAIL = "analyst@acme.io"
TEST_PASSWORD = "s3cret-pass"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'dashboard_test.db'}",
        jwt_secret_key="test-signing-key",
        seed_on_startup=False,
        password_hash_rounds=4,
    )


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_token(client):
    client.post("/api/register", json={"email": TEST_EMAIL, "password": TEST_PASSWORD})
    response = client.post("/api/login", json={"email": TEST_EMAIL, "password": TEST_PASSWORD})
    return response.json()["token"]


@pytest.fixture
def auth_headers(auth_token):
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
def insert_metrics(client):
    """Insert rows straight into dashboard_metrics through the sync engine."""

    def _insert(rows):
        with client.app.state.engine.begin() as conn:
            conn.execute(dashboard_metrics.insert(), rows)
        return rows

    return _insert


def metric_row(day, revenue=100.0, cost=40.0, units=5, category="Electronics", region="North"):
    return {
        "date": day,
        "revenue": revenue,
        "units_sold": units,
        "cost_of_goods": cost,
        "profit": round(revenue - cost, 2),
        "product_category": category,
        "region": region,
    }


def days_ago(n):
    return date.today() - timedelta(days=n)
