"""
Tests for filter handling and query parameterization.
"""

from datetime import date

import pytest

from dashboard.exceptions import ValidationError
from dashboard.query_builder import (
    ROW_LIMIT,
    FilterSpec,
    build_distinct_query,
    build_export_query,
    build_rows_query,
    build_summary_query,
    compile_query,
)

INJECTION = "Electronics'; DROP TABLE dashboard_metrics; --"


class TestFilterSpec:

    def test_clause_order_and_count(self):
        spec = FilterSpec(date(2024, 1, 1), date(2024, 1, 31), "Books", "West")
        clauses = [str(c) for c in spec.clauses()]
        assert len(clauses) == 4
        assert clauses[0].startswith("dashboard_metrics.date >=")
        assert clauses[1].startswith("dashboard_metrics.date <=")
        assert clauses[2].startswith("dashboard_metrics.product_category =")
        assert clauses[3].startswith("dashboard_metrics.region =")

    def test_optional_filters_skipped(self):
        assert FilterSpec().clauses() == []
        assert len(FilterSpec(category="", region=None).clauses()) == 0

    def test_rows_query_requires_date_range(self):
        with pytest.raises(ValidationError):
            build_rows_query(FilterSpec(start_date=date(2024, 1, 1)))


class TestParameterization:

    def test_rows_query_binds_every_value(self):
        spec = FilterSpec(date(2024, 1, 1), date(2024, 3, 31), INJECTION, "West")
        sql, params = compile_query(build_rows_query(spec))

        assert "DROP TABLE" not in sql
        assert "Electronics" not in sql
        assert "West" not in sql
        assert INJECTION in params.values()
        assert "West" in params.values()
        assert date(2024, 1, 1) in params.values()
        assert ROW_LIMIT in params.values()
        assert "ORDER BY dashboard_metrics.date ASC" in sql

    def test_export_query_has_no_limit(self):
        sql, params = compile_query(build_export_query(FilterSpec(region=INJECTION)))
        assert "LIMIT" not in sql
        assert "DROP TABLE" not in sql
        assert list(params.values()) == [INJECTION]

    def test_summary_query_without_filters(self):
        sql, params = compile_query(build_summary_query(FilterSpec()))
        assert "WHERE" not in sql
        assert params == {}
        for fragment in ("sum(dashboard_metrics.revenue)", "avg(dashboard_metrics.revenue)", "count(*)"):
            assert fragment in sql

    def test_summary_query_with_category(self):
        sql, params = compile_query(build_summary_query(FilterSpec(category=INJECTION)))
        assert "WHERE dashboard_metrics.product_category =" in sql
        assert list(params.values()) == [INJECTION]

    def test_distinct_query_whitelist(self):
        sql, _ = compile_query(build_distinct_query("region"))
        assert "DISTINCT" in sql
        assert "IS NOT NULL" in sql
        with pytest.raises(ValueError):
            build_distinct_query("password_hash")
