"""
Unit tests for revenue aggregation
"""
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from marketplace.core.errors import ValidationError
from marketplace.domain.order import OrderStatus
from marketplace.services.revenue_service import aggregate_revenue, default_window


START = datetime(2025, 3, 8, tzinfo=timezone.utc)
END = datetime(2025, 3, 15, tzinfo=timezone.utc)
IN_WINDOW = datetime(2025, 3, 10, 9, 30, tzinfo=timezone.utc)


def report_for(store, top_n=5):
    return aggregate_revenue(list(store.orders.values()), store.items, START, END, top_n=top_n)


class TestAggregateRevenue:

    def test_totals_over_three_items(self, store):
        # Arrange: 100/10, 50/5, 25/2.50
        store.add_order(lines=[("sup-1", "100.00", "10.00")], created_at=IN_WINDOW)
        store.add_order(lines=[("sup-2", "50.00", "5.00"), ("sup-1", "25.00", "2.50")], created_at=IN_WINDOW)

        # Act
        report = report_for(store)

        # Assert
        assert report.gross_revenue == Decimal("175.00")
        assert report.total_commission == Decimal("17.50")
        assert report.total_supplier_payouts == Decimal("157.50")
        assert report.total_commission + report.total_supplier_payouts == report.gross_revenue
        assert report.total_orders == 2

    def test_orders_outside_window_are_ignored(self, store):
        store.add_order(lines=[("sup-1", "100.00", "10.00")], created_at=IN_WINDOW)
        store.add_order(lines=[("sup-1", "999.00", "99.90")], created_at=START - timedelta(seconds=1))
        # End is exclusive
        store.add_order(lines=[("sup-1", "999.00", "99.90")], created_at=END)

        report = report_for(store)

        assert report.total_orders == 1
        assert report.gross_revenue == Decimal("100.00")

    def test_start_is_inclusive(self, store):
        store.add_order(lines=[("sup-1", "10.00", "1.00")], created_at=START)

        assert report_for(store).total_orders == 1

    def test_empty_window(self, store):
        report = report_for(store)

        assert report.gross_revenue == Decimal("0")
        assert report.total_orders == 0
        assert report.average_order_value == Decimal("0")
        assert report.top_suppliers == []
        assert len(report.daily_revenue) == 7

    def test_top_suppliers_ranked_by_payout(self, store):
        store.add_order(lines=[("sup-a", "100.00", "10.00")], created_at=IN_WINDOW)
        store.add_order(lines=[("sup-b", "300.00", "30.00")], created_at=IN_WINDOW)
        store.add_order(lines=[("sup-c", "200.00", "20.00")], created_at=IN_WINDOW)

        report = report_for(store)

        assert [s.supplier_id for s in report.top_suppliers] == ["sup-b", "sup-c", "sup-a"]
        assert report.top_suppliers[0].payout == Decimal("270.00")
        assert report.top_suppliers[0].gross_revenue == Decimal("300.00")

    def test_ties_break_by_supplier_id(self, store):
        store.add_order(lines=[("sup-z", "100.00", "10.00")], created_at=IN_WINDOW)
        store.add_order(lines=[("sup-m", "100.00", "10.00")], created_at=IN_WINDOW)

        report = report_for(store)

        assert [s.supplier_id for s in report.top_suppliers] == ["sup-m", "sup-z"]

    def test_top_n_limits_ranking(self, store):
        for index in range(7):
            store.add_order(lines=[(f"sup-{index}", "10.00", "1.00")], created_at=IN_WINDOW)

        report = report_for(store, top_n=5)

        assert len(report.top_suppliers) == 5

    def test_supplier_order_count(self, store):
        store.add_order(lines=[("sup-1", "10.00", "1.00"), ("sup-1", "20.00", "2.00")], created_at=IN_WINDOW)
        store.add_order(lines=[("sup-1", "30.00", "3.00")], created_at=IN_WINDOW)

        report = report_for(store)

        assert report.top_suppliers[0].order_count == 2

    def test_status_breakdown_and_average(self, store):
        store.add_order(lines=[("sup-1", "100.00", "10.00")], created_at=IN_WINDOW)
        store.add_order(lines=[("sup-1", "50.00", "5.00")], status=OrderStatus.DELIVERED, created_at=IN_WINDOW)

        report = report_for(store)

        assert report.orders_by_status == {"pending": 1, "delivered": 1}
        assert report.average_order_value == Decimal("75.00")

    def test_daily_series_is_zero_filled(self, store):
        store.add_order(lines=[("sup-1", "100.00", "10.00")], created_at=IN_WINDOW)

        report = report_for(store)

        days = {entry.date: entry.amount for entry in report.daily_revenue}
        assert list(days) == [date(2025, 3, day) for day in range(8, 15)]
        assert days[date(2025, 3, 10)] == Decimal("100.00")
        assert days[date(2025, 3, 11)] == Decimal("0")

    def test_to_dict_uses_floats(self, store):
        store.add_order(lines=[("sup-1", "100.00", "10.00")], created_at=IN_WINDOW)

        data = report_for(store).to_dict()

        assert data["gross_revenue"] == 100.0
        assert data["top_suppliers"][0]["payout"] == 90.0
        assert data["daily_revenue"][2]["amount"] == 100.0


class TestDefaultWindow:

    def test_seven_days_including_today(self):
        now = datetime(2025, 3, 14, 15, 45, tzinfo=timezone.utc)

        start, end = default_window(now, days=7)

        assert start == datetime(2025, 3, 8, tzinfo=timezone.utc)
        assert end == now


class TestRevenueService:

    def test_defaults_to_trailing_window(self, store, revenue_service):
        # FIXED_NOW in conftest is 2025-03-14 12:00
        store.add_order(lines=[("sup-1", "40.00", "4.00")])

        report = revenue_service.aggregate_revenue(now=datetime(2025, 3, 14, 18, 0, tzinfo=timezone.utc))

        assert report.total_orders == 1
        assert report.gross_revenue == Decimal("40.00")

    def test_top_suppliers_carry_business_name(self, store, revenue_service):
        store.add_supplier("sup-1", business_name="Acme Coffee")
        store.add_order(lines=[("sup-1", "40.00", "4.00"), ("sup-gone", "10.00", "1.00")], created_at=IN_WINDOW)

        report = revenue_service.aggregate_revenue(start=START, end=END)

        names = {entry.supplier_id: entry.business_name for entry in report.top_suppliers}
        assert names == {"sup-1": "Acme Coffee", "sup-gone": None}
        assert report.to_dict()["top_suppliers"][0]["business_name"] == "Acme Coffee"

    def test_explicit_window(self, store, revenue_service):
        store.add_order(lines=[("sup-1", "40.00", "4.00")], created_at=IN_WINDOW)

        report = revenue_service.aggregate_revenue(start=START, end=END)

        assert report.total_commission == Decimal("4.00")

    def test_start_after_end_is_rejected(self, revenue_service):
        with pytest.raises(ValidationError):
            revenue_service.aggregate_revenue(start=END, end=START)

    def test_naive_datetimes_are_treated_as_utc(self, store, revenue_service):
        store.add_order(lines=[("sup-1", "40.00", "4.00")], created_at=IN_WINDOW)

        report = revenue_service.aggregate_revenue(start=datetime(2025, 3, 8), end=datetime(2025, 3, 15))

        assert report.total_orders == 1
