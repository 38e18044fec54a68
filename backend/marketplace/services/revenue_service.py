"""
Revenue Service
Read-only rollup over settled orders and their frozen line items

All money figures come from the line items as written at settlement, so
later commission-rate or price changes never move historical revenue.
"""
import logging
from collections import defaultdict
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field

from marketplace.core.config import settings
from marketplace.core.database import transaction
from marketplace.core.errors import ValidationError
from marketplace.domain.order import Order, OrderLineItem
from marketplace.repositories.order_repository import OrderRepository
from marketplace.repositories.supplier_repository import SupplierRepository
from marketplace.services.pricing_service import to_money

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class SupplierRevenue(BaseModel):
    supplier_id: str
    business_name: Optional[str] = None
    gross_revenue: Decimal = ZERO
    payout: Decimal = ZERO
    order_count: int = 0


class DailyRevenue(BaseModel):
    date: date
    amount: Decimal = ZERO


class RevenueReport(BaseModel):
    """
    Revenue report for [start, end)

    Fields:
        gross_revenue: Sum of line subtotals
        total_commission: Sum of per-line platform commission
        total_supplier_payouts: Sum of per-line supplier payout
        total_orders: Orders created in the window
        average_order_value: Mean order total
        orders_by_status: Order count per status
        top_suppliers: Suppliers ranked by payout (ties by supplier id)
        daily_revenue: Order totals per calendar day, zero-filled
    """

    start: datetime
    end: datetime
    gross_revenue: Decimal = ZERO
    total_commission: Decimal = ZERO
    total_supplier_payouts: Decimal = ZERO
    total_orders: int = 0
    average_order_value: Decimal = ZERO
    orders_by_status: Dict[str, int] = Field(default_factory=dict)
    top_suppliers: List[SupplierRevenue] = Field(default_factory=list)
    daily_revenue: List[DailyRevenue] = Field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary with Decimal to float conversion"""
        data = self.model_dump(mode="json")
        for field in ['gross_revenue', 'total_commission', 'total_supplier_payouts', 'average_order_value']:
            data[field] = float(getattr(self, field))
        for entry, raw in zip(data['top_suppliers'], self.top_suppliers):
            entry['gross_revenue'] = float(raw.gross_revenue)
            entry['payout'] = float(raw.payout)
        for entry, raw in zip(data['daily_revenue'], self.daily_revenue):
            entry['amount'] = float(raw.amount)
        return data


def _as_utc(value: datetime) -> datetime:
    """Naive timestamps from the store are UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def default_window(now: Optional[datetime] = None, days: Optional[int] = None) -> Tuple[datetime, datetime]:
    """Trailing window of `days` calendar days ending now, today included"""
    now = _as_utc(now or datetime.now(timezone.utc))
    days = days or settings.REVENUE_WINDOW_DAYS
    first_day = (now - timedelta(days=days - 1)).date()
    return datetime.combine(first_day, time.min, tzinfo=timezone.utc), now


def _days_between(start: datetime, end: datetime) -> List[date]:
    last_day = (end - timedelta(microseconds=1)).date()
    days = []
    day = start.date()
    while day <= last_day:
        days.append(day)
        day += timedelta(days=1)
    return days


def aggregate_revenue(
    orders: Iterable[Order],
    items: Iterable[OrderLineItem],
    start: datetime,
    end: datetime,
    top_n: Optional[int] = None,
) -> RevenueReport:
    """
    Aggregate revenue over orders created in [start, end)

    Pure function: takes whatever orders and line items are visible and
    sums them. Items belonging to orders outside the window are ignored.
    """
    start, end = _as_utc(start), _as_utc(end)
    top_n = settings.TOP_SUPPLIERS_LIMIT if top_n is None else top_n

    in_window = [
        order for order in orders
        if order.created_at is not None and start <= _as_utc(order.created_at) < end
    ]
    order_ids = {order.id for order in in_window}

    report = RevenueReport(start=start, end=end, total_orders=len(in_window))

    suppliers: Dict[str, SupplierRevenue] = {}
    supplier_orders: Dict[str, set] = defaultdict(set)
    for item in items:
        if item.order_id not in order_ids:
            continue
        report.gross_revenue += item.subtotal
        report.total_commission += item.platform_commission
        report.total_supplier_payouts += item.supplier_amount

        entry = suppliers.setdefault(item.supplier_id, SupplierRevenue(supplier_id=item.supplier_id))
        entry.gross_revenue += item.subtotal
        entry.payout += item.supplier_amount
        supplier_orders[item.supplier_id].add(item.order_id)

    for supplier_id, entry in suppliers.items():
        entry.order_count = len(supplier_orders[supplier_id])

    ranked = sorted(suppliers.values(), key=lambda s: (-s.payout, s.supplier_id))
    report.top_suppliers = ranked[:top_n]

    by_status: Dict[str, int] = defaultdict(int)
    by_day: Dict[date, Decimal] = defaultdict(lambda: ZERO)
    order_total = ZERO
    for order in in_window:
        by_status[order.status.value] += 1
        by_day[_as_utc(order.created_at).date()] += order.total
        order_total += order.total

    report.orders_by_status = dict(by_status)
    report.daily_revenue = [DailyRevenue(date=day, amount=by_day[day]) for day in _days_between(start, end)]
    if in_window:
        report.average_order_value = to_money(order_total / len(in_window))

    return report


class RevenueService:
    """Loads the window from the store and aggregates it"""

    def __init__(
        self,
        order_repo: Optional[OrderRepository] = None,
        supplier_repo: Optional[SupplierRepository] = None,
        transaction_factory=None,
    ):
        self.order_repo = order_repo or OrderRepository()
        self.supplier_repo = supplier_repo or SupplierRepository()
        self.transaction = transaction_factory or transaction

    def aggregate_revenue(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> RevenueReport:
        """
        Revenue report for [start, end); defaults to the trailing window

        Raises:
            ValidationError: start is not before end
        """
        default_start, default_end = default_window(now)
        start = _as_utc(start) if start else default_start
        end = _as_utc(end) if end else default_end
        if start >= end:
            raise ValidationError("start_date must be before end_date", field="start_date")

        with self.transaction() as conn:
            orders, items = self.order_repo.find_in_range(conn, start, end)
            report = aggregate_revenue(orders, items, start, end)
            names = self.supplier_repo.find_business_names(
                conn, [entry.supplier_id for entry in report.top_suppliers]
            )

        for entry in report.top_suppliers:
            entry.business_name = names.get(entry.supplier_id)

        logger.info(
            f"Revenue {start:%Y-%m-%d}..{end:%Y-%m-%d}: {report.total_orders} orders, "
            f"gross={report.gross_revenue} commission={report.total_commission}"
        )
        return report
