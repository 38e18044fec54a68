"""
Reports API Endpoints
Platform revenue, commission and supplier payouts for operators
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from marketplace.core.auth import Caller, require_operator
from marketplace.services.revenue_service import RevenueService

router = APIRouter()


def get_revenue_service() -> RevenueService:
    return RevenueService()


@router.get("/revenue")
def get_revenue(
    start_date: Optional[datetime] = Query(None, description="Window start (ISO format), default: 7 days ago"),
    end_date: Optional[datetime] = Query(None, description="Window end, exclusive (ISO format), default: now"),
    operator: Caller = Depends(require_operator),
    service: RevenueService = Depends(get_revenue_service),
):
    """
    Revenue report

    Returns:
    - Gross revenue, platform commission, supplier payouts
    - Orders by status and average order value
    - Top suppliers by payout
    - Revenue per day
    """
    report = service.aggregate_revenue(start=start_date, end=end_date)
    return {"status": "success", "data": report.to_dict()}
