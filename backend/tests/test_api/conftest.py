"""
Fixtures for API tests

The app is exercised through FastAPI's TestClient with the caller and
every service provider overridden to use the in-memory store.
"""
import pytest
from fastapi.testclient import TestClient

from marketplace.api import orders, products, reports, suppliers
from marketplace.core.auth import Caller, get_current_caller
from marketplace.domain.product import BuyerClass
from marketplace.main import app


@pytest.fixture
def caller():
    """Mutable holder for the current caller; tests swap buyer_class/id"""
    return Caller(id="buyer-1", email="buyer@example.com", buyer_class=BuyerClass.RETAIL)


@pytest.fixture
def client(caller, settlement_service, lifecycle_service, pricing_service, supplier_service, revenue_service):
    app.dependency_overrides[get_current_caller] = lambda: caller
    app.dependency_overrides[orders.get_settlement_service] = lambda: settlement_service
    app.dependency_overrides[orders.get_lifecycle_service] = lambda: lifecycle_service
    app.dependency_overrides[products.get_pricing_service] = lambda: pricing_service
    app.dependency_overrides[products.get_supplier_service] = lambda: supplier_service
    app.dependency_overrides[suppliers.get_supplier_service] = lambda: supplier_service
    app.dependency_overrides[reports.get_revenue_service] = lambda: revenue_service

    yield TestClient(app)

    app.dependency_overrides.clear()
