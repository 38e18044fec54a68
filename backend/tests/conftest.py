"""
Pytest fixtures and configuration for Marketplace Backend tests

This file provides shared fixtures that can be used across all test modules.
Services are wired to the in-memory repositories in fakes.py, so no test
here needs a database.
"""
import os
from datetime import datetime, timezone

import pytest

# Settings are read at import time; keep tests independent of any local .env
os.environ.setdefault("AUTH_SECRET", "test-secret")

from fakes import (
    FakeCartRepository,
    FakeOrderRepository,
    FakeProductRepository,
    FakeSupplierRepository,
    InMemoryStore,
    RecordingNotifier,
)
from marketplace.domain.order import Address
from marketplace.services.order_lifecycle_service import OrderLifecycleService
from marketplace.services.pricing_service import PricingService
from marketplace.services.revenue_service import RevenueService
from marketplace.services.settlement_service import SettlementService
from marketplace.services.supplier_trust_service import SupplierTrustService


FIXED_NOW = datetime(2025, 3, 14, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def store():
    """
    Provides an empty in-memory store

    Scope: function (fresh tables per test)
    """
    return InMemoryStore(clock=lambda: FIXED_NOW)


@pytest.fixture
def order_repo(store):
    return FakeOrderRepository(store)


@pytest.fixture
def settlement_service(store, order_repo):
    return SettlementService(
        cart_repo=FakeCartRepository(store),
        order_repo=order_repo,
        product_repo=FakeProductRepository(store),
        transaction_factory=store.transaction,
    )


@pytest.fixture
def lifecycle_service(store, order_repo):
    return OrderLifecycleService(order_repo=order_repo, transaction_factory=store.transaction)


@pytest.fixture
def pricing_service(store):
    return PricingService(product_repo=FakeProductRepository(store), transaction_factory=store.transaction)


@pytest.fixture
def revenue_service(store, order_repo):
    return RevenueService(
        order_repo=order_repo,
        supplier_repo=FakeSupplierRepository(store),
        transaction_factory=store.transaction,
    )


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def supplier_service(store, notifier):
    return SupplierTrustService(
        supplier_repo=FakeSupplierRepository(store),
        notifier=notifier,
        transaction_factory=store.transaction,
        required_documents=["business_registration", "identity", "bank_account"],
    )


@pytest.fixture
def address():
    """
    Provides a complete shipping address
    """
    return Address(
        street="742 Evergreen Terrace",
        city="Springfield",
        state="OR",
        postal_code="97403",
        country="US",
    )
