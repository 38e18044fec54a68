"""
Unit tests for ProductRepository

These tests validate repository logic without requiring a database connection.
"""
from datetime import datetime
from decimal import Decimal
from unittest.mock import MagicMock

from marketplace.domain.product import Product, ProductPricingUpdate
from marketplace.repositories.product_repository import ProductRepository


def product_row(**overrides):
    row = {
        'id': 'p-1',
        'supplier_id': 'sup-1',
        'name': 'Espresso Beans 1kg',
        'b2c_price': Decimal('100.00'),
        'b2b_price': Decimal('80.00'),
        'currency': 'USD',
        'stock_quantity': 12,
        'is_active': True,
        'created_at': datetime.now(),
        'updated_at': None,
    }
    row.update(overrides)
    return row


def mock_connection():
    mock_conn = MagicMock()
    mock_cursor = MagicMock()
    mock_conn.cursor.return_value = mock_cursor
    return mock_conn, mock_cursor


class TestProductRepository:
    """Test ProductRepository methods"""

    def test_find_by_id_returns_product(self):
        """Test find_by_id maps b2c/b2b columns onto retail/wholesale"""
        # Arrange: Mock database connection
        mock_conn, mock_cursor = mock_connection()
        mock_cursor.fetchone.return_value = product_row()

        # Act: Call repository method
        repo = ProductRepository()
        product = repo.find_by_id(mock_conn, 'p-1')

        # Assert: Verify result
        assert isinstance(product, Product)
        assert product.retail_price == Decimal('100.00')
        assert product.wholesale_price == Decimal('80.00')
        assert product.stock_quantity == 12

        # Verify database was called correctly
        mock_cursor.execute.assert_called_once()
        mock_cursor.close.assert_called_once()
        # The caller owns the connection
        mock_conn.close.assert_not_called()

    def test_find_by_id_null_is_active_reads_as_active(self):
        mock_conn, mock_cursor = mock_connection()
        mock_cursor.fetchone.return_value = product_row(is_active=None)

        product = ProductRepository().find_by_id(mock_conn, 'p-1')

        assert product.is_active is True

    def test_find_by_id_returns_none_when_not_found(self):
        # Arrange
        mock_conn, mock_cursor = mock_connection()
        mock_cursor.fetchone.return_value = None

        # Act
        product = ProductRepository().find_by_id(mock_conn, 'missing')

        # Assert
        assert product is None

    def test_decrement_stock_checks_floor_in_sql(self):
        # Arrange
        mock_conn, mock_cursor = mock_connection()
        mock_cursor.fetchone.return_value = {'stock_quantity': 9}

        # Act
        taken = ProductRepository().decrement_stock(mock_conn, 'p-1', 3)

        # Assert
        assert taken is True
        sql, params = mock_cursor.execute.call_args[0]
        assert 'stock_quantity >= %s' in sql
        assert params == (3, 'p-1', 3)

    def test_decrement_stock_returns_false_when_insufficient(self):
        mock_conn, mock_cursor = mock_connection()
        mock_cursor.fetchone.return_value = None

        assert ProductRepository().decrement_stock(mock_conn, 'p-1', 50) is False
        mock_cursor.close.assert_called_once()

    def test_update_pricing_writes_both_prices(self):
        # Arrange
        mock_conn, mock_cursor = mock_connection()
        mock_cursor.fetchone.return_value = product_row(b2c_price=Decimal('120.00'), b2b_price=None)
        pricing = ProductPricingUpdate(retail_price=Decimal('120.00'))

        # Act
        product = ProductRepository().update_pricing(mock_conn, 'p-1', pricing)

        # Assert
        assert product.retail_price == Decimal('120.00')
        assert product.wholesale_price is None
        params = mock_cursor.execute.call_args[0][1]
        assert params == (Decimal('120.00'), None, 'p-1')
