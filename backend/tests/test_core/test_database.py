"""
Unit tests for the transaction helper and connection retry
"""
from unittest.mock import MagicMock, patch

import psycopg2
import pytest

from marketplace.core.database import get_db_connection_dict_with_retry, transaction
from marketplace.core.errors import ConflictError, PersistenceError


class TestTransaction:

    @patch('marketplace.core.database.get_db_connection_dict_with_retry')
    def test_commits_on_success(self, mock_get_conn):
        # Arrange
        mock_conn = MagicMock()
        mock_get_conn.return_value = mock_conn

        # Act
        with transaction() as conn:
            conn.cursor().execute("SELECT 1")

        # Assert
        mock_conn.commit.assert_called_once()
        mock_conn.rollback.assert_not_called()
        mock_conn.close.assert_called_once()

    @patch('marketplace.core.database.get_db_connection_dict_with_retry')
    def test_driver_error_rolls_back_as_persistence_error(self, mock_get_conn):
        mock_conn = MagicMock()
        mock_get_conn.return_value = mock_conn

        with pytest.raises(PersistenceError):
            with transaction():
                raise psycopg2.OperationalError("server closed the connection")

        mock_conn.rollback.assert_called_once()
        mock_conn.commit.assert_not_called()
        mock_conn.close.assert_called_once()

    @patch('marketplace.core.database.get_db_connection_dict_with_retry')
    def test_core_errors_pass_through_after_rollback(self, mock_get_conn):
        mock_conn = MagicMock()
        mock_get_conn.return_value = mock_conn

        with pytest.raises(ConflictError):
            with transaction():
                raise ConflictError("cart changed")

        mock_conn.rollback.assert_called_once()
        mock_conn.close.assert_called_once()

    @patch('marketplace.core.database.get_db_connection_dict_with_retry')
    def test_unavailable_database_is_persistence_error(self, mock_get_conn):
        mock_get_conn.side_effect = psycopg2.OperationalError("could not connect")

        with pytest.raises(PersistenceError):
            with transaction():
                pass


class TestConnectionRetry:

    @patch('marketplace.core.database.time.sleep')
    @patch('marketplace.core.database.get_db_connection_dict')
    def test_retries_operational_errors(self, mock_connect, mock_sleep):
        # Arrange: fail twice, then connect
        mock_conn = MagicMock()
        mock_connect.side_effect = [
            psycopg2.OperationalError("SSL connection has been closed unexpectedly"),
            psycopg2.OperationalError("timeout"),
            mock_conn,
        ]

        # Act
        conn = get_db_connection_dict_with_retry(max_retries=3, retry_delay=1.0)

        # Assert
        assert conn is mock_conn
        assert mock_connect.call_count == 3
        # Exponential backoff: 1s then 2s
        assert [c[0][0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    @patch('marketplace.core.database.time.sleep')
    @patch('marketplace.core.database.get_db_connection_dict')
    def test_gives_up_after_max_retries(self, mock_connect, mock_sleep):
        mock_connect.side_effect = psycopg2.OperationalError("down")

        with pytest.raises(psycopg2.OperationalError):
            get_db_connection_dict_with_retry(max_retries=2, retry_delay=0)

        assert mock_connect.call_count == 2
