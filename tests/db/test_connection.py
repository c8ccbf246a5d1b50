"""Tests for database connection helpers."""

from unittest.mock import patch, MagicMock

import pytest

from pacer.db.connection import (
    DEFAULT_CONNECT_TIMEOUT,
    get_connect_timeout,
    get_db_connection,
    get_db_cursor,
    get_sqlalchemy_database_url,
)


class TestConnectTimeout:
    def test_default(self, monkeypatch):
        monkeypatch.delenv("PACER_DB_CONNECT_TIMEOUT", raising=False)
        assert get_connect_timeout() == DEFAULT_CONNECT_TIMEOUT

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("PACER_DB_CONNECT_TIMEOUT", "3")
        assert get_connect_timeout() == 3

    @pytest.mark.parametrize("raw", ["soon", "0", "-5"])
    def test_invalid(self, monkeypatch, raw):
        monkeypatch.setenv("PACER_DB_CONNECT_TIMEOUT", raw)
        with pytest.raises(ValueError, match="PACER_DB_CONNECT_TIMEOUT"):
            get_connect_timeout()


def test_sqlalchemy_url_uses_psycopg3(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://pacer@db:5432/pacer")
    assert get_sqlalchemy_database_url() == "postgresql+psycopg://pacer@db:5432/pacer"


class TestGetDbConnection:
    @patch("pacer.db.connection.psycopg.connect")
    def test_connection_is_closed(self, mock_connect, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://pacer@db/pacer")
        monkeypatch.setenv("PACER_DB_CONNECT_TIMEOUT", "4")
        mock_conn = MagicMock()
        mock_connect.return_value = mock_conn

        with get_db_connection() as conn:
            assert conn is mock_conn

        mock_connect.assert_called_once_with(
            "postgresql://pacer@db/pacer", connect_timeout=4
        )
        mock_conn.close.assert_called_once()

    @patch("pacer.db.connection.psycopg.connect")
    def test_cursor_commits(self, mock_connect):
        mock_conn = MagicMock()
        mock_connect.return_value = mock_conn

        with get_db_cursor() as cursor:
            cursor.execute("SELECT 1")

        mock_conn.commit.assert_called_once()
        mock_conn.rollback.assert_not_called()

    @patch("pacer.db.connection.psycopg.connect")
    def test_cursor_rolls_back_on_error(self, mock_connect):
        mock_conn = MagicMock()
        mock_connect.return_value = mock_conn

        with pytest.raises(RuntimeError):
            with get_db_cursor():
                raise RuntimeError("boom")

        mock_conn.rollback.assert_called_once()
        mock_conn.commit.assert_not_called()
        mock_conn.close.assert_called_once()
