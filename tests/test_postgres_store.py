"""Tests for the PostgreSQL key-value store."""
from unittest.mock import MagicMock
import psycopg2
import pytest
from github_browser.infrastructure.postgres_store import PostgresKeyValueStore


@pytest.fixture
def connection():
    return MagicMock()


@pytest.fixture
def cursor(connection):
    return connection.cursor.return_value


@pytest.fixture
def kv(connection):
    return PostgresKeyValueStore("", service="tests", connection=connection)


def test_save_upserts_and_commits(kv, connection, cursor):
    assert kv.save("kUsernameKey", "octocat") is True

    query, params = cursor.execute.call_args[0]
    assert "ON CONFLICT (service, key)" in query
    assert params == ("tests", "kUsernameKey", "octocat")
    connection.commit.assert_called_once()
    cursor.close.assert_called_once()


def test_save_failure_rolls_back(kv, connection, cursor):
    """Test a failed write is rolled back and reported as not saved."""
    cursor.execute.side_effect = psycopg2.Error("disk full")

    assert kv.save("kUsernameKey", "octocat") is False
    connection.rollback.assert_called_once()
    connection.commit.assert_not_called()


def test_load(kv, cursor):
    cursor.fetchone.return_value = ("octocat",)

    assert kv.load("kUsernameKey") == "octocat"
    assert cursor.execute.call_args[0][1] == ("tests", "kUsernameKey")


def test_load_missing(kv, cursor):
    cursor.fetchone.return_value = None

    assert kv.load("kUsernameKey") is None


def test_delete_reports_rowcount(kv, cursor):
    cursor.rowcount = 1
    assert kv.delete("kUsernameKey") is True

    cursor.rowcount = 0
    assert kv.delete("kUsernameKey") is False


def test_clear_all_is_scoped_to_service(kv, cursor):
    cursor.rowcount = 3

    assert kv.clear_all() is True
    query, params = cursor.execute.call_args[0]
    assert "WHERE service = %s" in query
    assert params == ("tests",)


def test_close(kv, connection):
    kv.close()
    connection.close.assert_called_once()
