"""PostgreSQL key-value store implementation for local state."""
import logging
from typing import Optional
import psycopg2
from github_browser.domain.errors import StorageError
from github_browser.domain.storage_interface import IKeyValueStore


logger = logging.getLogger(__name__)


class PostgresKeyValueStore(IKeyValueStore):
    """PostgreSQL implementation of the key-value store.

    Rows are scoped by ``service`` so several applications can share one table,
    the same way keychain items are scoped by service name.
    """

    def __init__(self, connection_string: str, service: str = "github_browser", connection=None):
        """Initialize PostgreSQL connection.

        Args:
            connection_string: PostgreSQL connection string
            service: Namespace for all keys written by this store
            connection: Existing DB-API connection to use instead of connecting
        """
        self._service = service
        try:
            self._conn = connection or psycopg2.connect(connection_string)
        except psycopg2.Error as e:
            logger.error(f"Could not connect to PostgreSQL: {e}")
            raise StorageError(f"Could not connect to PostgreSQL: {e}") from e
        self._conn.autocommit = False
        logger.info("Connected to PostgreSQL database")

    def save(self, key: str, value: str) -> bool:
        """Save or replace a value using an UPSERT."""
        cursor = self._conn.cursor()

        try:
            cursor.execute(
                """
                INSERT INTO key_value_store (service, key, value, updated_at)
                VALUES (%s, %s, %s, CURRENT_TIMESTAMP)
                ON CONFLICT (service, key)
                DO UPDATE SET
                    value = EXCLUDED.value,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (self._service, key, value)
            )
            self._conn.commit()
            return True

        except psycopg2.Error as e:
            self._conn.rollback()
            logger.error(f"Error saving key {key}: {e}")
            return False
        finally:
            cursor.close()

    def load(self, key: str) -> Optional[str]:
        cursor = self._conn.cursor()
        try:
            cursor.execute(
                "SELECT value FROM key_value_store WHERE service = %s AND key = %s",
                (self._service, key)
            )
            row = cursor.fetchone()
            return row[0] if row else None
        except psycopg2.Error as e:
            self._conn.rollback()
            logger.error(f"Error loading key {key}: {e}")
            raise StorageError(f"Error loading key {key}: {e}") from e
        finally:
            cursor.close()

    def delete(self, key: str) -> bool:
        return self._delete(
            "DELETE FROM key_value_store WHERE service = %s AND key = %s",
            (self._service, key)
        )

    def clear_all(self) -> bool:
        return self._delete(
            "DELETE FROM key_value_store WHERE service = %s",
            (self._service,)
        )

    def _delete(self, query: str, params: tuple) -> bool:
        cursor = self._conn.cursor()
        try:
            cursor.execute(query, params)
            deleted = cursor.rowcount > 0
            self._conn.commit()
            return deleted
        except psycopg2.Error as e:
            self._conn.rollback()
            logger.error(f"Error deleting from key_value_store: {e}")
            return False
        finally:
            cursor.close()

    def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            logger.info("Closed PostgreSQL connection")
