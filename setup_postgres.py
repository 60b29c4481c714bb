"""Database initialization script.

Creates the key-value table that holds stored credentials and recent searches.
"""
import sys
import psycopg2
import logging
from dotenv import load_dotenv
from github_browser.config import Settings

# Load environment variables from .env or env file
load_dotenv('.env') or load_dotenv('env')


logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def create_schema(conn) -> None:
    """Create database schema.

    Schema design considerations:
    - (service, key) is the natural composite key, mirroring keychain items
      that are identified by service name and account
    - updated_at tracks the last write of each key
    """
    cursor = conn.cursor()

    try:
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS key_value_store (
                id SERIAL PRIMARY KEY,
                service VARCHAR(255) NOT NULL,
                key VARCHAR(255) NOT NULL,
                value TEXT NOT NULL,
                created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                CONSTRAINT key_value_store_service_key_unique UNIQUE (service, key)
            )
        """)

        conn.commit()
        logger.info("Database schema created successfully")

    except Exception as e:
        conn.rollback()
        logger.error(f"Error creating schema: {e}")
        raise
    finally:
        cursor.close()


def main():
    """Initialize the database."""
    try:
        settings = Settings.from_env()
        logger.info("Connecting to database...")

        conn = psycopg2.connect(settings.connection_string)
        conn.autocommit = False

        create_schema(conn)

        conn.close()
        logger.info("Database initialization completed successfully")

    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
