import logging
import sqlite3
from contextlib import contextmanager

from config import settings
from database_schemas import TABLE_SCHEMAS, INDEX_SCHEMAS, TRIGGER_SCHEMAS
from errors import ConstraintViolation

logger = logging.getLogger(__name__)


def connect():
    conn = sqlite3.connect(settings.db_name, timeout=settings.db_busy_timeout_s)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_db(immediate: bool = False):
    """Yield a connection; uncommitted work is rolled back on exit.

    With ``immediate`` the write lock is taken before the first read, so a
    read-then-write sequence cannot interleave with another writer.
    """
    conn = connect()
    try:
        if immediate:
            conn.execute("BEGIN IMMEDIATE")
        yield conn
    except sqlite3.IntegrityError as e:
        conn.rollback()
        logger.warning("Constraint violation: %s", e)
        raise ConstraintViolation(str(e)) from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db():
    with get_db() as conn:
        cursor = conn.cursor()
        for schema in TABLE_SCHEMAS:
            cursor.execute(schema)
        for schema in INDEX_SCHEMAS:
            cursor.execute(schema)
        for schema in TRIGGER_SCHEMAS:
            cursor.execute(schema)
        conn.commit()
    logger.info("Database initialised at %s", settings.db_name)


if __name__ == "__main__":
    init_db()
