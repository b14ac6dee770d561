"""SQLite helpers for the games database"""
import sqlite3
import threading
from contextlib import contextmanager

from savekeeper.exceptions import PersistenceError
from savekeeper.util.log import logger

# Prevent multiple access to the database (SQLite limitation)
DB_LOCK = threading.RLock()


@contextmanager
def db_cursor(db_path):
    """Yield a cursor on db_path; changes are committed if the block succeeds.

    Raises:
        PersistenceError: the database can't be opened or a query failed
    """
    with DB_LOCK:
        try:
            connection = sqlite3.connect(db_path)
        except sqlite3.Error as ex:
            raise PersistenceError("Unable to open database %s: %s" % (db_path, ex)) from ex
        try:
            yield connection.cursor()
            connection.commit()
        except sqlite3.Error as ex:
            connection.rollback()
            logger.error("Query on %s failed: %s", db_path, ex)
            raise PersistenceError("Database error in %s: %s" % (db_path, ex)) from ex
        finally:
            connection.close()


def db_insert(db_path, table, fields):
    """Insert a row and return its id"""
    columns = ", ".join(fields)
    placeholders = ", ".join("?" for _field in fields)
    with db_cursor(db_path) as cursor:
        cursor.execute(
            "INSERT INTO %s (%s) VALUES (%s)" % (table, columns, placeholders),
            tuple(fields.values()),
        )
        return cursor.lastrowid


def db_update(db_path, table, updated_fields, conditions):
    """Set the values of updated_fields on the rows matching every item of
    conditions. Returns the number of rows changed."""
    assignments = ", ".join("%s=?" % field for field in updated_fields)
    where = " AND ".join("%s=?" % field for field in conditions)
    with db_cursor(db_path) as cursor:
        cursor.execute(
            "UPDATE %s SET %s WHERE %s" % (table, assignments, where),
            tuple(updated_fields.values()) + tuple(conditions.values()),
        )
        return cursor.rowcount


def db_delete(db_path, table, conditions):
    """Delete the rows matching every item of conditions, return how many went"""
    where = " AND ".join("%s=?" % field for field in conditions)
    with db_cursor(db_path) as cursor:
        cursor.execute("DELETE FROM %s WHERE %s" % (table, where), tuple(conditions.values()))
        return cursor.rowcount


def db_query(db_path, query, params=()):
    """Run a select query and return its rows as dicts"""
    with db_cursor(db_path) as cursor:
        cursor.execute(query, params)
        column_names = [column[0] for column in cursor.description]
        return [dict(zip(column_names, row)) for row in cursor.fetchall()]


def add_field(db_path, tablename, field):
    query = "ALTER TABLE %s ADD COLUMN %s %s" % (tablename, field["name"], field["type"])
    with db_cursor(db_path) as cursor:
        cursor.execute(query)
