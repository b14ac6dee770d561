import os

from savekeeper import settings
from savekeeper.database import sql
from savekeeper.util.log import logger

DB_PATH = settings.DB_PATH
DATABASE = {
    "games": [
        {
            "name": "id",
            "type": "INTEGER",
            "indexed": True
        },
        {
            "name": "shop",
            "type": "TEXT"
        },
        {
            "name": "object_id",
            "type": "TEXT"
        },
        {
            "name": "title",
            "type": "TEXT"
        },
        {
            "name": "wine_prefix_path",
            "type": "TEXT"
        },
        {
            "name": "installed_at",
            "type": "INTEGER"
        },
    ],
}


def get_schema(tablename):
    """
    Fields:
        - position
        - name
        - type
        - not null
        - default
        - indexed
    """
    tables = []
    query = "pragma table_info('%s')" % tablename
    with sql.db_cursor(DB_PATH) as cursor:
        for row in cursor.execute(query).fetchall():
            field = {
                "name": row[1],
                "type": row[2],
                "not_null": row[3],
                "default": row[4],
                "indexed": row[5],
            }
            tables.append(field)
    return tables


def field_to_string(name="", type="", indexed=False, unique=False):  # pylint: disable=redefined-builtin
    """Converts a python based table definition to it's SQL statement"""
    field_query = "%s %s" % (name, type)
    if indexed:
        field_query += " PRIMARY KEY"
    if unique:
        field_query += " UNIQUE"
    return field_query


def create_table(name, schema):
    """Creates a new table in the database"""
    fields = ", ".join([field_to_string(**f) for f in schema])
    query = "CREATE TABLE IF NOT EXISTS %s (%s)" % (name, fields)
    logger.debug("[GamesQuery] %s", query)
    with sql.db_cursor(DB_PATH) as cursor:
        cursor.execute(query)


def migrate(table, schema):
    """Compare a database table with the reference model and add missing columns

    Returns:
        list: The list of column names that have been added
    """
    existing_schema = get_schema(table)
    migrated_fields = []
    if existing_schema:
        columns = [col["name"] for col in existing_schema]
        for field in schema:
            if field["name"] not in columns:
                logger.info("Migrating %s field %s", table, field["name"])
                migrated_fields.append(field["name"])
                sql.add_field(DB_PATH, table, field)
    else:
        create_table(table, schema)
    return migrated_fields


def syncdb():
    """Update the database to the current version"""
    os.makedirs(os.path.dirname(DB_PATH) or ".", exist_ok=True)
    for table in DATABASE:
        migrate(table, DATABASE[table])
