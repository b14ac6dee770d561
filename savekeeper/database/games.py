"""Installed games, as far as backups are concerned: which Wine prefix they run in."""
import time

from savekeeper import settings
from savekeeper.database import sql

DB_PATH = settings.DB_PATH


def get_game(shop, object_id):
    """Return the game registered for a shop and ID, or an empty dict"""
    rows = sql.db_query(
        DB_PATH,
        "select * from games where shop=? and object_id=?",
        (shop, object_id),
    )
    if rows:
        return rows[0]
    return {}


def get_games(shop=None):
    if shop:
        return sql.db_query(DB_PATH, "select * from games where shop=? order by title", (shop,))
    return sql.db_query(DB_PATH, "select * from games order by title")


def add_game(shop, object_id, title=None, wine_prefix_path=None):
    """Add a game to the database."""
    return sql.db_insert(
        DB_PATH,
        "games",
        {
            "shop": shop,
            "object_id": object_id,
            "title": title or object_id,
            "wine_prefix_path": wine_prefix_path,
            "installed_at": int(time.time()),
        },
    )


def update_game(shop, object_id, **game_data):
    """Change the stored fields of a game, return False if it isn't registered"""
    return sql.db_update(DB_PATH, "games", game_data, {"shop": shop, "object_id": object_id}) > 0


def delete_game(shop, object_id):
    """Forget a game, return False if it wasn't registered"""
    return sql.db_delete(DB_PATH, "games", {"shop": shop, "object_id": object_id}) > 0
