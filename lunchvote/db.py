import logging
import sqlite3

from databases import Database


logger = logging.getLogger(__name__)


CREATE_RESTAURANTS_TABLE = """
CREATE TABLE IF NOT EXISTS restaurants (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name VARCHAR(256) NOT NULL,
    CONSTRAINT unique_restaurant_name UNIQUE (name)
)
"""


CREATE_MENUS_TABLE = """
CREATE TABLE IF NOT EXISTS menus (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    menu_date DATE NOT NULL,
    restaurant_id INTEGER NOT NULL,
    CONSTRAINT unique_menu UNIQUE (menu_date, restaurant_id)
)
"""


CREATE_DISHES_TABLE = """
CREATE TABLE IF NOT EXISTS dishes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name VARCHAR(256) NOT NULL,
    price INTEGER NOT NULL,
    menu_id INTEGER NOT NULL
)
"""


CREATE_VOTES_TABLE = """
CREATE TABLE IF NOT EXISTS votes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_name VARCHAR(256) NOT NULL,
    restaurant_id INTEGER NOT NULL,
    vote_date DATE NOT NULL,
    CONSTRAINT unique_vote UNIQUE (user_name, vote_date)
)
"""


CREATE_DISHES_MENU_INDEX = "CREATE INDEX IF NOT EXISTS dishes_menu_idx ON dishes (menu_id)"


SCHEMA = (
    CREATE_RESTAURANTS_TABLE,
    CREATE_MENUS_TABLE,
    CREATE_DISHES_TABLE,
    CREATE_VOTES_TABLE,
    CREATE_DISHES_MENU_INDEX,
)


async def create_db(db: Database) -> None:
    for statement in SCHEMA:
        await db.execute(query=statement)  # pyright: ignore[reportUnknownMemberType]
    logger.info("Schema ready on %s", db.url.database)


def is_unique_violation(exc: BaseException) -> bool:
    return isinstance(exc, sqlite3.IntegrityError) and "UNIQUE" in str(exc)
