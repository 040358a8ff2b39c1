"""Storage for the lunch voting domain.

Repositories return `None` or `False` for missing rows and let driver
integrity errors propagate. Multi-statement writes (`MenusRepository.save`
and `MenusRepository.delete_by_id`) are expected to run inside a
transaction opened by the caller.

The schema declares no foreign keys: SQLite leaves them unenforced unless
every connection enables them, so dish and restaurant ownership is kept by
the explicit deletes and lookups here and in the services.
"""
import datetime
from typing import Any, Mapping, Sequence

from databases import Database

from lunchvote.models import Dish, Menu, Restaurant, Vote


type Row = Mapping[str, Any]


SELECT_MENUS = """
SELECT m.id AS menu_id, m.menu_date, m.restaurant_id,
       r.name AS restaurant_name,
       d.id AS dish_id, d.name AS dish_name, d.price AS dish_price
FROM menus m
JOIN restaurants r ON r.id = m.restaurant_id
LEFT JOIN dishes d ON d.menu_id = m.id
{where}
ORDER BY m.menu_date DESC, m.restaurant_id, m.id, d.id
"""


INSERT_MENU = "INSERT INTO menus (menu_date, restaurant_id) VALUES (:date, :restaurant_id)"


UPDATE_MENU = """
UPDATE menus SET menu_date = :date WHERE id = :id AND restaurant_id = :restaurant_id
"""


EXISTS_MENU = "SELECT id FROM menus WHERE id = :id AND restaurant_id = :restaurant_id"


DELETE_MENU = "DELETE FROM menus WHERE id = :id AND restaurant_id = :restaurant_id"


INSERT_DISH = "INSERT INTO dishes (name, price, menu_id) VALUES (:name, :price, :menu_id)"


DELETE_MENU_DISHES = "DELETE FROM dishes WHERE menu_id = :menu_id"


SELECT_DISH = "SELECT * FROM dishes WHERE id = :id"


INSERT_RESTAURANT = "INSERT INTO restaurants (name) VALUES (:name)"


GET_RESTAURANT = "SELECT * FROM restaurants WHERE id = :id"


LIST_RESTAURANTS = "SELECT * FROM restaurants ORDER BY name, id"


INSERT_VOTE = """
INSERT INTO votes (user_name, restaurant_id, vote_date)
VALUES (:user, :restaurant_id, :date)
"""


GET_VOTE = "SELECT * FROM votes WHERE user_name = :user AND vote_date = :date"


UPDATE_VOTE = """
UPDATE votes SET restaurant_id = :restaurant_id
WHERE user_name = :user AND vote_date = :date
"""


VOTE_RESULTS = """
SELECT r.id, r.name, COUNT(v.id) AS votes
FROM votes v
JOIN restaurants r ON r.id = v.restaurant_id
WHERE v.vote_date = :date
GROUP BY r.id, r.name
ORDER BY votes DESC, r.name
"""


def as_date(value: str | datetime.date) -> datetime.date:
    if isinstance(value, datetime.date):
        return value
    return datetime.date.fromisoformat(value)


def menus_from_rows(rows: Sequence[Row]) -> list[Menu]:
    """Fold joined menu/dish rows back into menus, keeping row order."""
    menus: dict[int, Menu] = {}
    for row in rows:
        menu = menus.get(row["menu_id"])
        if menu is None:
            restaurant = Restaurant(id=row["restaurant_id"], name=row["restaurant_name"])
            menu = Menu(
                id=row["menu_id"],
                date=as_date(row["menu_date"]),
                restaurant=restaurant,
            )
            menus[row["menu_id"]] = menu
        if row["dish_id"] is not None:
            menu.append_dishes(
                [Dish(id=row["dish_id"], name=row["dish_name"], price=row["dish_price"])]
            )
    return list(menus.values())


class MenusRepository:
    """Menus together with the dishes they own."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def _select(self, where: str = "", values: dict[str, Any] | None = None) -> list[Menu]:
        rows = await self.db.fetch_all(  # pyright: ignore[reportUnknownMemberType]
            SELECT_MENUS.format(where=where), values=values
        )
        return menus_from_rows(rows)  # pyright: ignore[reportArgumentType]

    async def find_by_id(self, id: int, restaurant_id: int) -> Menu | None:
        menus = await self._select(
            "WHERE m.id = :id AND m.restaurant_id = :restaurant_id",
            {"id": id, "restaurant_id": restaurant_id},
        )
        return menus[0] if menus else None

    async def find_by_restaurant_and_date(
        self, restaurant_id: int, date: datetime.date
    ) -> Menu | None:
        menus = await self._select(
            "WHERE m.restaurant_id = :restaurant_id AND m.menu_date = :date",
            {"restaurant_id": restaurant_id, "date": date.isoformat()},
        )
        return menus[0] if menus else None

    async def find_all(self) -> list[Menu]:
        return await self._select()

    async def find_by_date(self, date: datetime.date) -> list[Menu]:
        return await self._select("WHERE m.menu_date = :date", {"date": date.isoformat()})

    async def find_by_restaurant(self, restaurant_id: int) -> list[Menu]:
        return await self._select(
            "WHERE m.restaurant_id = :restaurant_id", {"restaurant_id": restaurant_id}
        )

    async def save(self, menu: Menu) -> Menu:
        """Insert a new menu or overwrite an existing one, dishes included.

        The dishes stored are exactly `menu.dishes`; any dish rows the menu
        owned before are removed.
        """
        if menu.restaurant_id is None:
            raise ValueError(f"{menu!r} has no restaurant")
        values = {"date": menu.date.isoformat(), "restaurant_id": menu.restaurant_id}
        if menu.id is None:
            menu.id = await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                INSERT_MENU, values=values
            )
        else:
            await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                UPDATE_MENU, values={**values, "id": menu.id}
            )
            await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                DELETE_MENU_DISHES, values={"menu_id": menu.id}
            )
        for dish in menu.dishes:
            dish.menu_id = menu.id
            dish.id = await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
                INSERT_DISH,
                values={"name": dish.name, "price": dish.price, "menu_id": menu.id},
            )
        return menu

    async def delete_by_id(self, id: int, restaurant_id: int) -> bool:
        """Delete the menu's dishes, then the menu. False if there was no menu."""
        found = await self.db.fetch_one(  # pyright: ignore[reportUnknownMemberType]
            EXISTS_MENU, values={"id": id, "restaurant_id": restaurant_id}
        )
        if found is None:
            return False
        await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
            DELETE_MENU_DISHES, values={"menu_id": id}
        )
        await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
            DELETE_MENU, values={"id": id, "restaurant_id": restaurant_id}
        )
        return True

    async def find_dish(self, id: int) -> Dish | None:
        row = await self.db.fetch_one(  # pyright: ignore[reportUnknownMemberType]
            SELECT_DISH, values={"id": id}
        )
        if row is None:
            return None
        return Dish(id=row["id"], name=row["name"], price=row["price"], menu_id=row["menu_id"])


class RestaurantsRepository:
    def __init__(self, db: Database) -> None:
        self.db = db

    async def save(self, restaurant: Restaurant) -> Restaurant:
        restaurant.id = await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
            INSERT_RESTAURANT, values={"name": restaurant.name}
        )
        return restaurant

    async def find_by_id(self, id: int) -> Restaurant | None:
        row = await self.db.fetch_one(  # pyright: ignore[reportUnknownMemberType]
            GET_RESTAURANT, values={"id": id}
        )
        if row is None:
            return None
        return Restaurant(id=row["id"], name=row["name"])

    async def find_all(self) -> list[Restaurant]:
        rows = await self.db.fetch_all(  # pyright: ignore[reportUnknownMemberType]
            LIST_RESTAURANTS
        )
        return [Restaurant(id=r["id"], name=r["name"]) for r in rows]


class VotesRepository:
    def __init__(self, db: Database) -> None:
        self.db = db

    async def insert(self, vote: Vote) -> Vote:
        vote.id = await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
            INSERT_VOTE,
            values={
                "user": vote.user,
                "restaurant_id": vote.restaurant_id,
                "date": vote.date.isoformat(),
            },
        )
        return vote

    async def find(self, user: str, date: datetime.date) -> Vote | None:
        row = await self.db.fetch_one(  # pyright: ignore[reportUnknownMemberType]
            GET_VOTE, values={"user": user, "date": date.isoformat()}
        )
        if row is None:
            return None
        return Vote(
            id=row["id"],
            user=row["user_name"],
            restaurant_id=row["restaurant_id"],
            date=as_date(row["vote_date"]),
        )

    async def change_restaurant(self, vote: Vote) -> None:
        await self.db.execute(  # pyright: ignore[reportUnknownMemberType]
            UPDATE_VOTE,
            values={
                "user": vote.user,
                "restaurant_id": vote.restaurant_id,
                "date": vote.date.isoformat(),
            },
        )

    async def results(self, date: datetime.date) -> list[tuple[Restaurant, int]]:
        rows = await self.db.fetch_all(  # pyright: ignore[reportUnknownMemberType]
            VOTE_RESULTS, values={"date": date.isoformat()}
        )
        return [(Restaurant(id=r["id"], name=r["name"]), r["votes"]) for r in rows]
