import datetime
from typing import Any, Iterable, Self


class Restaurant:
    def __init__(self, *, id: int | None, name: str) -> None:
        self.id = id
        self.name = name

    def __repr__(self) -> str:
        return f"<Restaurant(id={self.id}, name={self.name})>"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Restaurant):
            return NotImplemented
        return (self.id, self.name) == (other.id, other.name)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name}


class Dish:
    def __init__(
        self,
        *,
        id: int | None,
        name: str,
        price: int,
        menu_id: int | None = None,
    ) -> None:
        self.id = id
        self.name = name
        self.price = price
        self.menu_id = menu_id

    def __repr__(self) -> str:
        return f"<Dish(id={self.id}, name={self.name}, price={self.price})>"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Dish):
            return NotImplemented
        return (self.id, self.name, self.price) == (other.id, other.name, other.price)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "price": self.price}


class Menu:
    """A restaurant's dishes for one day.

    The menu owns its dishes: each appended dish is stamped with the menu id,
    and the repository deletes them together with the menu.
    """

    def __init__(
        self,
        *,
        id: int | None,
        date: datetime.date,
        restaurant: Restaurant | None = None,
        dishes: Iterable[Dish] = (),
    ) -> None:
        self.id = id
        self.date = date
        self.restaurant = restaurant
        self.dishes: list[Dish] = []
        self.append_dishes(dishes)

    def __repr__(self) -> str:
        return f"<Menu(id={self.id}, date={self.date})>"

    @property
    def restaurant_id(self) -> int | None:
        return None if self.restaurant is None else self.restaurant.id

    def clone_metadata(self) -> Self:
        """Copy of id and date only. Restaurant and dishes are NOT copied."""
        return type(self)(id=self.id, date=self.date)

    def append_dishes(self, dishes: Iterable[Dish]) -> None:
        for dish in dishes:
            dish.menu_id = self.id
            self.dishes.append(dish)

    def replace_dishes(self, dishes: Iterable[Dish]) -> None:
        self.dishes = []
        self.append_dishes(dishes)

    def sorted_dishes(self) -> list[Dish]:
        return sorted(self.dishes, key=lambda d: d.name)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "restaurant_id": self.restaurant_id,
            "dishes": [d.to_dict() for d in self.dishes],
        }


class Vote:
    def __init__(
        self,
        *,
        id: int | None,
        user: str,
        restaurant_id: int,
        date: datetime.date,
    ) -> None:
        self.id = id
        self.user = user
        self.restaurant_id = restaurant_id
        self.date = date

    def __repr__(self) -> str:
        return f"<Vote(user={self.user}, restaurant_id={self.restaurant_id}, date={self.date})>"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user": self.user,
            "restaurant_id": self.restaurant_id,
            "date": self.date.isoformat(),
        }
