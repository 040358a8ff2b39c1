"""Transfer objects for request bodies."""

import datetime

from pydantic import BaseModel, Field

from lunchvote.models import Dish, Menu, Restaurant


# Largest value SQLite stores in an INTEGER column.
MAX_INT = 2**63 - 1


class DishTo(BaseModel):
    id: int | None = Field(default=None, le=MAX_INT)
    name: str
    price: int = Field(default=0, ge=0, le=MAX_INT)


class MenuTo(BaseModel):
    id: int | None = Field(default=None, le=MAX_INT)
    date: datetime.date | None = None
    dishes: list[DishTo] = Field(default_factory=list)


class RestaurantTo(BaseModel):
    id: int | None = Field(default=None, le=MAX_INT)
    name: str | None = None


class VoteTo(BaseModel):
    user: str | None = None
    restaurant_id: int = Field(le=MAX_INT)


def menu_from_to(menu_to: MenuTo, restaurant: Restaurant | None = None) -> Menu:
    """New `Menu` from a transfer object.

    Dishes are always built fresh: a dish belongs to one menu only, so ids
    sent by the client are not reused.
    """
    if menu_to.date is None:
        raise ValueError("menu_to has no date")
    return Menu(
        id=menu_to.id,
        date=menu_to.date,
        restaurant=restaurant,
        dishes=[Dish(id=None, name=d.name, price=d.price) for d in menu_to.dishes],
    )
