import datetime

import pydantic
import pytest

from lunchvote.models import Dish, Menu, Restaurant
from lunchvote.schemas import MAX_INT, DishTo, MenuTo, VoteTo, menu_from_to


def dishes(*names: str) -> list[Dish]:
    return [Dish(id=None, name=name, price=100) for name in names]


def make_menu() -> Menu:
    return Menu(
        id=7,
        date=datetime.date(2019, 6, 11),
        restaurant=Restaurant(id=2, name="Blinnaya"),
        dishes=dishes("Pancakes", "Kvass"),
    )


def test_append_dishes_keeps_existing() -> None:
    menu = make_menu()
    menu.append_dishes(dishes("Syrniki"))
    assert [d.name for d in menu.dishes] == ["Pancakes", "Kvass", "Syrniki"]


def test_replace_dishes_discards_existing() -> None:
    menu = make_menu()
    menu.replace_dishes(dishes("Syrniki"))
    assert [d.name for d in menu.dishes] == ["Syrniki"]


def test_dishes_are_stamped_with_menu_id() -> None:
    menu = make_menu()
    menu.append_dishes(dishes("Syrniki"))
    assert {d.menu_id for d in menu.dishes} == {7}


def test_clone_metadata_copies_id_and_date_only() -> None:
    menu = make_menu()
    clone = menu.clone_metadata()
    assert (clone.id, clone.date) == (menu.id, menu.date)
    assert clone.restaurant is None
    assert clone.dishes == []
    assert menu.dishes


def test_sorted_dishes_by_name() -> None:
    menu = make_menu()
    assert [d.name for d in menu.sorted_dishes()] == ["Kvass", "Pancakes"]
    assert [d.name for d in menu.dishes] == ["Pancakes", "Kvass"]


def test_to_dict() -> None:
    menu = make_menu()
    assert menu.to_dict() == {
        "id": 7,
        "date": "2019-06-11",
        "restaurant_id": 2,
        "dishes": [
            {"id": None, "name": "Pancakes", "price": 100},
            {"id": None, "name": "Kvass", "price": 100},
        ],
    }


def test_menu_from_to_builds_new_dishes() -> None:
    restaurant = Restaurant(id=1, name="Pelmeni House")
    menu_to = MenuTo(
        date=datetime.date(2019, 6, 12),
        dishes=[DishTo(id=3, name="Pelmeni", price=350)],
    )
    menu = menu_from_to(menu_to, restaurant)
    assert menu.id is None
    assert menu.restaurant == restaurant
    assert [(d.id, d.name, d.price) for d in menu.dishes] == [(None, "Pelmeni", 350)]


def test_menu_from_to_without_date() -> None:
    with pytest.raises(ValueError):
        menu_from_to(MenuTo(date=None))


def test_dish_price_fits_storage() -> None:
    assert DishTo(name="Caviar", price=MAX_INT).price == MAX_INT
    with pytest.raises(pydantic.ValidationError):
        DishTo(name="Caviar", price=MAX_INT + 1)


@pytest.mark.parametrize(
    "build",
    (
        lambda: DishTo(id=MAX_INT + 1, name="Tea"),
        lambda: MenuTo(id=MAX_INT + 1),
        lambda: VoteTo(user="alice", restaurant_id=MAX_INT + 1),
    ),
)
def test_ids_fit_storage(build) -> None:
    with pytest.raises(pydantic.ValidationError):
        build()
