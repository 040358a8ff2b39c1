import datetime
from pathlib import Path
from typing import AsyncIterator, Iterator, Sequence

from databases import Database
import pytest
import pytest_asyncio
from starlette.testclient import TestClient

from app.app import create_app
from app.config import Config
from lunchvote.db import create_db
from lunchvote.models import Menu, Restaurant
from lunchvote.schemas import DishTo, MenuTo, RestaurantTo
from lunchvote.services import MenuService, RestaurantService


RESTAURANT_NAMES = ("Pelmeni House", "Blinnaya", "Stolovaya No. 1")


# (restaurant index, date, dishes)
MENUS = (
    (0, datetime.date(2019, 6, 10), [("Borscht", 250), ("Cutlet", 300)]),
    (1, datetime.date(2019, 6, 10), [("Pancakes", 200), ("Kvass", 90)]),
    (1, datetime.date(2019, 6, 11), [("Syrniki", 220)]),
    (2, datetime.date(2019, 6, 11), [("Solyanka", 280), ("Compote", 60), ("Buckwheat", 120)]),
    (0, datetime.date(2019, 6, 12), [("Pelmeni", 350)]),
)


class FakeClock:
    def __init__(self, now: datetime.datetime) -> None:
        self.now = now

    def __call__(self) -> datetime.datetime:
        return self.now


class Seeded:
    def __init__(self, restaurants: list[Restaurant], menus: list[Menu]) -> None:
        self.restaurants = restaurants
        self.menus = menus


def db_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'lunchvote.db'}"


def menu_to(date: datetime.date | None, dishes: Sequence[tuple[str, int]] = ()) -> MenuTo:
    return MenuTo(date=date, dishes=[DishTo(name=n, price=p) for n, p in dishes])


@pytest_asyncio.fixture
async def db(tmp_path: Path) -> AsyncIterator[Database]:
    database = Database(db_url(tmp_path))
    await database.connect()
    await create_db(database)
    yield database
    await database.disconnect()


@pytest_asyncio.fixture
async def seeded(db: Database) -> Seeded:
    restaurant_service = RestaurantService(db)
    menu_service = MenuService(db)
    restaurants = [
        await restaurant_service.create(RestaurantTo(name=name)) for name in RESTAURANT_NAMES
    ]
    menus = [
        await menu_service.create(menu_to(date, dishes), restaurants[idx].id or 0)
        for idx, date, dishes in MENUS
    ]
    return Seeded(restaurants, menus)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime.datetime(2019, 6, 11, 10, 0))


@pytest.fixture
def client(tmp_path: Path, clock: FakeClock) -> Iterator[TestClient]:
    app = create_app(Config(db_url=db_url(tmp_path), log_level="WARNING"), clock=clock)
    with TestClient(app) as client:
        for name in RESTAURANT_NAMES:
            resp = client.post("/restaurants/", json={"name": name})
            assert resp.status_code == 201
        for idx, date, dishes in MENUS:
            resp = client.post(
                f"/menus/{idx + 1}",
                json={
                    "date": date.isoformat(),
                    "dishes": [{"name": n, "price": p} for n, p in dishes],
                },
            )
            assert resp.status_code == 201
        yield client
