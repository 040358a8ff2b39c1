import contextlib
import datetime
import logging
from typing import Callable, Iterator

from databases import Database

from lunchvote.db import is_unique_violation
from lunchvote.errors import (
    DataConflictError,
    NotFoundError,
    ValidationError,
    VoteClosedError,
)
from lunchvote.models import Dish, Menu, Restaurant, Vote
from lunchvote.repository import MenusRepository, RestaurantsRepository, VotesRepository
from lunchvote.schemas import MenuTo, RestaurantTo, menu_from_to


logger = logging.getLogger(__name__)


type Clock = Callable[[], datetime.datetime]


@contextlib.contextmanager
def conflict_as(message: str) -> Iterator[None]:
    """Turn a unique constraint failure raised by the driver into a `DataConflictError`."""
    try:
        yield
    except Exception as e:
        if not is_unique_violation(e):
            raise
        logger.warning("%s: %s", message, e)
        raise DataConflictError(message) from e


def sort_dishes(menus: list[Menu]) -> list[Menu]:
    for menu in menus:
        menu.dishes = menu.sorted_dishes()
    return menus


class MenuService:
    def __init__(self, db: Database) -> None:
        self.db = db
        self.menus = MenusRepository(db)
        self.restaurants = RestaurantsRepository(db)

    async def get(self, id: int, restaurant_id: int) -> Menu:
        menu = await self.menus.find_by_id(id, restaurant_id)
        if menu is None:
            raise NotFoundError(f"Menu id={id} not found for restaurant id={restaurant_id}")
        return sort_dishes([menu])[0]

    async def get_all(self) -> list[Menu]:
        return sort_dishes(await self.menus.find_all())

    async def find_by_date(self, date: datetime.date) -> list[Menu]:
        return sort_dishes(await self.menus.find_by_date(date))

    async def find_by_restaurant(self, restaurant_id: int) -> list[Menu]:
        return sort_dishes(await self.menus.find_by_restaurant(restaurant_id))

    async def get_dish(self, id: int) -> Dish:
        dish = await self.menus.find_dish(id)
        if dish is None:
            raise NotFoundError(f"Dish id={id} not found")
        return dish

    async def create(self, menu_to: MenuTo, restaurant_id: int) -> Menu:
        if menu_to.id is not None:
            raise ValidationError(f"{menu_to!r} must be new (id=null)")
        if menu_to.date is None:
            raise ValidationError("date must not be null")

        with conflict_as(f"Menu for restaurant id={restaurant_id} on {menu_to.date} already exists"):
            async with self.db.transaction():
                restaurant = await self.restaurants.find_by_id(restaurant_id)
                if restaurant is None:
                    raise NotFoundError(f"Restaurant id={restaurant_id} not found")
                menu = await self.menus.save(menu_from_to(menu_to, restaurant))

        logger.info("Created %r for %r", menu, restaurant)
        return sort_dishes([menu])[0]

    async def update(self, menu_to: MenuTo, id: int, restaurant_id: int) -> Menu:
        """Replace the date and dishes of an existing menu."""
        if menu_to.id is not None and menu_to.id != id:
            raise ValidationError(f"{menu_to!r} must be with id={id}")
        if menu_to.date is None:
            raise ValidationError("date must not be null")

        with conflict_as(f"Menu for restaurant id={restaurant_id} on {menu_to.date} already exists"):
            async with self.db.transaction():
                menu = await self.menus.find_by_id(id, restaurant_id)
                if menu is None:
                    raise NotFoundError(
                        f"Menu id={id} not found for restaurant id={restaurant_id}"
                    )
                replacement = menu_from_to(menu_to.model_copy(update={"id": id}), menu.restaurant)
                menu.date = replacement.date
                menu.replace_dishes(replacement.dishes)
                await self.menus.save(menu)

        logger.info("Updated %r", menu)
        return sort_dishes([menu])[0]

    async def delete(self, id: int, restaurant_id: int) -> None:
        async with self.db.transaction():
            deleted = await self.menus.delete_by_id(id, restaurant_id)
        if not deleted:
            raise NotFoundError(f"Menu id={id} not found for restaurant id={restaurant_id}")
        logger.info("Deleted menu id=%s of restaurant id=%s", id, restaurant_id)


class RestaurantService:
    def __init__(self, db: Database) -> None:
        self.restaurants = RestaurantsRepository(db)

    async def create(self, restaurant_to: RestaurantTo) -> Restaurant:
        if restaurant_to.id is not None:
            raise ValidationError(f"{restaurant_to!r} must be new (id=null)")
        name = (restaurant_to.name or "").strip()
        if not name:
            raise ValidationError("name must not be blank")
        with conflict_as(f"Restaurant {name!r} already exists"):
            restaurant = await self.restaurants.save(Restaurant(id=None, name=name))
        logger.info("Created %r", restaurant)
        return restaurant

    async def get(self, id: int) -> Restaurant:
        restaurant = await self.restaurants.find_by_id(id)
        if restaurant is None:
            raise NotFoundError(f"Restaurant id={id} not found")
        return restaurant

    async def get_all(self) -> list[Restaurant]:
        return await self.restaurants.find_all()


class VoteService:
    """One vote per user per day. A vote can be changed until `deadline`."""

    def __init__(
        self,
        db: Database,
        *,
        deadline: datetime.time = datetime.time(11, 0),
        clock: Clock = datetime.datetime.now,
    ) -> None:
        self.db = db
        self.deadline = deadline
        self.clock = clock
        self.votes = VotesRepository(db)
        self.restaurants = RestaurantsRepository(db)

    async def vote(self, user: str | None, restaurant_id: int) -> Vote:
        user = (user or "").strip()
        if not user:
            raise ValidationError("user must not be blank")
        now = self.clock()
        vote = Vote(id=None, user=user, restaurant_id=restaurant_id, date=now.date())

        if await self.restaurants.find_by_id(restaurant_id) is None:
            raise NotFoundError(f"Restaurant id={restaurant_id} not found")

        try:
            async with self.db.transaction():
                vote = await self.votes.insert(vote)
        except Exception as e:
            if not is_unique_violation(e):
                raise
            # Already voted today.
            if now.time() >= self.deadline:
                raise VoteClosedError(
                    f"{user} already voted on {vote.date}, changes close at {self.deadline}"
                ) from e
            async with self.db.transaction():
                await self.votes.change_restaurant(vote)
                stored = await self.votes.find(user, vote.date)
            if stored is not None:
                vote = stored
            logger.info("Changed %r", vote)
        else:
            logger.info("Recorded %r", vote)
        return vote

    async def results(self, date: datetime.date) -> list[dict[str, int | str | None]]:
        return [
            {"restaurant_id": restaurant.id, "name": restaurant.name, "votes": votes}
            for restaurant, votes in await self.votes.results(date)
        ]
