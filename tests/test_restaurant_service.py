from databases import Database
import pytest

from lunchvote.errors import DataConflictError, NotFoundError, ValidationError
from lunchvote.schemas import RestaurantTo
from lunchvote.services import RestaurantService

from tests.conftest import Seeded


@pytest.mark.asyncio
async def test_get_all_ordered_by_name(db: Database, seeded: Seeded) -> None:
    got = await RestaurantService(db).get_all()
    assert [r.name for r in got] == ["Blinnaya", "Pelmeni House", "Stolovaya No. 1"]


@pytest.mark.asyncio
async def test_get(db: Database, seeded: Seeded) -> None:
    r2 = seeded.restaurants[1]
    assert await RestaurantService(db).get(r2.id or 0) == r2


@pytest.mark.asyncio
async def test_get_not_found(db: Database, seeded: Seeded) -> None:
    with pytest.raises(NotFoundError):
        await RestaurantService(db).get(1000)


@pytest.mark.asyncio
async def test_create_strips_name(db: Database) -> None:
    created = await RestaurantService(db).create(RestaurantTo(name="  Chebureki  "))
    assert created.id is not None
    assert created.name == "Chebureki"


@pytest.mark.parametrize("name", (None, "", "   "))
@pytest.mark.asyncio
async def test_create_blank(db: Database, name: str | None) -> None:
    with pytest.raises(ValidationError):
        await RestaurantService(db).create(RestaurantTo(name=name))


@pytest.mark.asyncio
async def test_create_duplicate(db: Database, seeded: Seeded) -> None:
    service = RestaurantService(db)
    with pytest.raises(DataConflictError):
        await service.create(RestaurantTo(name="Blinnaya"))
    assert len(await service.get_all()) == len(seeded.restaurants)
