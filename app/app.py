import contextlib
import datetime
import functools
import logging
from typing import Any, AsyncIterator, Awaitable, Callable

import pydantic
from databases import Database
from rich.logging import RichHandler
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from app import config
from lunchvote.db import create_db
from lunchvote.errors import (
    DataConflictError,
    ErrorType,
    LunchVoteError,
    NotFoundError,
    ValidationError,
    VoteClosedError,
)
from lunchvote.schemas import MAX_INT, MenuTo, RestaurantTo, VoteTo
from lunchvote.services import MenuService, RestaurantService, VoteService


logger = logging.getLogger(__name__)


CONFIG = config.Config()


STATUS_CODES: dict[type[LunchVoteError], int] = {
    ValidationError: 422,
    NotFoundError: 422,
    DataConflictError: 409,
    VoteClosedError: 409,
}


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )


def aJSONResponse(route: Callable[..., Awaitable[Any]]):
    @functools.wraps(route)
    async def wrapper(*args: Any, **kwargs: Any) -> Response:
        resp = await route(*args, **kwargs)
        if isinstance(resp, Response):
            return resp
        if not isinstance(resp, tuple):
            content, code = resp, 200
        else:
            content, code = resp
        return JSONResponse(content, status_code=code)

    return wrapper


def error_response(
    request: Request, type: ErrorType, details: list[str], status_code: int
) -> JSONResponse:
    return JSONResponse(
        {"url": str(request.url), "type": type.value, "details": details},
        status_code=status_code,
    )


async def lunchvote_error(request: Request, exc: Exception) -> Response:
    assert isinstance(exc, LunchVoteError)
    status_code = STATUS_CODES.get(type(exc), 500)
    logger.info("%s %s -> %s %s", request.method, request.url.path, status_code, exc.details)
    return error_response(request, exc.type, exc.details, status_code)


async def invalid_body(request: Request, exc: Exception) -> Response:
    assert isinstance(exc, pydantic.ValidationError)
    details = [
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    ]
    return error_response(request, ErrorType.VALIDATION_ERROR, details, 422)


async def read_body[T: pydantic.BaseModel](request: Request, model: type[T]) -> T:
    try:
        data = await request.json()
    except ValueError as e:
        # JSONDecodeError and UnicodeDecodeError both land here.
        raise ValidationError(f"Malformed request body: {e}") from e
    return model.model_validate(data)


def query_date(request: Request, name: str = "date") -> datetime.date:
    value = request.query_params.get(name)
    if not value:
        raise ValidationError(f"{name} is required")
    try:
        return datetime.date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"{name}={value!r} is not a YYYY-MM-DD date")


def query_int(request: Request, name: str) -> int:
    value = request.query_params.get(name)
    if value is None or not value.isdecimal() or int(value) > MAX_INT:
        raise ValidationError(f"{name} must be an integer")
    return int(value)


def path_id(request: Request, name: str) -> int:
    """Ids past the storage range cannot exist."""
    value: int = request.path_params[name]
    if value > MAX_INT:
        raise NotFoundError(f"{name}={value} not found")
    return value


@aJSONResponse
async def menus(request: Request) -> Any:
    service: MenuService = request.app.state.menu_service
    return [m.to_dict() for m in await service.get_all()]


@aJSONResponse
async def menus_by_date(request: Request) -> Any:
    service: MenuService = request.app.state.menu_service
    return [m.to_dict() for m in await service.find_by_date(query_date(request))]


@aJSONResponse
async def menus_by_restaurant(request: Request) -> Any:
    service: MenuService = request.app.state.menu_service
    restaurant_id = query_int(request, "restaurant_id")
    return [m.to_dict() for m in await service.find_by_restaurant(restaurant_id)]


@aJSONResponse
async def create_menu(request: Request) -> Any:
    service: MenuService = request.app.state.menu_service
    restaurant_id = path_id(request, "restaurant_id")
    menu = await service.create(await read_body(request, MenuTo), restaurant_id)
    location = request.url_for("menu", restaurant_id=restaurant_id, menu_id=menu.id)
    return JSONResponse(
        menu.to_dict(), status_code=201, headers={"Location": str(location)}
    )


@aJSONResponse
async def menu(request: Request) -> Any:
    service: MenuService = request.app.state.menu_service
    restaurant_id = path_id(request, "restaurant_id")
    menu_id = path_id(request, "menu_id")
    match request.method.lower():
        case "get":
            return (await service.get(menu_id, restaurant_id)).to_dict()
        case "put":
            await service.update(await read_body(request, MenuTo), menu_id, restaurant_id)
            return Response(status_code=204)
        case "delete":
            await service.delete(menu_id, restaurant_id)
            return Response(status_code=204)
        case _:
            raise ValueError("Unsupported method.")


@aJSONResponse
async def restaurants(request: Request) -> Any:
    service: RestaurantService = request.app.state.restaurant_service
    match request.method.lower():
        case "get":
            return [r.to_dict() for r in await service.get_all()]
        case "post":
            restaurant = await service.create(await read_body(request, RestaurantTo))
            location = request.url_for("restaurant", restaurant_id=restaurant.id)
            return JSONResponse(
                restaurant.to_dict(), status_code=201, headers={"Location": str(location)}
            )
        case _:
            raise ValueError("Unsupported method.")


@aJSONResponse
async def restaurant(request: Request) -> Any:
    service: RestaurantService = request.app.state.restaurant_service
    return (await service.get(path_id(request, "restaurant_id"))).to_dict()


@aJSONResponse
async def vote(request: Request) -> Any:
    service: VoteService = request.app.state.vote_service
    vote_to = await read_body(request, VoteTo)
    return (await service.vote(vote_to.user, vote_to.restaurant_id)).to_dict()


@aJSONResponse
async def vote_results(request: Request) -> Any:
    service: VoteService = request.app.state.vote_service
    return await service.results(query_date(request))


def create_app(
    conf: config.Config | None = None,
    *,
    clock: Callable[[], datetime.datetime] = datetime.datetime.now,
) -> Starlette:
    conf = CONFIG if conf is None else conf
    configure_logging(conf.log_level)
    db = Database(conf.db_url)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        await db.connect()
        await create_db(db)
        yield
        await db.disconnect()

    app = Starlette(
        debug=True if conf.env == config.Env.local else False,
        routes=[
            Route("/menus/", menus, methods=["GET"]),
            Route("/menus/byDate", menus_by_date, methods=["GET"]),
            Route("/menus/byRestaurant", menus_by_restaurant, methods=["GET"]),
            Route("/menus/{restaurant_id:int}", create_menu, methods=["POST"]),
            Route(
                "/menus/{restaurant_id:int}/{menu_id:int}",
                menu,
                methods=["GET", "PUT", "DELETE"],
                name="menu",
            ),
            Route("/restaurants/", restaurants, methods=["GET", "POST"]),
            Route("/restaurants/{restaurant_id:int}", restaurant, name="restaurant"),
            Route("/votes/", vote, methods=["POST"]),
            Route("/votes/results", vote_results, methods=["GET"]),
        ],
        exception_handlers={
            LunchVoteError: lunchvote_error,
            pydantic.ValidationError: invalid_body,
        },
        lifespan=lifespan,
    )

    app.state.db = db
    app.state.menu_service = MenuService(db)
    app.state.restaurant_service = RestaurantService(db)
    app.state.vote_service = VoteService(db, deadline=conf.vote_deadline, clock=clock)
    return app


app = create_app()
