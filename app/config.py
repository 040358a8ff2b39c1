import datetime
from enum import Enum

from pydantic_settings import BaseSettings


class Env(Enum):
    local = "local"
    dev = "dev"
    prod = "prod"


class Config(BaseSettings):
    env: Env = Env.local
    db_url: str = "sqlite+aiosqlite:///lunchvote.db"
    log_level: str = "INFO"
    vote_deadline: datetime.time = datetime.time(11, 0)
