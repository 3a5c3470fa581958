"""
Movie persistence.

Reads go to the slave database and writes to the master, through the
helpers of BaseRepository.
"""

from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, insert, select
from sqlalchemy.engine import Engine

from database.base import BaseRepository
from movie.models import MovieRequest
from telemetry.service import TelemetryService

metadata = MetaData()

movies_table = Table(
    "movies",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("duration", Integer, nullable=False),
    Column("genre", String(100), nullable=False),
)


def create_schema(engine: Engine) -> None:
    """Create the movies table if it does not exist yet."""
    metadata.create_all(engine)


class MovieRepository(BaseRepository):
    def __init__(
        self,
        master_db: Optional[Engine],
        slave_db: Optional[Engine],
        telemetry: Optional[TelemetryService] = None,
    ):
        if master_db is None:
            raise ValueError("the master database connection is missing")
        if slave_db is None:
            raise ValueError("the slave database connection is missing")
        super().__init__(master_db, slave_db, telemetry)

    async def get_all_movies(self) -> list[dict]:
        return await self.fetch_rows(select(movies_table).order_by(movies_table.c.id))

    async def get_movie(self, movie_id: int) -> Optional[dict]:
        return await self.fetch_row(select(movies_table).where(movies_table.c.id == movie_id))

    async def save_movie(self, movie: MovieRequest) -> dict:
        values = movie.model_dump()
        result = await self.exec(insert(movies_table).values(**values))
        return {"id": result.last_insert_id, **values}
