"""
Movie service: maps repository rows to response models and database
failures to application errors.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from errors.exceptions import data_not_found, server_error
from movie.models import MovieRequest, MovieResponse
from movie.repository import MovieRepository

logger = logging.getLogger(__name__)


class MovieService:
    def __init__(self, repo: MovieRepository):
        self.repo = repo

    async def get_all_movies(self) -> list[MovieResponse]:
        try:
            rows = await self.repo.get_all_movies()
        except SQLAlchemyError as e:
            logger.error("Failed to fetch movies: %s", e, exc_info=True)
            raise server_error("Failed to fetch movies") from e
        return [MovieResponse.model_validate(row) for row in rows]

    async def get_movie(self, movie_id: int) -> MovieResponse:
        """
        Fetch one movie.

        Raises:
            AppException: DATA_NOT_FOUND when no movie has ``movie_id``,
                SERVER_ERROR when the database fails.
        """
        try:
            row = await self.repo.get_movie(movie_id)
        except SQLAlchemyError as e:
            logger.error("Failed to fetch movie %s: %s", movie_id, e, exc_info=True)
            raise server_error("Failed to fetch movie") from e

        if row is None:
            raise data_not_found(f"Movie {movie_id} not found", details={"id": movie_id})
        return MovieResponse.model_validate(row)

    async def save_movie(self, movie: MovieRequest) -> MovieResponse:
        try:
            row = await self.repo.save_movie(movie)
        except SQLAlchemyError as e:
            logger.error("Failed to save movie: %s", e, exc_info=True)
            raise server_error("Failed to save movie") from e

        logger.info("Movie saved", extra={"extra_data": {"movie_id": row["id"]}})
        return MovieResponse.model_validate(row)
