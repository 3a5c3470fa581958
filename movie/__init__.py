"""
Movie resource: models, persistence and service.
"""

from movie.models import MovieRequest, MovieResponse
from movie.repository import MovieRepository, create_schema, movies_table
from movie.service import MovieService

__all__ = [
    "MovieRequest",
    "MovieResponse",
    "MovieRepository",
    "MovieService",
    "create_schema",
    "movies_table",
]
