"""Movie endpoints under ``/v1/movies``."""

from fastapi import APIRouter, Path

from api.dependencies import MovieServiceDep
from movie.models import MovieRequest, MovieResponse

router = APIRouter(prefix="/v1/movies", tags=["movies"])


@router.get("", response_model=list[MovieResponse])
async def get_all_movies(service: MovieServiceDep):
    return await service.get_all_movies()


@router.get("/{movie_id}", response_model=MovieResponse)
async def get_movie(service: MovieServiceDep, movie_id: int = Path(..., ge=1)):
    return await service.get_movie(movie_id)


@router.post("", response_model=MovieResponse)
async def save_movie(payload: MovieRequest, service: MovieServiceDep):
    return await service.save_movie(payload)
