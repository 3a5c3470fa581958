"""Request and response models for the movie endpoints."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MovieRequest(BaseModel):
    """Payload of ``POST /v1/movies``. Unknown fields (such as ``id``) are ignored."""
    name: str = Field(..., max_length=255)
    duration: int = Field(..., ge=1, le=1000, description="Running time in minutes")
    genre: str = Field(..., max_length=100)

    @field_validator("name", "genre")
    @classmethod
    def validate_required_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("value is required")
        return v


class MovieResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    duration: int
    genre: str
