"""
Success response envelope shared by the HTTP handlers.
"""

from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel


class APIResponse(BaseModel):
    """Envelope ``{code, message}`` used for acknowledgements."""
    code: str
    message: str


API_OK = APIResponse(code="SUCCESS", message="Success")


def write_api_ok() -> JSONResponse:
    """200 with the bare SUCCESS envelope."""
    return JSONResponse(status_code=200, content=API_OK.model_dump())


def write_json(content: Any, status_code: int = 200) -> JSONResponse:
    """Write ``content`` as the whole response body."""
    return JSONResponse(status_code=status_code, content=content)
