"""
Middleware components for the Movie API.
"""

from middleware.request_id import (
    RequestIDMiddleware,
    REQUEST_ID_HEADER,
    get_request_id,
    normalize_request_id,
    request_id_var,
)

__all__ = [
    "RequestIDMiddleware",
    "REQUEST_ID_HEADER",
    "get_request_id",
    "normalize_request_id",
    "request_id_var",
]
