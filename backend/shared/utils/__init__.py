"""
Utilities module: Exceptions, date helpers, schemas.
"""

from shared.utils.exceptions import (
    NotFoundError,
    ForbiddenError,
    ValidationError,
    ConflictError,
)
from shared.utils.dates import utcnow, as_utc
from shared.utils.schemas import ErrorResponse

__all__ = [
    # exceptions
    "NotFoundError",
    "ForbiddenError",
    "ValidationError",
    "ConflictError",
    # dates
    "utcnow",
    "as_utc",
    # schemas
    "ErrorResponse",
]
