"""Mapping of chat errors onto HTTP errors."""

from fastapi import HTTPException

from ..errors import ChatBlockedError, PermissionDeniedError, ValidationError
from ..logging_config import get_logger

logger = get_logger(__name__)


def to_http_exception(error: Exception) -> HTTPException:
    if isinstance(error, HTTPException):
        return error
    if isinstance(error, ValidationError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, (ChatBlockedError, PermissionDeniedError)):
        return HTTPException(status_code=403, detail=str(error))
    logger.error("Unhandled API error: %s", error, exc_info=error)
    return HTTPException(status_code=500, detail=str(error))
