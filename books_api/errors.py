import logging
from enum import Enum
from typing import Any, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse, Response

from .validation import Rejection

logger = logging.getLogger(__name__)

_UNSET = object()


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    DUPLICATE = "duplicate"
    BAD_REQUEST = "bad_request"
    NOT_FOUND = "not_found"
    STORE = "store"
    INTERNAL = "internal"


class ApiError(Exception):
    """An error answered with ``{message, data?}``, or an empty body when
    ``message`` is None."""

    def __init__(
        self,
        kind: ErrorKind,
        status_code: int,
        message: Optional[str] = None,
        data: Any = _UNSET,
    ):
        super().__init__(message or kind.value)
        self.kind = kind
        self.status_code = status_code
        self.message = message
        self.data = data

    @classmethod
    def from_rejection(cls, rejection: Rejection) -> "ApiError":
        return cls(
            ErrorKind.VALIDATION,
            status.HTTP_400_BAD_REQUEST,
            rejection.message,
            rejection.data if rejection.echo else _UNSET,
        )

    @classmethod
    def not_found(cls) -> "ApiError":
        return cls(ErrorKind.NOT_FOUND, status.HTTP_404_NOT_FOUND)

    @classmethod
    def internal(cls, message: Optional[str] = None) -> "ApiError":
        return cls(ErrorKind.INTERNAL, status.HTTP_500_INTERNAL_SERVER_ERROR, message)

    def body(self) -> Optional[dict[str, Any]]:
        if self.message is None:
            return None
        content: dict[str, Any] = {"message": self.message}
        if self.data is not _UNSET:
            content["data"] = self.data
        return content


async def api_error_handler(request: Request, exc: ApiError) -> Response:
    logger.info(
        "request.rejected",
        extra={"path": request.url.path, "kind": exc.kind.value, "status": exc.status_code},
    )
    content = exc.body()
    if content is None:
        return Response(status_code=exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=content)
