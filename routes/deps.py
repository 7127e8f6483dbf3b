from fastapi import HTTPException, Request, status

from utils.errors import (
    ConceptNotInDeck,
    EmptyDeckError,
    NoActiveSession,
    NotQueueHead,
    PackageNotFound,
    QuotaExceeded,
    StoreError,
    WordCoachError,
)
from utils.services import Services

ERROR_STATUS = {
    PackageNotFound: status.HTTP_404_NOT_FOUND,
    ConceptNotInDeck: status.HTTP_404_NOT_FOUND,
    NotQueueHead: status.HTTP_409_CONFLICT,
    NoActiveSession: status.HTTP_409_CONFLICT,
    QuotaExceeded: status.HTTP_402_PAYMENT_REQUIRED,
    EmptyDeckError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    StoreError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def get_services(request: Request) -> Services:
    """FastAPI dependency returning the engines built at startup."""
    return request.app.state.services


def http_error(exc: WordCoachError) -> HTTPException:
    """Translate an engine error into the response the client sees."""
    for error_type, code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return HTTPException(
                status_code=code,
                detail={"error": type(exc).__name__, "message": str(exc)},
            )
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
