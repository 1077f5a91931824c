import logging

from fastapi.responses import JSONResponse

from ..services.efsession import EFSessionException

logger = logging.getLogger(__name__)

LOGIN_FIELDS_MESSAGE = "Informe ra e password."
SESSION_FIELDS_MESSAGE = "Campos obrigatórios: levelId, courseId, efAccessToken, efAccessAccount."


def error_response(status_code: int, message: str) -> JSONResponse:
    """Every failure leaves the API as ``{"error": "<message>"}``."""
    return JSONResponse(status_code=status_code, content={"error": message})


def failure_response(prefix: str, exc: Exception, status_code: int | None = None) -> JSONResponse:
    """
    Map an exception raised behind a route to the wire format.

    Bridge errors keep their own status (upstream status for
    DownstreamApiError) unless ``status_code`` forces one. Anything else is
    an unexpected 500.
    """
    if isinstance(exc, EFSessionException):
        status = status_code or exc.status_code
        logger.error(f"[API] {prefix}: stage={exc.stage} status={status} {exc}", exc_info=exc)
        return error_response(status, f"{prefix}: {exc.message}")

    logger.exception(f"[API] {prefix}: unexpected error: {exc}")
    return error_response(status_code or 500, f"{prefix}: {exc}")
