"""
EF Session Bridge - Login Endpoint

POST /api/login runs the full browser-driven login and returns the EF
session tokens together with the levels available to the student. Callers
store the token pair and send it back on /api/change-level and /api/tasks.

Every call performs a fresh SSO handshake; two logins with the same
credentials may return different tokens.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from ..schemas.session import ErrorResponse, LoginRequest
from ..services.efsession import IdentityCredential, LoginPipeline, ValidationError
from .dependencies import get_login_pipeline
from .errors import LOGIN_FIELDS_MESSAGE, failure_response

router = APIRouter(tags=["session"])


@router.post(
    "/login",
    summary="Log in with EduSP credentials",
    description="Exchange RA and password for an EF session (efAccessToken/efAccessAccount) plus available levels.",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def login(
    body: LoginRequest,
    pipeline: Annotated[LoginPipeline, Depends(get_login_pipeline)],
) -> Any:
    missing = body.missing_fields()
    if missing:
        raise ValidationError(LOGIN_FIELDS_MESSAGE, missing=missing)

    try:
        return await pipeline.login(IdentityCredential(id=str(body.ra), secret=str(body.password)))
    except Exception as e:
        # Every stage failure is a 500 on the wire; the stage tag stays in the logs
        return failure_response("Erro no processo de login", e, status_code=500)
