from typing import Annotated, Any

from fastapi import APIRouter, Depends

from ..schemas.session import ErrorResponse, LevelChangeRequest
from ..services.efsession import PlatformClient, SessionTokens, ValidationError
from .dependencies import get_platform_client
from .errors import SESSION_FIELDS_MESSAGE, failure_response

router = APIRouter(tags=["levels"])


@router.put(
    "/change-level",
    summary="Change the student's study level",
    description="Forwards {courseId, levelId} to the EF study plan using a session returned by /api/login.",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def change_level(
    body: LevelChangeRequest,
    platform: Annotated[PlatformClient, Depends(get_platform_client)],
) -> Any:
    missing = body.missing_fields()
    if missing:
        raise ValidationError(SESSION_FIELDS_MESSAGE, missing=missing)

    tokens = SessionTokens.from_request(body.efAccessToken, body.efAccessAccount)
    try:
        return await platform.change_level(tokens, level_id=body.levelId, course_id=body.courseId)
    except Exception as e:
        return failure_response("Erro ao mudar de nível", e)
