from typing import Annotated, Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..schemas.session import ErrorResponse, TasksRequest, TasksResponse
from ..services.efsession import PlatformClient, SessionTokens, ValidationError
from .dependencies import get_platform_client
from .errors import SESSION_FIELDS_MESSAGE, failure_response

router = APIRouter(tags=["tasks"])


@router.post(
    "/tasks",
    response_model=TasksResponse,
    summary="List study plan tasks for a level",
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def fetch_tasks(
    body: TasksRequest,
    platform: Annotated[PlatformClient, Depends(get_platform_client)],
) -> Any:
    missing = body.missing_fields()
    if missing:
        raise ValidationError(SESSION_FIELDS_MESSAGE, missing=missing)

    tokens = SessionTokens.from_request(body.efAccessToken, body.efAccessAccount)
    try:
        tasks = await platform.fetch_tasks(tokens, level_id=body.levelId, course_id=body.courseId)
    except Exception as e:
        return failure_response("Erro ao buscar tasks", e)

    # No children on the study plan: the key is dropped rather than sent as null
    if tasks is None:
        return JSONResponse(content={})
    return {"tasks": tasks}
