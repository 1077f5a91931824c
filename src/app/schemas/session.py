from typing import Annotated, Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

# Fields are optional at the schema level: missing values must produce the
# API's own 400 messages, not FastAPI's 422. Credentials and tokens accept
# numbers too; only an absent or empty value counts as missing.

Scalar = int | str


class LoginRequest(BaseModel):
    """Request body for POST /api/login."""

    model_config = ConfigDict(extra="ignore")

    ra: Annotated[
        Scalar | None,
        Field(default=None, description="Student RA (EduSP user id)", examples=["000123456789sp"]),
    ]
    password: Annotated[
        Scalar | None,
        Field(default=None, description="EduSP password"),
    ]

    def missing_fields(self) -> list[str]:
        return [name for name in ("ra", "password") if not getattr(self, name)]


class SessionRequest(BaseModel):
    """Fields shared by every call that reuses a previously returned session."""

    model_config = ConfigDict(extra="ignore")

    levelId: Annotated[
        Scalar | None,
        Field(default=None, description="EF level identifier"),
    ]
    courseId: Annotated[
        Scalar | None,
        Field(default=None, description="EF course identifier"),
    ]
    efAccessToken: Annotated[
        Scalar | None,
        Field(default=None, description="Access token returned by /api/login"),
    ]
    efAccessAccount: Annotated[
        Scalar | None,
        Field(default=None, description="Account token returned by /api/login"),
    ]

    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = ("levelId", "courseId", "efAccessToken", "efAccessAccount")

    def missing_fields(self) -> list[str]:
        return [name for name in self.REQUIRED_FIELDS if not getattr(self, name)]


class LevelChangeRequest(SessionRequest):
    """Request body for PUT /api/change-level."""


class TasksRequest(SessionRequest):
    """Request body for POST /api/tasks."""


class HealthResponse(BaseModel):
    status: str = "ok"
    port: int


class TasksResponse(BaseModel):
    tasks: Any = None


class ErrorResponse(BaseModel):
    error: str
