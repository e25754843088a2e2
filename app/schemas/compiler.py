from typing import Any

from app.schemas.ai import CamelModel


class SubmitCodeRequest(CamelModel):
    code: str | None = None
    language: str | None = None
    input: str | None = None
    time_limit: int | None = None


class CompilerResponse(CamelModel):
    success: bool = True
    message: str
    data: dict[str, Any]
