from fastapi import APIRouter, Depends
from app.schemas.compiler import CompilerResponse, SubmitCodeRequest
from app.services.code_compiler import CodeCompilerClient

router = APIRouter(prefix="/api/compiler", tags=["compiler"])


def get_compiler_client() -> CodeCompilerClient:
    return CodeCompilerClient()


@router.post("/submit", response_model=CompilerResponse)
async def submit_code(
    body: SubmitCodeRequest,
    compiler: CodeCompilerClient = Depends(get_compiler_client),
):
    """Submit code for compilation and execution; poll /result/{submissionId} afterwards."""
    submission_id = await compiler.submit(body.code, body.language, body.input, body.time_limit)
    return CompilerResponse(message="Code submitted successfully", data={"submissionId": submission_id})


@router.get("/result/{submission_id}", response_model=CompilerResponse)
async def get_code_result(
    submission_id: str,
    compiler: CodeCompilerClient = Depends(get_compiler_client),
):
    data = await compiler.result(submission_id)
    message = "Code is still executing" if data["status"] == "executing" else "Code execution completed"
    return CompilerResponse(message=message, data=data)
