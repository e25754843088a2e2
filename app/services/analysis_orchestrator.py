"""
Entry point for the four AI analysis tasks.

Per request, strictly in order: auth check, input validation, cache lookup, and on a
miss the Gemini call, normalization and write-through. Auth and validation problems
raise (401/400). Model problems do not: they come back as a soft failure with the
task's default shape, success=false, error=true, and nothing is written to the cache.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from app.core.errors import InvalidInput, Unauthenticated
from app.schemas.ai import (
    CodeAnalysisRequest,
    ComplexityAnalysisRequest,
    GenerateTestCasesRequest,
    OptimizeSolutionRequest,
    ScopedRequest,
)
from app.services.analysis_cache import AnalysisCache
from app.services.analysis_keys import AnalysisTask, Fingerprint, resolve_scope
from app.services.model_gateway import ModelGateway
from app.services.response_normalizer import NormalizedResult, failure_result, parse_model_output

logger = logging.getLogger(__name__)

OPTIMIZATION_FOCUSES = ("time", "space")
UPSTREAM_UNAVAILABLE_TEXT = "AI service temporarily unavailable. Please try again later."

# (cache hit, fresh result, soft failure)
MESSAGES = {
    AnalysisTask.ANALYZE: (
        "Cached code analysis retrieved",
        "Code analysis completed",
        "Error performing code analysis",
    ),
    AnalysisTask.COMPLEXITY: (
        "Cached complexity analysis retrieved",
        "Complexity analysis completed",
        "Error performing complexity analysis",
    ),
    AnalysisTask.OPTIMIZE: (
        "Cached optimization suggestions retrieved",
        "Solution optimization completed",
        "Error performing code optimization",
    ),
    AnalysisTask.GENERATE_TESTS: (
        "Cached test cases retrieved",
        "Test case generation completed",
        "Error generating test cases",
    ),
}


@dataclass
class AnalysisOutcome:
    success: bool
    message: str
    data: dict

    def to_response(self) -> dict:
        return {"success": self.success, "message": self.message, "data": self.data}


def _missing(payload: dict, *fields: str) -> dict[str, str]:
    errors = {}
    for field in fields:
        value = payload.get(field)
        if value is None or (isinstance(value, (str, list, dict)) and not value):
            errors[field] = f"{field} is required"
    return errors


def validate_request(task: AnalysisTask, payload: dict) -> None:
    """Raise InvalidInput for missing task fields or a bad optimizationFocus."""
    if task in (AnalysisTask.ANALYZE, AnalysisTask.COMPLEXITY):
        errors = _missing(payload, "code", "language")
        if errors:
            raise InvalidInput("Code and language are required", errors)
    elif task == AnalysisTask.OPTIMIZE:
        errors = _missing(payload, "code", "language", "problemStatement")
        if errors:
            raise InvalidInput("Code, language, and problem statement are required", errors)
        if payload.get("optimizationFocus") not in OPTIMIZATION_FOCUSES:
            raise InvalidInput(
                "Valid optimization focus (time or space) is required",
                {"optimizationFocus": "must be one of: time, space"},
            )
    else:
        errors = _missing(payload, "problemStatement", "constraints")
        if errors:
            raise InvalidInput("Problem statement and constraints are required", errors)


class AnalysisOrchestrator:
    def __init__(self, cache: AnalysisCache, gateway: ModelGateway):
        self._cache = cache
        self._gateway = gateway

    async def analyze(self, owner_id: str | None, body: CodeAnalysisRequest) -> AnalysisOutcome:
        return await self.run(AnalysisTask.ANALYZE, owner_id, body)

    async def complexity(self, owner_id: str | None, body: ComplexityAnalysisRequest) -> AnalysisOutcome:
        return await self.run(AnalysisTask.COMPLEXITY, owner_id, body)

    async def optimize(self, owner_id: str | None, body: OptimizeSolutionRequest) -> AnalysisOutcome:
        return await self.run(AnalysisTask.OPTIMIZE, owner_id, body)

    async def generate_tests(self, owner_id: str | None, body: GenerateTestCasesRequest) -> AnalysisOutcome:
        return await self.run(AnalysisTask.GENERATE_TESTS, owner_id, body, force_refresh=body.force_refresh)

    async def run(
        self,
        task: AnalysisTask,
        owner_id: str | None,
        body: ScopedRequest,
        *,
        force_refresh: bool = False,
    ) -> AnalysisOutcome:
        if not owner_id:
            raise Unauthenticated()

        payload = body.model_dump(by_alias=True, exclude={"force_refresh"})
        validate_request(task, payload)
        scope = resolve_scope(body.interview_id, body.question_id, body.problem_id)
        if scope is None:
            raise InvalidInput(
                "Either interviewId and questionId, or problemId, is required",
                {"scope": "provide interviewId + questionId, or problemId"},
            )
        fingerprint = Fingerprint.for_task(str(owner_id), scope, task, payload.get("code"))

        if not force_refresh:
            cached = await self._cache.lookup(fingerprint, task)
            if cached is not None:
                logger.debug("%s cache hit for %s", task.value, fingerprint.cache_key[:12])
                return self._outcome(task, cached.value, cached.text, from_cache=True)
        logger.debug("%s cache miss for %s", task.value, fingerprint.cache_key[:12])

        normalized = await self._call_model(task, payload)
        if normalized.error:
            logger.warning("%s soft failure (%s); not cached", task.value, normalized.failure.value)
            return self._outcome(task, normalized.result, normalized.text, from_cache=False, failed=True)

        await self._cache.upsert(
            fingerprint,
            task,
            normalized.result,
            normalized.text,
            language=payload.get("language") or "",
        )
        return self._outcome(task, normalized.result, normalized.text, from_cache=False)

    async def _call_model(self, task: AnalysisTask, payload: dict) -> NormalizedResult:
        loop = asyncio.get_running_loop()
        reply = await loop.run_in_executor(None, self._gateway.invoke, task, payload)
        if not reply.ok:
            return failure_result(task, reply.failure, UPSTREAM_UNAVAILABLE_TEXT)
        return parse_model_output(task, reply.text)

    def _outcome(
        self,
        task: AnalysisTask,
        value: Any,
        text: str,
        *,
        from_cache: bool,
        failed: bool = False,
    ) -> AnalysisOutcome:
        spec = task.spec
        hit_msg, done_msg, fail_msg = MESSAGES[task]
        data = {
            spec.response_text_key: text,
            spec.result_key: value,
            "fromCache": from_cache,
        }
        if failed:
            data["error"] = True
            return AnalysisOutcome(success=False, message=fail_msg, data=data)
        return AnalysisOutcome(success=True, message=hit_msg if from_cache else done_msg, data=data)
