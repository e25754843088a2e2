"""
Task kinds, scope variants and the fingerprint that identifies one cached analysis.

Scope is a tagged union: an analysis belongs either to a question inside an
interview or to a standalone problem. Code is part of the key for the
code-reviewing tasks; test generation keys on owner + scope only.
"""
import enum
import hashlib
import json
from dataclasses import dataclass


class AnalysisTask(str, enum.Enum):
    ANALYZE = "analyze"
    COMPLEXITY = "complexity"
    OPTIMIZE = "optimize"
    GENERATE_TESTS = "generateTests"

    @property
    def spec(self) -> "TaskSpec":
        return TASK_SPECS[self]


@dataclass(frozen=True)
class TaskSpec:
    slot_column: str  # result slot on AiAnalysis
    text_column: str  # per-task explanation column on AiAnalysis
    result_key: str  # key of the result slot in the API response
    response_text_key: str  # key of the explanation in the API response
    model_text_key: str  # key of the explanation in the model's JSON
    code_keyed: bool


TASK_SPECS: dict[AnalysisTask, TaskSpec] = {
    AnalysisTask.ANALYZE: TaskSpec(
        slot_column="algorithm_analysis",
        text_column="analysis_text",
        result_key="algorithmAnalysis",
        response_text_key="analysisText",
        model_text_key="detailedAnalysis",
        code_keyed=True,
    ),
    AnalysisTask.COMPLEXITY: TaskSpec(
        slot_column="complexity_analysis",
        text_column="complexity_text",
        result_key="complexityAnalysis",
        response_text_key="analysisText",
        model_text_key="detailedAnalysis",
        code_keyed=True,
    ),
    AnalysisTask.OPTIMIZE: TaskSpec(
        slot_column="optimization_suggestions",
        text_column="optimization_text",
        result_key="optimizationSuggestions",
        response_text_key="optimizationText",
        model_text_key="explanationText",
        code_keyed=True,
    ),
    AnalysisTask.GENERATE_TESTS: TaskSpec(
        slot_column="test_cases",
        text_column="test_cases_text",
        result_key="testCases",
        response_text_key="testCasesText",
        model_text_key="explanationText",
        code_keyed=False,
    ),
}


@dataclass(frozen=True)
class InterviewScope:
    interview_id: str
    question_id: int

    def key_parts(self) -> dict:
        return {"interviewId": self.interview_id, "questionId": self.question_id}

    def columns(self) -> dict:
        return {"interview_id": self.interview_id, "question_id": self.question_id, "problem_id": None}


@dataclass(frozen=True)
class ProblemScope:
    problem_id: str

    def key_parts(self) -> dict:
        return {"problemId": self.problem_id}

    def columns(self) -> dict:
        return {"interview_id": None, "question_id": None, "problem_id": self.problem_id}


Scope = InterviewScope | ProblemScope


def resolve_scope(
    interview_id: str | None,
    question_id: int | None,
    problem_id: str | None,
) -> Scope | None:
    """Interview scope wins when both halves are present; None when no complete scope was sent."""
    if interview_id and question_id is not None:
        return InterviewScope(interview_id=str(interview_id), question_id=int(question_id))
    if problem_id:
        return ProblemScope(problem_id=str(problem_id))
    return None


@dataclass(frozen=True)
class Fingerprint:
    owner_id: str
    scope: Scope
    code: str | None = None  # None for code-independent tasks

    @classmethod
    def for_task(cls, owner_id: str, scope: Scope, task: AnalysisTask, code: str | None) -> "Fingerprint":
        return cls(owner_id=owner_id, scope=scope, code=code if task.spec.code_keyed else None)

    @property
    def cache_key(self) -> str:
        """Stable hash of the identity; code is matched exactly (no whitespace folding)."""
        parts = {"scope": self.scope.key_parts()}
        if self.code is not None:
            parts["code"] = self.code
        normalized = json.dumps(parts, sort_keys=True, default=str)
        return hashlib.sha256(f"{self.owner_id}:{normalized}".encode()).hexdigest()


class FailureKind(str, enum.Enum):
    """Soft failures: reported to the caller with success=false, never cached."""

    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    MALFORMED_RESPONSE = "malformed_response"
