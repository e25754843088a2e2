from typing import Any, Generic, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """API bodies are camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---- Requests ----
# Required fields are checked by the orchestrator so every missing-field error
# carries the same message and per-field errors.


class ScopedRequest(CamelModel):
    # Bounded by the indexed ai_analyses scope columns
    interview_id: str | None = Field(None, max_length=64)
    question_id: int | None = None
    problem_id: str | None = Field(None, max_length=64)


class CodeAnalysisRequest(ScopedRequest):
    code: str | None = None
    language: str | None = None
    problem_statement: str | None = None


class ComplexityAnalysisRequest(ScopedRequest):
    code: str | None = None
    language: str | None = None
    problem_type: str | None = None


class OptimizeSolutionRequest(ScopedRequest):
    code: str | None = None
    language: str | None = None
    problem_statement: str | None = None
    optimization_focus: str | None = Field(None, description="time | space")


class GenerateTestCasesRequest(ScopedRequest):
    problem_statement: str | None = None
    constraints: Any = None
    solution_hint: str | None = None
    force_refresh: bool = False
    code: str | None = None  # accepted, not part of the cache key
    language: str | None = None


# ---- Result shapes ----


class AlternativeApproach(CamelModel):
    description: str = ""
    complexity: str = "Unknown"
    suitability: str = ""


class AlgorithmAnalysis(CamelModel):
    approach_identified: str
    optimization_tips: list[str] = []
    edge_cases_feedback: list[str] = []
    alternative_approaches: list[AlternativeApproach] = []


class TimeComplexity(CamelModel):
    best_case: str = "Unknown"
    average_case: str = "Unknown"
    worst_case: str = "Unknown"


class CriticalOperation(CamelModel):
    operation: str = ""
    impact: str = ""
    line_numbers: list[int] = []


class ComplexityAnalysis(CamelModel):
    time_complexity: TimeComplexity
    space_complexity: str = "Unknown"
    critical_operations: list[CriticalOperation] = []
    comparison_to_optimal: str = "Unknown"


class Improvement(CamelModel):
    description: str = ""
    complexity_before: str = "Unknown"
    complexity_after: str = "Unknown"
    algorithmic_change: str = ""


class OptimizationSuggestions(CamelModel):
    optimized_code: str = ""
    improvements: list[Improvement] = []


class TestCase(CamelModel):
    input: Any = ""
    expected_output: Any = ""
    purpose: str = ""
    difficulty: Literal["easy", "medium", "hard", "edge"] = "medium"
    performance_test: bool = False


# ---- Responses ----


class AnalyzeSolutionData(CamelModel):
    analysis_text: str
    algorithm_analysis: AlgorithmAnalysis
    from_cache: bool = False
    error: bool = False


class ComplexityAnalysisData(CamelModel):
    analysis_text: str
    complexity_analysis: ComplexityAnalysis
    from_cache: bool = False
    error: bool = False


class OptimizeSolutionData(CamelModel):
    optimization_text: str
    optimization_suggestions: OptimizationSuggestions
    from_cache: bool = False
    error: bool = False


class GenerateTestCasesData(CamelModel):
    test_cases_text: str
    test_cases: list[TestCase]
    from_cache: bool = False
    error: bool = False


DataT = TypeVar("DataT")


class AiResponse(BaseModel, Generic[DataT]):
    success: bool
    message: str
    data: DataT
