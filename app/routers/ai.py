"""
AI code analysis endpoints (all authenticated, cached per user + scope + code):
- POST /api/ai/analyze-solution: approach, edge cases, alternatives
- POST /api/ai/complexity-analysis: time/space complexity
- POST /api/ai/optimize-solution: optimized code for time or space
- POST /api/ai/generate-test-cases: test cases for a problem (cached per scope, code ignored)
- GET /api/ai/health: Redis status
Model failures answer 200 with success=false; only auth/validation/storage fail with 4xx/5xx.
"""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.auth import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.ai import (
    AiResponse,
    AnalyzeSolutionData,
    CodeAnalysisRequest,
    ComplexityAnalysisData,
    ComplexityAnalysisRequest,
    GenerateTestCasesData,
    GenerateTestCasesRequest,
    OptimizeSolutionData,
    OptimizeSolutionRequest,
)
from app.services.analysis_cache import AnalysisCache
from app.services.analysis_orchestrator import AnalysisOrchestrator
from app.services.model_gateway import ModelGateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["ai"])

_gateway = ModelGateway()


# ---------- Dependencies: Redis (optional) + orchestrator ----------


def get_model_gateway() -> ModelGateway:
    return _gateway


async def _get_redis_analysis_cache_dep():
    """Async dependency: Redis analysis cache or None if Redis disabled/down."""
    from app.core.redis import get_redis_client, build_redis_analysis_cache
    client = await get_redis_client()
    return build_redis_analysis_cache(client) if client else None


def get_orchestrator(
    db: Session = Depends(get_db),
    redis_cache=Depends(_get_redis_analysis_cache_dep),
    gateway: ModelGateway = Depends(get_model_gateway),
) -> AnalysisOrchestrator:
    return AnalysisOrchestrator(cache=AnalysisCache(db, redis_cache), gateway=gateway)


# ---------- Health (Redis optional) ----------


@router.get("/health")
async def ai_health():
    """Health check: Redis status (optional). DB not checked here."""
    from app.core.redis import get_redis_client
    client = await get_redis_client()
    if client is None:
        return {"redis": "unavailable", "message": "Redis disabled or connection failed"}
    try:
        await client.ping()
        return {"redis": "ok"}
    except Exception as e:
        logger.warning("Redis health ping failed: %s", e)
        return {"redis": "error", "message": str(e)}


# ---------- Analysis tasks ----------


@router.post("/analyze-solution", response_model=AiResponse[AnalyzeSolutionData])
async def analyze_solution(
    body: CodeAnalysisRequest,
    user: User = Depends(get_current_user),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Analyze algorithmic approach and implementation."""
    outcome = await orchestrator.analyze(user.id, body)
    return outcome.to_response()


@router.post("/complexity-analysis", response_model=AiResponse[ComplexityAnalysisData])
async def complexity_analysis(
    body: ComplexityAnalysisRequest,
    user: User = Depends(get_current_user),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Calculate time and space complexity of a solution."""
    outcome = await orchestrator.complexity(user.id, body)
    return outcome.to_response()


@router.post("/optimize-solution", response_model=AiResponse[OptimizeSolutionData])
async def optimize_solution(
    body: OptimizeSolutionRequest,
    user: User = Depends(get_current_user),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Get an optimized version of a solution (optimizationFocus: time | space)."""
    outcome = await orchestrator.optimize(user.id, body)
    return outcome.to_response()


@router.post("/generate-test-cases", response_model=AiResponse[GenerateTestCasesData])
async def generate_test_cases(
    body: GenerateTestCasesRequest,
    user: User = Depends(get_current_user),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
):
    """Generate challenging test cases. forceRefresh=true skips the cached result."""
    outcome = await orchestrator.generate_tests(user.id, body)
    return outcome.to_response()
