import json

from sqlalchemy.exc import OperationalError

from app.models.ai_analysis import AiAnalysis
from app.repositories.analysis_repository import AnalysisRepository
from app.services.analysis_keys import AnalysisTask

CODE_A = "def two_sum(nums, target):\n    seen = {}\n"
CODE_B = "def two_sum(nums, target):\n    return []\n"

ANALYZE_REPLY = json.dumps({
    "approachIdentified": "Hash map",
    "optimizationTips": ["Single pass"],
    "edgeCasesFeedback": [],
    "alternativeApproaches": [],
    "detailedAnalysis": "Uses a dictionary of seen values.",
})
COMPLEXITY_REPLY = json.dumps({
    "timeComplexity": {"bestCase": "O(1)", "averageCase": "O(n)", "worstCase": "O(n)"},
    "spaceComplexity": "O(n)",
    "criticalOperations": [{"operation": "dict lookup", "impact": "constant", "lineNumbers": [3]}],
    "comparisonToOptimal": "Optimal",
    "detailedAnalysis": "Linear scan.",
})
OPTIMIZE_REPLY = json.dumps({
    "optimizedCode": "def two_sum(nums, target): ...",
    "improvements": [{"description": "Early exit", "complexityBefore": "O(n^2)", "complexityAfter": "O(n)", "algorithmicChange": "hashing"}],
    "explanationText": "Replaced nested loop.",
})
TESTS_REPLY = json.dumps({
    "testCases": [{"input": {"nums": [2, 7], "target": 9}, "expectedOutput": [0, 1], "purpose": "basic", "difficulty": "easy"}],
    "explanationText": "Basic coverage.",
})


def analyze_body(code=CODE_A, **extra):
    return {"code": code, "language": "python", "problemId": "two-sum", **extra}


def tests_body(**extra):
    return {"problemStatement": "Find two numbers adding to target", "constraints": "2 <= n <= 10^4",
            "interviewId": "iv-1", "questionId": 1, **extra}


def test_analyze_miss_then_hit(client, gateway, auth_headers):
    gateway.reply(AnalysisTask.ANALYZE, ANALYZE_REPLY)

    first = client.post("/api/ai/analyze-solution", json=analyze_body(), headers=auth_headers)
    assert first.status_code == 200
    body = first.json()
    assert body["success"] is True
    assert body["message"] == "Code analysis completed"
    assert body["data"]["fromCache"] is False
    assert body["data"]["analysisText"] == "Uses a dictionary of seen values."
    assert body["data"]["algorithmAnalysis"]["approachIdentified"] == "Hash map"

    second = client.post("/api/ai/analyze-solution", json=analyze_body(), headers=auth_headers).json()
    assert second["message"] == "Cached code analysis retrieved"
    assert second["data"]["fromCache"] is True
    assert second["data"]["algorithmAnalysis"] == body["data"]["algorithmAnalysis"]
    assert second["data"]["analysisText"] == body["data"]["analysisText"]
    assert gateway.count(AnalysisTask.ANALYZE) == 1


def test_changed_code_is_a_new_analysis(client, gateway, auth_headers):
    gateway.reply(AnalysisTask.ANALYZE, ANALYZE_REPLY)
    url = "/api/ai/analyze-solution"

    assert client.post(url, json=analyze_body(CODE_A), headers=auth_headers).json()["data"]["fromCache"] is False
    assert client.post(url, json=analyze_body(CODE_B), headers=auth_headers).json()["data"]["fromCache"] is False
    assert client.post(url, json=analyze_body(CODE_A), headers=auth_headers).json()["data"]["fromCache"] is True
    assert gateway.count(AnalysisTask.ANALYZE) == 2


def test_cache_is_per_user(client, gateway, auth_headers, other_user, headers_for):
    gateway.reply(AnalysisTask.ANALYZE, ANALYZE_REPLY)
    client.post("/api/ai/analyze-solution", json=analyze_body(), headers=auth_headers)
    resp = client.post("/api/ai/analyze-solution", json=analyze_body(), headers=headers_for(other_user))
    assert resp.json()["data"]["fromCache"] is False
    assert gateway.count(AnalysisTask.ANALYZE) == 2


def test_tasks_share_one_record(client, gateway, auth_headers, db_session):
    gateway.reply(AnalysisTask.ANALYZE, ANALYZE_REPLY)
    gateway.reply(AnalysisTask.COMPLEXITY, COMPLEXITY_REPLY)

    client.post("/api/ai/analyze-solution", json=analyze_body(), headers=auth_headers)
    resp = client.post("/api/ai/complexity-analysis", json=analyze_body(), headers=auth_headers).json()

    assert resp["message"] == "Complexity analysis completed"
    assert resp["data"]["analysisText"] == "Linear scan."
    assert resp["data"]["complexityAnalysis"]["criticalOperations"][0]["lineNumbers"] == [3]
    assert db_session.query(AiAnalysis).count() == 1

    again = client.post("/api/ai/analyze-solution", json=analyze_body(), headers=auth_headers).json()
    assert again["data"]["analysisText"] == "Uses a dictionary of seen values."


def test_optimize(client, gateway, auth_headers):
    gateway.reply(AnalysisTask.OPTIMIZE, OPTIMIZE_REPLY)
    body = analyze_body(problemStatement="Two sum", optimizationFocus="time")
    resp = client.post("/api/ai/optimize-solution", json=body, headers=auth_headers).json()
    assert resp["success"] is True
    assert resp["message"] == "Solution optimization completed"
    assert resp["data"]["optimizationText"] == "Replaced nested loop."
    assert resp["data"]["optimizationSuggestions"]["improvements"][0]["complexityAfter"] == "O(n)"
    _, payload = gateway.calls[0]
    assert payload["optimizationFocus"] == "time"


def test_optimize_rejects_unknown_focus(client, gateway, auth_headers):
    body = analyze_body(problemStatement="Two sum", optimizationFocus="memory")
    resp = client.post("/api/ai/optimize-solution", json=body, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Valid optimization focus (time or space) is required"
    assert gateway.calls == []


def test_generate_tests_ignores_code(client, gateway, auth_headers):
    gateway.reply(AnalysisTask.GENERATE_TESTS, TESTS_REPLY)
    url = "/api/ai/generate-test-cases"

    first = client.post(url, json=tests_body(code=CODE_A, language="python"), headers=auth_headers).json()
    assert first["data"]["fromCache"] is False
    assert first["data"]["testCasesText"] == "Basic coverage."
    assert first["data"]["testCases"][0]["expectedOutput"] == [0, 1]

    second = client.post(url, json=tests_body(code=CODE_B, language="python"), headers=auth_headers).json()
    assert second["message"] == "Cached test cases retrieved"
    assert second["data"]["fromCache"] is True
    assert gateway.count(AnalysisTask.GENERATE_TESTS) == 1


def test_generate_tests_force_refresh_regenerates_and_stores(client, gateway, auth_headers):
    url = "/api/ai/generate-test-cases"
    gateway.reply(AnalysisTask.GENERATE_TESTS, TESTS_REPLY)
    client.post(url, json=tests_body(), headers=auth_headers)

    refreshed_reply = json.dumps({"testCases": [{"input": "[]", "expectedOutput": "[]", "purpose": "empty", "difficulty": "edge"}]})
    gateway.reply(AnalysisTask.GENERATE_TESTS, refreshed_reply)
    refreshed = client.post(url, json=tests_body(forceRefresh=True), headers=auth_headers).json()
    assert refreshed["data"]["fromCache"] is False
    assert refreshed["data"]["testCases"][0]["purpose"] == "empty"

    cached = client.post(url, json=tests_body(), headers=auth_headers).json()
    assert cached["data"]["fromCache"] is True
    assert cached["data"]["testCases"][0]["purpose"] == "empty"
    assert gateway.count(AnalysisTask.GENERATE_TESTS) == 2


def test_model_outage_is_a_soft_failure_and_not_cached(client, gateway, auth_headers, db_session):
    gateway.fail(AnalysisTask.ANALYZE)
    resp = client.post("/api/ai/analyze-solution", json=analyze_body(), headers=auth_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is False
    assert body["message"] == "Error performing code analysis"
    assert body["data"]["error"] is True
    assert body["data"]["fromCache"] is False
    assert body["data"]["algorithmAnalysis"]["approachIdentified"] == "Analysis failed"
    assert db_session.query(AiAnalysis).count() == 0

    gateway.reply(AnalysisTask.ANALYZE, ANALYZE_REPLY)
    retry = client.post("/api/ai/analyze-solution", json=analyze_body(), headers=auth_headers).json()
    assert retry["success"] is True
    assert retry["data"]["fromCache"] is False
    assert gateway.count(AnalysisTask.ANALYZE) == 2


def test_unparseable_model_output_is_not_cached(client, gateway, auth_headers, db_session):
    gateway.reply(AnalysisTask.COMPLEXITY, "Sorry, I can only answer in prose.")
    body = client.post("/api/ai/complexity-analysis", json=analyze_body(), headers=auth_headers).json()
    assert body["success"] is False
    assert body["data"]["error"] is True
    assert body["data"]["complexityAnalysis"]["spaceComplexity"] == "Unknown"
    assert body["data"]["analysisText"] == "Sorry, I can only answer in prose."
    assert db_session.query(AiAnalysis).count() == 0


def test_requires_authentication(client, gateway):
    resp = client.post("/api/ai/analyze-solution", json=analyze_body())
    assert resp.status_code == 401
    assert resp.json()["success"] is False
    assert gateway.calls == []


def test_missing_code_is_rejected(client, gateway, auth_headers):
    resp = client.post("/api/ai/analyze-solution", json={"language": "python", "problemId": "p"}, headers=auth_headers)
    assert resp.status_code == 400
    body = resp.json()
    assert body == {"success": False, "message": "Code and language are required", "errors": {"code": "code is required"}}
    assert gateway.calls == []


def test_missing_scope_is_rejected(client, gateway, auth_headers):
    body = {"code": CODE_A, "language": "python", "interviewId": "iv-1"}
    resp = client.post("/api/ai/analyze-solution", json=body, headers=auth_headers)
    assert resp.status_code == 400
    assert "scope" in resp.json()["errors"]


def test_long_language_tag_is_stored(client, gateway, auth_headers, db_session):
    language = "python3-with-numpy-and-typing-extensions"
    gateway.reply(AnalysisTask.ANALYZE, ANALYZE_REPLY)
    resp = client.post("/api/ai/analyze-solution", json=analyze_body(language=language), headers=auth_headers)
    assert resp.status_code == 200
    assert db_session.query(AiAnalysis).one().language == language
    assert AiAnalysis.__table__.c.language.type.length is None


def test_oversized_scope_id_is_rejected_before_the_model(client, gateway, auth_headers):
    resp = client.post("/api/ai/analyze-solution", json=analyze_body(problemId="p" * 65), headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Validation failed"
    assert "problemId" in resp.json()["errors"]
    assert gateway.calls == []


def test_generate_tests_requires_constraints(client, auth_headers):
    resp = client.post("/api/ai/generate-test-cases", json={"problemStatement": "x", "problemId": "p"}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Problem statement and constraints are required"


def test_storage_failure_is_a_server_error(client, gateway, auth_headers, monkeypatch):
    def boom(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(AnalysisRepository, "set_slot", staticmethod(boom))
    gateway.reply(AnalysisTask.ANALYZE, ANALYZE_REPLY)
    resp = client.post("/api/ai/analyze-solution", json=analyze_body(), headers=auth_headers)
    assert resp.status_code == 500
    assert resp.json()["success"] is False


def test_health_without_redis(client):
    assert client.get("/api/ai/health").json()["redis"] == "unavailable"
