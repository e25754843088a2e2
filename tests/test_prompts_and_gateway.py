from types import SimpleNamespace

from app.services.ai_security import filter_secrets_from_dict, filter_secrets_from_text
from app.services.analysis_keys import AnalysisTask, FailureKind
from app.services.analysis_prompts import PROMPT_BUILDERS, SYSTEM_INSTRUCTIONS
from app.services.model_gateway import ModelGateway


def test_secrets_in_code_are_redacted():
    code = 'API_KEY = "abcd1234efgh"\nurl = "postgres://admin:hunter2@db:5432/app"\n'
    out = filter_secrets_from_text(code)
    assert "abcd1234efgh" not in out
    assert "hunter2" not in out
    assert "postgres://admin:***REDACTED***@db:5432/app" in out


def test_sensitive_keys_are_redacted():
    assert filter_secrets_from_dict({"n": 5, "password": "x", "nested": [{"token": "t"}]}) == {
        "n": 5,
        "password": "***REDACTED***",
        "nested": [{"token": "***REDACTED***"}],
    }


def test_prompts_carry_the_request():
    payload = {"code": "print(1)", "language": "python", "problemStatement": "Print one", "optimizationFocus": "space"}
    assert "```python\nprint(1)\n```" in PROMPT_BUILDERS[AnalysisTask.ANALYZE](payload)
    assert "space efficiency" in PROMPT_BUILDERS[AnalysisTask.OPTIMIZE](payload)
    tests_prompt = PROMPT_BUILDERS[AnalysisTask.GENERATE_TESTS](
        {"problemStatement": "Sum", "constraints": {"n": "<= 10^5"}, "solutionHint": "prefix sums"}
    )
    assert '"n": "<= 10^5"' in tests_prompt
    assert "prefix sums" in tests_prompt
    assert all('"testCases"' not in SYSTEM_INSTRUCTIONS[t] for t in (AnalysisTask.ANALYZE, AnalysisTask.COMPLEXITY))


class FakeModels:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.requests = []

    def generate_content(self, model, contents, config):
        self.requests.append((model, contents, config))
        if self.error:
            raise self.error
        part = SimpleNamespace(text=self.text)
        candidate = SimpleNamespace(content=SimpleNamespace(parts=[part]))
        return SimpleNamespace(candidates=[candidate], text=self.text)


def test_gateway_returns_raw_text():
    models = FakeModels(text='{"testCases": []}')
    reply = ModelGateway(client=SimpleNamespace(models=models)).invoke(
        AnalysisTask.GENERATE_TESTS, {"problemStatement": "p", "constraints": "c"}
    )
    assert reply.ok
    assert reply.text == '{"testCases": []}'
    _, _, config = models.requests[0]
    assert config.response_mime_type == "application/json"
    assert config.temperature == 0.2


def test_gateway_turns_errors_into_upstream_failure():
    models = FakeModels(error=TimeoutError("deadline exceeded"))
    reply = ModelGateway(client=SimpleNamespace(models=models)).invoke(AnalysisTask.ANALYZE, {"code": "x", "language": "c"})
    assert not reply.ok
    assert reply.failure == FailureKind.UPSTREAM_UNAVAILABLE
    assert "deadline exceeded" in reply.detail


def test_gateway_empty_response_is_a_failure():
    models = FakeModels(text=None)
    models.generate_content = lambda **kwargs: SimpleNamespace(candidates=[], text=None)
    reply = ModelGateway(client=SimpleNamespace(models=models)).invoke(AnalysisTask.ANALYZE, {"code": "x", "language": "c"})
    assert reply.failure == FailureKind.UPSTREAM_UNAVAILABLE
