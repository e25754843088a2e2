"""
Turn raw model text into the strict result shape of each analysis task.

The model is asked for JSON but may wrap it in a markdown fence, surround it
with prose, or put program syntax where a data array belongs
(`[i for i in range(10)]`, `new Array(5).fill(0)`). Steps:

1. Strip the code fence (```json ... ```).
2. json.loads.
3. On failure, one repair pass (cut to the outer object, then outside string
   literals blank out non-literal arrays and drop trailing commas) and one
   more json.loads.
4. Still failing, or not a JSON object: the task's default failure shape.
5. Otherwise coerce every field to its declared type.

Nothing here raises; every input yields a value of the right shape.
"""
import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from app.services.analysis_keys import AnalysisTask, FailureKind

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"
ANALYSIS_FAILED = "Analysis failed"
TEST_DIFFICULTIES = ("easy", "medium", "hard", "edge")
DEFAULT_DIFFICULTY = "medium"

_OPEN_FENCE_RE = re.compile(r"^```[\w+#.-]*[ \t]*\n?")

# Replacements only fire in value position (after ":", "[" or ",")
_VALUE_POS = r"([:\[,]\s*)"
_NON_LITERAL_ARRAYS = [
    # Python comprehension: [x * 2 for x in range(10) if x]
    re.compile(_VALUE_POS + r'\[(?:[^\[\]"]|"(?:[^"\\]|\\.)*")*?\bfor\s+[A-Za-z_][\w\s,()]*?\s+in\s+[^\[\]]*\]'),
    # JS spread: [...Array(5).keys()]
    re.compile(_VALUE_POS + r"\[\s*\.\.\.[^\[\]]*\]"),
    # Repetition: [0] * 1000, [1, 2] * n
    re.compile(_VALUE_POS + r"\[[^\[\]]*\]\s*\*\s*[\w.*]+"),
    # range(10), list(range(1, 5))
    re.compile(_VALUE_POS + r"(?:list\s*\(\s*range\s*\([^()]*\)\s*\)|range\s*\([^()]*\))"),
    # new Array(5).fill(0), Array.from({length: n}, (_, i) => i)
    re.compile(
        _VALUE_POS
        + r"(?:new\s+)?Array(?:\.from)?\s*\((?:[^()]|\([^()]*\))*\)"
        + r"(?:\s*\.\s*\w+\s*\((?:[^()]|\([^()]*\))*\))*"
    ),
]
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_STRING_LITERAL_RE = re.compile(r'"(?:[^"\\]|\\.)*"')

# Longer unparseable replies are not echoed back as the explanation text
MAX_ECHOED_TEXT_CHARS = 2000


@dataclass
class NormalizedResult:
    task: AnalysisTask
    result: Any  # dict for analyze/complexity/optimize, list for generateTests
    text: str
    error: bool = False
    failure: FailureKind | None = None


# ---- Text cleanup ----


def strip_code_fences(raw: str) -> str:
    """Remove an enclosing ```lang ... ``` fence; inner fences (e.g. inside optimizedCode) are kept."""
    text = (raw or "").strip()
    if not text.startswith("```"):
        return text
    text = _OPEN_FENCE_RE.sub("", text, count=1).rstrip()
    # Truncated output may lack the closing fence
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def repair_json_text(text: str) -> str:
    """Best-effort rewrite of almost-JSON. Heuristic; the result may still not parse."""
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        text = text[start:end + 1]
    # Rewrite only between string literals; quoted values (code, prose) stay verbatim
    pieces, pos = [], 0
    for match in _STRING_LITERAL_RE.finditer(text):
        pieces.append(_repair_segment(text[pos:match.start()]))
        pieces.append(match.group(0))
        pos = match.end()
    pieces.append(_repair_segment(text[pos:]))
    return "".join(pieces)


def _repair_segment(segment: str) -> str:
    for pattern in _NON_LITERAL_ARRAYS:
        segment = pattern.sub(r"\1[]", segment)
    return _TRAILING_COMMA_RE.sub(r"\1", segment)


def _load_object(text: str) -> dict | None:
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError, ValueError):
        try:
            data = json.loads(repair_json_text(text))
        except (json.JSONDecodeError, TypeError, ValueError):
            return None
    return data if isinstance(data, dict) else None


# ---- Field coercion ----


def _as_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    if isinstance(value, str):
        value = value.strip()
        return value or default
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)
    return json.dumps(value) if isinstance(value, bool) else str(value)


def _as_list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _str_list(value: Any) -> list[str]:
    return [s for s in (_as_str(v) for v in _as_list(value)) if s]


def _int_list(value: Any) -> list[int]:
    out = []
    for v in _as_list(value):
        if isinstance(v, bool):
            continue
        if isinstance(v, int):
            out.append(v)
        elif isinstance(v, float) and v.is_integer():
            out.append(int(v))
        elif isinstance(v, str) and v.strip().isdigit():
            out.append(int(v.strip()))
    return out


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    if isinstance(value, (int, float)):
        return value != 0
    return False


def _object_list(value: Any, build, text_field: str) -> list[dict]:
    """Coerce a list of objects; bare strings become an object with just `text_field` set."""
    out = []
    for item in _as_list(value):
        if isinstance(item, str) and item.strip():
            item = {text_field: item}
        if isinstance(item, dict):
            out.append(build(item))
    return out


def _alternative_approach(item: dict) -> dict:
    return {
        "description": _as_str(item.get("description")),
        "complexity": _as_str(item.get("complexity"), UNKNOWN),
        "suitability": _as_str(item.get("suitability")),
    }


def _critical_operation(item: dict) -> dict:
    return {
        "operation": _as_str(item.get("operation")),
        "impact": _as_str(item.get("impact")),
        "lineNumbers": _int_list(item.get("lineNumbers")),
    }


def _improvement(item: dict) -> dict:
    return {
        "description": _as_str(item.get("description")),
        "complexityBefore": _as_str(item.get("complexityBefore"), UNKNOWN),
        "complexityAfter": _as_str(item.get("complexityAfter"), UNKNOWN),
        "algorithmicChange": _as_str(item.get("algorithmicChange")),
    }


def _test_case(item: dict) -> dict:
    difficulty = _as_str(item.get("difficulty")).lower()
    return {
        "input": item.get("input") if item.get("input") is not None else "",
        "expectedOutput": item.get("expectedOutput") if item.get("expectedOutput") is not None else "",
        "purpose": _as_str(item.get("purpose")),
        "difficulty": difficulty if difficulty in TEST_DIFFICULTIES else DEFAULT_DIFFICULTY,
        "performanceTest": _as_bool(item.get("performanceTest")),
    }


def _time_complexity(value: Any) -> dict:
    value = value if isinstance(value, dict) else {}
    return {
        "bestCase": _as_str(value.get("bestCase"), UNKNOWN),
        "averageCase": _as_str(value.get("averageCase"), UNKNOWN),
        "worstCase": _as_str(value.get("worstCase"), UNKNOWN),
    }


def _coerce(task: AnalysisTask, data: dict) -> Any:
    if task == AnalysisTask.GENERATE_TESTS:
        return [_test_case(t) for t in _as_list(data.get("testCases")) if isinstance(t, dict)]
    if task == AnalysisTask.ANALYZE:
        return {
            "approachIdentified": _as_str(data.get("approachIdentified"), UNKNOWN),
            "optimizationTips": _str_list(data.get("optimizationTips")),
            "edgeCasesFeedback": _str_list(data.get("edgeCasesFeedback")),
            "alternativeApproaches": _object_list(
                data.get("alternativeApproaches"), _alternative_approach, "description"
            ),
        }
    if task == AnalysisTask.COMPLEXITY:
        return {
            "timeComplexity": _time_complexity(data.get("timeComplexity")),
            "spaceComplexity": _as_str(data.get("spaceComplexity"), UNKNOWN),
            "criticalOperations": _object_list(data.get("criticalOperations"), _critical_operation, "operation"),
            "comparisonToOptimal": _as_str(data.get("comparisonToOptimal"), UNKNOWN),
        }
    return {
        "optimizedCode": _as_str(data.get("optimizedCode")),
        "improvements": _object_list(data.get("improvements"), _improvement, "description"),
    }


# ---- Public API ----


def default_result(task: AnalysisTask) -> Any:
    """The defaulted shape returned whenever no usable model output exists."""
    if task == AnalysisTask.ANALYZE:
        return {
            "approachIdentified": ANALYSIS_FAILED,
            "optimizationTips": [],
            "edgeCasesFeedback": [],
            "alternativeApproaches": [],
        }
    if task == AnalysisTask.COMPLEXITY:
        return {
            "timeComplexity": {"bestCase": UNKNOWN, "averageCase": UNKNOWN, "worstCase": UNKNOWN},
            "spaceComplexity": UNKNOWN,
            "criticalOperations": [],
            "comparisonToOptimal": UNKNOWN,
        }
    if task == AnalysisTask.OPTIMIZE:
        return {"optimizedCode": "", "improvements": []}
    return []


def failure_result(task: AnalysisTask, kind: FailureKind, text: str = "") -> NormalizedResult:
    return NormalizedResult(
        task=task,
        result=default_result(task),
        text=text or ANALYSIS_FAILED,
        error=True,
        failure=kind,
    )


def parse_model_output(task: AnalysisTask, raw: str | None) -> NormalizedResult:
    """Total: returns the task's strict shape for any input, `error=True` when unusable."""
    try:
        body = strip_code_fences(raw or "")
        data = _load_object(body)
        if data is None:
            logger.warning("Model output for %s is not a JSON object (%d chars)", task.value, len(body))
            echoed = body if len(body) <= MAX_ECHOED_TEXT_CHARS else ""
            return failure_result(task, FailureKind.MALFORMED_RESPONSE, echoed)

        spec = task.spec
        nested = data.get(spec.result_key)
        source = {**data, **nested} if isinstance(nested, dict) else data
        text = _as_str(data.get(spec.model_text_key)) or _as_str(source.get(spec.model_text_key))
        return NormalizedResult(task=task, result=_coerce(task, source), text=text)
    except Exception:
        logger.exception("Unexpected error normalizing %s output", task.value)
        return failure_result(task, FailureKind.MALFORMED_RESPONSE)
