"""
System instructions and user prompts for the four analysis tasks.
Each instruction pins the exact JSON shape the response normalizer expects.
"""
import json

from app.services.ai_security import filter_secrets_from_dict, filter_secrets_from_text
from app.services.analysis_keys import AnalysisTask

_JSON_RULES = """Respond with a single JSON object and nothing else: no markdown fences, no prose outside the object.
Every array must be a literal JSON array. Never write code expressions such as list comprehensions,
range(...), Array(...) or [0] * n inside the JSON; write the concrete values or a short string description instead."""

ANALYZE_SYSTEM_INSTRUCTION = f"""You are an expert algorithm and code reviewer specialized in competitive programming.
Identify the algorithm and approach used, assess edge case handling and suggest optimizations.

{_JSON_RULES}

Schema:
{{
  "approachIdentified": "name of the algorithm / technique",
  "optimizationTips": ["..."],
  "edgeCasesFeedback": ["..."],
  "alternativeApproaches": [{{"description": "...", "complexity": "O(...)", "suitability": "..."}}],
  "detailedAnalysis": "free-form explanation in markdown"
}}"""

COMPLEXITY_SYSTEM_INSTRUCTION = f"""You are an expert in algorithmic analysis and complexity theory. Provide precise complexity analysis.

{_JSON_RULES}

Schema:
{{
  "timeComplexity": {{"bestCase": "O(...)", "averageCase": "O(...)", "worstCase": "O(...)"}},
  "spaceComplexity": "O(...)",
  "criticalOperations": [{{"operation": "...", "impact": "...", "lineNumbers": [1, 2]}}],
  "comparisonToOptimal": "...",
  "detailedAnalysis": "free-form explanation in markdown"
}}"""

OPTIMIZE_SYSTEM_INSTRUCTION = f"""You are an expert algorithm optimizer. Focus on algorithmic improvements rather than code style.

{_JSON_RULES}

Schema:
{{
  "optimizedCode": "the full optimized source code",
  "improvements": [{{"description": "...", "complexityBefore": "O(...)", "complexityAfter": "O(...)", "algorithmicChange": "..."}}],
  "explanationText": "free-form explanation in markdown"
}}"""

GENERATE_TESTS_SYSTEM_INSTRUCTION = f"""You are an expert test case generator for competitive programming problems.
Cover normal scenarios, edge cases that break naive solutions and performance cases that challenge inefficient ones.

{_JSON_RULES}
For large performance inputs, describe the input in a string (e.g. "n = 100000, all ones") instead of writing it out.

Schema:
{{
  "testCases": [{{"input": ..., "expectedOutput": ..., "purpose": "...", "difficulty": "easy|medium|hard|edge", "performanceTest": false}}],
  "explanationText": "free-form explanation in markdown"
}}"""

SYSTEM_INSTRUCTIONS = {
    AnalysisTask.ANALYZE: ANALYZE_SYSTEM_INSTRUCTION,
    AnalysisTask.COMPLEXITY: COMPLEXITY_SYSTEM_INSTRUCTION,
    AnalysisTask.OPTIMIZE: OPTIMIZE_SYSTEM_INSTRUCTION,
    AnalysisTask.GENERATE_TESTS: GENERATE_TESTS_SYSTEM_INSTRUCTION,
}


def _code_block(payload: dict) -> str:
    language = payload.get("language") or ""
    code = filter_secrets_from_text(payload.get("code") or "")
    return f"```{language}\n{code}\n```"


def build_analyze_prompt(payload: dict) -> str:
    parts = [f"Analyze the following {payload.get('language')} code:\n\n", _code_block(payload)]
    if payload.get("problemStatement"):
        parts.append(f"\n\nThe code is solving this problem:\n{filter_secrets_from_text(payload['problemStatement'])}")
    parts.append(
        "\n\nProvide: algorithm identification, approach analysis, "
        "edge case handling assessment and potential optimization suggestions."
    )
    return "".join(parts)


def build_complexity_prompt(payload: dict) -> str:
    parts = [f"Analyze the time and space complexity of the following {payload.get('language')} code:\n\n", _code_block(payload)]
    if payload.get("problemType"):
        parts.append(f"\n\nThis is a {payload['problemType']} type problem.")
    parts.append(
        "\n\nProvide: best, average and worst-case time complexity in Big O notation, space complexity, "
        "the critical operations affecting complexity, and a comparison to the optimal solution if known."
    )
    return "".join(parts)


def build_optimize_prompt(payload: dict) -> str:
    focus = "time efficiency" if payload.get("optimizationFocus") == "time" else "space efficiency"
    return "".join([
        f"Optimize the following {payload.get('language')} code for {focus}:\n\n",
        _code_block(payload),
        f"\n\nThe code is solving this problem:\n{filter_secrets_from_text(payload.get('problemStatement') or '')}",
        "\n\nProvide: an optimized version of the code, the algorithmic improvements, "
        "and a complexity comparison between the original and optimized solution.",
    ])


def build_generate_tests_prompt(payload: dict) -> str:
    constraints = filter_secrets_from_dict(payload.get("constraints"))
    parts = [
        "Generate comprehensive test cases for the following problem:\n\n",
        filter_secrets_from_text(payload.get("problemStatement") or ""),
        "\n\nConstraints:\n",
        json.dumps(constraints, indent=2, default=str) if not isinstance(constraints, str) else constraints,
    ]
    if payload.get("solutionHint"):
        parts.append(f"\n\nSolution approach hint: {filter_secrets_from_text(payload['solutionHint'])}")
    parts.append("\n\nFor each test case include the input, the expected output and what aspect it is testing.")
    return "".join(parts)


PROMPT_BUILDERS = {
    AnalysisTask.ANALYZE: build_analyze_prompt,
    AnalysisTask.COMPLEXITY: build_complexity_prompt,
    AnalysisTask.OPTIMIZE: build_optimize_prompt,
    AnalysisTask.GENERATE_TESTS: build_generate_tests_prompt,
}
