"""
Gemini gateway for the code analysis tasks.
One call per invocation, no retries. Transport and provider errors come back as a
ModelReply carrying a failure kind instead of an exception.
"""
import logging
from dataclasses import dataclass
from pathlib import Path

from app.config import get_settings
from app.services.analysis_keys import AnalysisTask, FailureKind
from app.services.analysis_prompts import PROMPT_BUILDERS, SYSTEM_INSTRUCTIONS

logger = logging.getLogger(__name__)

# Lazy client to avoid import/credentials errors at import time
_gemini_client = None


def _get_client():
    global _gemini_client
    if _gemini_client is not None:
        return _gemini_client
    try:
        from google import genai
        from google.oauth2 import service_account
    except ImportError as e:
        raise RuntimeError(
            "Google GenAI not installed. pip install google-genai google-auth"
        ) from e

    settings = get_settings()
    if settings.vertex_project_id:
        credentials = None
        if settings.vertex_credentials_path:
            path = Path(settings.vertex_credentials_path)
            if path.is_file():
                credentials = service_account.Credentials.from_service_account_file(
                    str(path),
                    scopes=["https://www.googleapis.com/auth/cloud-platform"],
                )
        _gemini_client = genai.Client(
            vertexai=True,
            project=settings.vertex_project_id,
            location=settings.vertex_location,
            credentials=credentials,
        )
    elif settings.gemini_api_key:
        _gemini_client = genai.Client(api_key=settings.gemini_api_key)
    else:
        raise RuntimeError("Neither vertex_project_id nor gemini_api_key is configured")
    return _gemini_client


@dataclass
class ModelReply:
    text: str | None = None
    failure: FailureKind | None = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.failure is None


class ModelGateway:
    """Sends a task prompt to Gemini and returns the raw text of the first candidate."""

    def __init__(self, client=None):
        self._client = client

    def _temperature(self, task: AnalysisTask) -> float:
        settings = get_settings()
        if task == AnalysisTask.GENERATE_TESTS:
            return settings.test_generation_temperature
        return settings.analysis_temperature

    def invoke(self, task: AnalysisTask, payload: dict) -> ModelReply:
        try:
            client = self._client or _get_client()
            from google.genai.types import GenerateContentConfig

            response = client.models.generate_content(
                model=get_settings().gemini_model,
                contents=PROMPT_BUILDERS[task](payload),
                config=GenerateContentConfig(
                    system_instruction=SYSTEM_INSTRUCTIONS[task],
                    temperature=self._temperature(task),
                    max_output_tokens=get_settings().analysis_max_output_tokens,
                    response_mime_type="application/json",
                ),
            )
            if not response or not response.candidates:
                raise ValueError("Empty response from model")
            candidate = response.candidates[0]
            if not candidate.content or not candidate.content.parts:
                raise ValueError("No text in model response")
            text = getattr(response, "text", None) or candidate.content.parts[0].text
        except Exception as e:
            logger.warning("Gemini %s call failed (%s): %s", task.value, FailureKind.UPSTREAM_UNAVAILABLE.value, e)
            return ModelReply(failure=FailureKind.UPSTREAM_UNAVAILABLE, detail=str(e))
        return ModelReply(text=text)
