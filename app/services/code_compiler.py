"""
Proxy to the hosted compiler widget: submit source for execution, then poll for the result.
Language ids are the widget's compiler ids.
"""
import logging
from typing import Any

import httpx
from fastapi import status

from app.config import get_settings
from app.core.errors import ApiError, ValidationError

logger = logging.getLogger(__name__)

LANGUAGE_IDS = {
    "javascript": 112,
    "python": 113,
    "c": 114,
    "cpp": 115,
    "java": 116,
}

_HEADERS = {
    "accept": "application/json, text/javascript, */*; q=0.01",
    "x-requested-with": "XMLHttpRequest",
}


class CodeCompilerClient:
    def __init__(self, transport: httpx.AsyncBaseTransport | None = None):
        self._settings = get_settings()
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self._transport,
            timeout=self._settings.compiler_timeout_seconds,
            headers=_HEADERS,
        )

    def build_form(self, code: str, language: str, input_data: str | None, time_limit: int | None) -> dict[str, str]:
        return {
            "widget_form[custom_data]": "",
            "widget_form[time_limit]": str(time_limit or self._settings.compiler_default_time_limit),
            "widget_form[_token]": self._settings.compiler_token,
            "widget_form[source]": code,
            "widget_form[compiler]": str(LANGUAGE_IDS[language]),
            "widget_form[input]": input_data or "",
        }

    async def submit(self, code: str | None, language: str | None,
                     input_data: str | None = None, time_limit: int | None = None) -> int:
        """Submit code; returns the submission id to poll."""
        if not code or not language:
            raise ApiError("Code and language are required", status.HTTP_400_BAD_REQUEST)
        if language not in LANGUAGE_IDS:
            raise ApiError(
                "Invalid language. Supported languages: " + ", ".join(LANGUAGE_IDS),
                status.HTTP_400_BAD_REQUEST,
            )

        form = self.build_form(code, language, input_data, time_limit)
        try:
            async with self._client() as client:
                response = await client.post(self._settings.compiler_submit_url, data=form)
        except httpx.HTTPError as e:
            logger.exception("Compiler submit request failed: %s", e)
            raise ApiError("Internal server error during code submission") from e

        if response.is_error:
            raise ApiError("Failed to submit code to compilation service", response.status_code)

        payload = _json_or_error(response, "Internal server error during code submission")
        if not payload.get("result"):
            raise ValidationError("Code submission failed", _errors_dict(payload.get("errors")))
        return payload["data"]["id"]

    async def result(self, submission_id: str) -> dict[str, Any]:
        """Execution status: {"status": "executing", "submissionId"} or {"status": "completed", ...details}."""
        url = f"{self._settings.compiler_status_url.rstrip('/')}/{submission_id}"
        try:
            async with self._client() as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            logger.exception("Compiler status request failed: %s", e)
            raise ApiError("Internal server error during result retrieval") from e

        if response.is_error:
            raise ApiError("Failed to get code execution results", response.status_code)

        payload = _json_or_error(response, "Internal server error during result retrieval")
        if not payload.get("result"):
            raise ApiError("Failed to get code execution results", status.HTTP_400_BAD_REQUEST)

        runs = payload.get("data") or []
        first = runs[0] if runs and isinstance(runs[0], dict) else {}
        if first.get("executing"):
            return {"status": "executing", "submissionId": submission_id}
        return {"status": "completed", **first}


def _json_or_error(response: httpx.Response, message: str) -> dict:
    try:
        payload = response.json()
    except ValueError as e:
        logger.warning("Compiler returned non-JSON body (status %s)", response.status_code)
        raise ApiError(message) from e
    if not isinstance(payload, dict):
        raise ApiError(message)
    return payload


def _errors_dict(errors: Any) -> dict[str, str]:
    if isinstance(errors, dict):
        return {str(k): str(v) for k, v in errors.items()}
    if isinstance(errors, list):
        return {str(i): str(e) for i, e in enumerate(errors)}
    return {}
