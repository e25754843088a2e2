"""
Job search proxy over the X (Twitter) jobs GraphQL endpoints.
Query variables travel JSON-encoded in the `variables` URL parameter; credentials come from settings.
"""
import json
import logging
from typing import Any

import httpx
from fastapi import status

from app.config import get_settings
from app.core.errors import ApiError

logger = logging.getLogger(__name__)

# Must be present in the body (null allowed)
PRESENT_PARAMS = ("count", "cursor", "job_location_id", "company_name", "industry")
# Must be present and non-empty
NON_EMPTY_PARAMS = ("keyword", "job_location", "job_location_type", "seniority_level", "employment_type")
SEARCH_PARAM_ORDER = (
    "count", "cursor", "keyword", "job_location_id", "job_location",
    "job_location_type", "seniority_level", "company_name", "employment_type", "industry",
)
SEARCH_PARAMS_KEYS = SEARCH_PARAM_ORDER[2:]


def missing_search_params(body: dict[str, Any]) -> list[str]:
    missing = []
    for name in SEARCH_PARAM_ORDER:
        if name in PRESENT_PARAMS:
            if name not in body:
                missing.append(name)
        elif not body.get(name):
            missing.append(name)
    return missing


def build_search_variables(body: dict[str, Any]) -> dict[str, Any]:
    return {
        "count": body["count"],
        "cursor": body["cursor"],
        "searchParams": {key: body[key] for key in SEARCH_PARAMS_KEYS},
    }


class JobSearchClient:
    def __init__(self, transport: httpx.AsyncBaseTransport | None = None):
        self._settings = get_settings()
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"accept": "*/*", "content-type": "application/json"}
        if self._settings.job_search_bearer_token:
            headers["authorization"] = f"Bearer {self._settings.job_search_bearer_token}"
        return headers

    async def _query(self, url: str, variables: dict[str, Any], what: str) -> Any:
        params = {"variables": json.dumps(variables, separators=(",", ":"))}
        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=self._settings.job_search_timeout_seconds,
                headers=self._headers(),
            ) as client:
                response = await client.get(url, params=params)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.error("Job %s request returned HTTP %s", what, e.response.status_code)
            raise ApiError(f"HTTP error! Status: {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.exception("Job %s request failed: %s", what, e)
            raise ApiError(f"Error fetching job {what}") from e

    async def search(self, body: dict[str, Any]) -> Any:
        missing = missing_search_params(body)
        if missing:
            raise ApiError(f"Missing parameters: {', '.join(missing)}", status.HTTP_400_BAD_REQUEST)
        return await self._query(self._settings.job_search_url, build_search_variables(body), "search")

    async def details(self, job_id: Any, logged_in: bool = True) -> Any:
        if not job_id:
            raise ApiError("Missing required parameter: jobId", status.HTTP_400_BAD_REQUEST)
        variables = {"jobId": job_id, "loggedIn": logged_in}
        return await self._query(self._settings.job_details_url, variables, "details")
