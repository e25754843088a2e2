from typing import Any
from fastapi import APIRouter, Body, Depends
from app.services.job_search import JobSearchClient

router = APIRouter(prefix="/api/xjobs", tags=["jobs"])


def get_job_search_client() -> JobSearchClient:
    return JobSearchClient()


@router.post("")
async def search_jobs(
    body: dict[str, Any] = Body(default={}),
    jobs: JobSearchClient = Depends(get_job_search_client),
):
    """Search job postings. All search parameters are required; nullable ones may be null."""
    data = await jobs.search(body)
    return {"success": True, "data": data}


@router.post("/details")
async def job_details(
    body: dict[str, Any] = Body(default={}),
    jobs: JobSearchClient = Depends(get_job_search_client),
):
    """Job posting details by jobId. loggedIn defaults to true."""
    logged_in = body.get("loggedIn")
    data = await jobs.details(body.get("jobId"), True if logged_in is None else bool(logged_in))
    return {"success": True, "data": data}
