"""Article validation API endpoints."""

import logging
from typing import Any, Dict

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from pydantic import BaseModel, Field

from ...domain.errors import SequencerBusyError
from ...domain.services.article_pipeline import ArticleValidationPipeline
from ...infrastructure.dependencies import get_article_pipeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/articles", tags=["articles"])


class ArticleRequest(BaseModel):
    """Request model for article validation."""

    content: str = Field(..., description="Markdown article with YAML front matter")
    filename: str = Field(..., min_length=1, description="Path of the article file")


@router.post("/validate")
async def validate_article(
    request: ArticleRequest,
    pipeline: ArticleValidationPipeline = Depends(get_article_pipeline),
) -> Dict[str, Any]:
    """Run the full validation pipeline and return the verdict.

    Validation failures are reported in the verdict body, never as HTTP errors.
    """
    logger.info(f"Validating article {request.filename} ({len(request.content)} chars)")
    verdict = await pipeline.validate_article(request.content, request.filename)
    return verdict.to_dict()


@router.post("/jobs", status_code=202)
async def submit_job(
    request: ArticleRequest,
    background_tasks: BackgroundTasks,
    pipeline: ArticleValidationPipeline = Depends(get_article_pipeline),
) -> Dict[str, Any]:
    """Queue an article for sequenced validation."""
    try:
        job = pipeline.enqueue(request.content, request.filename)
    except SequencerBusyError as e:
        raise HTTPException(status_code=503, detail=f"{type(e).__name__}: {e}")

    background_tasks.add_task(pipeline.drain, job)
    return job.to_dict()


@router.get("/jobs/{job_id}")
async def get_job(
    job_id: str,
    pipeline: ArticleValidationPipeline = Depends(get_article_pipeline),
) -> Dict[str, Any]:
    """Get the status, and once finished the result, of a job."""
    job = pipeline.sequencer.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail=f"Job not found: {job_id}")
    return job.to_dict()


@router.get("/queue")
async def get_queue(
    pipeline: ArticleValidationPipeline = Depends(get_article_pipeline),
) -> Dict[str, Any]:
    """Get the active job and the jobs waiting behind it."""
    return pipeline.sequencer.status()
