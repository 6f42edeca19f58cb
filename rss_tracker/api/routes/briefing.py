"""Daily briefing endpoint."""

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, status

from rss_tracker.analytics.briefing import BriefingService, NoArticlesForBriefing
from rss_tracker.api.dependencies import get_briefing_service
from rss_tracker.api.models import BriefingResponse, ErrorResponse

router = APIRouter()


@router.get(
    "/briefing",
    response_model=BriefingResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Daily briefing",
    description=(
        "Per-category summaries of the last day's top analyzed articles, "
        "a global synthesis, the overall market sentiment and trending words. "
        "Summaries are generated on request and may take several seconds."
    ),
)
async def daily_briefing(
    service: BriefingService = Depends(get_briefing_service),
) -> BriefingResponse:
    try:
        briefing = await service.generate()
    except NoArticlesForBriefing as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return BriefingResponse(**asdict(briefing))
