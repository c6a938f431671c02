"""Owner analytics API endpoint."""

from fastapi import APIRouter, Depends

from ..auth.dependencies import get_current_user
from ..db.models import User
from ..domain.service import LinkPageService
from .dependencies import get_link_service
from .schemas import AnalyticsResponse, ProblemDetails

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.get(
    "",
    response_model=AnalyticsResponse,
    responses={401: {"model": ProblemDetails, "description": "Not authenticated"}},
)
async def get_analytics(
    current_user: User = Depends(get_current_user),
    service: LinkPageService = Depends(get_link_service),
) -> AnalyticsResponse:
    """
    Dashboard totals for the caller.

    ``totalClicks`` and ``monthlyClicks`` count recorded click events,
    ``pageViews`` counts profile views, and ``linkStats`` reports each
    link's live click counter.
    """
    summary = await service.get_analytics(current_user.id)
    return AnalyticsResponse.model_validate(summary)
