"""Link management and click tracking API endpoints."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from ..auth.dependencies import get_current_user
from ..db.models import User
from ..domain.errors import NotFound
from ..domain.service import LINK_NOT_FOUND, LinkPageService
from .dependencies import get_link_service
from .schemas import (
    ClickResponse,
    LinkAnalyticsResponse,
    LinkCreate,
    LinkResponse,
    LinkUpdate,
    ProblemDetails,
    SuccessResponse,
)

router = APIRouter(prefix="/api/links", tags=["links"])


def parse_link_id(link_id: str) -> UUID:
    """Path ids that are not UUIDs cannot name a link."""
    try:
        return UUID(link_id)
    except ValueError:
        raise NotFound(LINK_NOT_FOUND)


@router.get(
    "",
    response_model=List[LinkResponse],
    responses={401: {"model": ProblemDetails, "description": "Not authenticated"}},
)
async def list_links(
    current_user: User = Depends(get_current_user),
    service: LinkPageService = Depends(get_link_service),
) -> List[LinkResponse]:
    """List the caller's links, active and inactive, in display order."""
    links = await service.list_links(current_user.id)
    return [LinkResponse.model_validate(link) for link in links]


@router.post(
    "",
    response_model=LinkResponse,
    responses={
        400: {"model": ProblemDetails, "description": "Invalid title or URL"},
        401: {"model": ProblemDetails, "description": "Not authenticated"},
    },
)
async def create_link(
    link_data: LinkCreate,
    current_user: User = Depends(get_current_user),
    service: LinkPageService = Depends(get_link_service),
) -> LinkResponse:
    """Add a link at the end of the caller's list."""
    link = await service.create_link(
        current_user.id,
        title=link_data.title,
        url=link_data.url,
        icon=link_data.icon,
    )
    return LinkResponse.model_validate(link)


@router.put(
    "/{link_id}",
    response_model=LinkResponse,
    responses={
        400: {"model": ProblemDetails, "description": "Validation error"},
        401: {"model": ProblemDetails, "description": "Not authenticated"},
        404: {"model": ProblemDetails, "description": "Link not found"},
    },
)
async def update_link(
    link_id: str,
    link_data: LinkUpdate,
    current_user: User = Depends(get_current_user),
    service: LinkPageService = Depends(get_link_service),
) -> LinkResponse:
    """Partially update one of the caller's links."""
    link = await service.update_link(
        current_user.id,
        parse_link_id(link_id),
        link_data.model_dump(exclude_unset=True),
    )
    return LinkResponse.model_validate(link)


@router.delete(
    "/{link_id}",
    response_model=SuccessResponse,
    responses={
        401: {"model": ProblemDetails, "description": "Not authenticated"},
        404: {"model": ProblemDetails, "description": "Link not found"},
    },
)
async def delete_link(
    link_id: str,
    current_user: User = Depends(get_current_user),
    service: LinkPageService = Depends(get_link_service),
) -> SuccessResponse:
    """Delete one of the caller's links together with its click history."""
    await service.delete_link(current_user.id, parse_link_id(link_id))
    return SuccessResponse()


@router.post(
    "/{link_id}/click",
    response_model=ClickResponse,
    responses={404: {"model": ProblemDetails, "description": "Link not found"}},
)
async def record_click(
    link_id: str,
    service: LinkPageService = Depends(get_link_service),
) -> ClickResponse:
    """
    Record a visitor's click and return the URL to redirect to.

    No authentication is required. Inactive links still count clicks.
    """
    url = await service.record_click(parse_link_id(link_id))
    return ClickResponse(url=url)


@router.get(
    "/{link_id}/analytics",
    response_model=LinkAnalyticsResponse,
    responses={
        401: {"model": ProblemDetails, "description": "Not authenticated"},
        404: {"model": ProblemDetails, "description": "Link not found"},
    },
)
async def get_link_analytics(
    link_id: str,
    current_user: User = Depends(get_current_user),
    service: LinkPageService = Depends(get_link_service),
) -> LinkAnalyticsResponse:
    """Click statistics for one of the caller's links."""
    stats = await service.get_link_analytics(current_user.id, parse_link_id(link_id))
    return LinkAnalyticsResponse.model_validate(stats)
