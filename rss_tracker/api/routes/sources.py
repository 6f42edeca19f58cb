"""Source registry endpoints: CRUD over the sources table."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from rss_tracker.api.dependencies import get_sources_service
from rss_tracker.api.models import (
    CreateSourceRequest,
    ErrorResponse,
    SourceItem,
    SourcesListResponse,
    UpdateSourceRequest,
)
from rss_tracker.sources.schemas import Source, SourceUpdate
from rss_tracker.sources.service import SourcesService

logger = structlog.get_logger(__name__)
router = APIRouter()


def _source_to_item(s: Source) -> SourceItem:
    return SourceItem(
        name=s.name,
        url=s.url,
        category=s.category,
        language=s.language,
        enabled=s.enabled,
        color=s.color,
        max_articles=s.max_articles,
        created_at=s.created_at.isoformat() if s.created_at else None,
        updated_at=s.updated_at.isoformat() if s.updated_at else None,
    )


def _not_found(name: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Source '{name}' not found",
    )


@router.get(
    "/sources",
    response_model=SourcesListResponse,
    summary="List all sources",
)
async def list_sources(
    service: SourcesService = Depends(get_sources_service),
) -> SourcesListResponse:
    sources = await service.list_sources()
    return SourcesListResponse(
        total=len(sources),
        sources=[_source_to_item(s) for s in sources],
    )


@router.post(
    "/sources",
    response_model=SourceItem,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse, "description": "Name already exists"}},
    summary="Add a source",
)
async def create_source(
    body: CreateSourceRequest,
    service: SourcesService = Depends(get_sources_service),
) -> SourceItem:
    source = Source(
        name=body.name.strip(),
        url=body.url.strip(),
        category=body.category.strip(),
        language=body.language,
        enabled=body.enabled,
        color=body.color,
        max_articles=body.max_articles or 0,
    )
    if not await service.create(source):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Source '{source.name}' already exists",
        )

    logger.info("source_created", name=source.name, category=source.category)
    created = await service.get(source.name)
    return _source_to_item(created or source)


@router.patch(
    "/sources/{name}/toggle",
    response_model=SourceItem,
    responses={404: {"model": ErrorResponse}},
    summary="Enable or disable a source",
)
async def toggle_source(
    name: str,
    service: SourcesService = Depends(get_sources_service),
) -> SourceItem:
    source = await service.toggle(name)
    if source is None:
        raise _not_found(name)
    logger.info("source_toggled", name=name, enabled=source.enabled)
    return _source_to_item(source)


@router.patch(
    "/sources/{name}",
    response_model=SourceItem,
    responses={
        400: {"model": ErrorResponse, "description": "Empty update"},
        404: {"model": ErrorResponse},
    },
    summary="Update a source",
)
async def update_source(
    name: str,
    body: UpdateSourceRequest,
    service: SourcesService = Depends(get_sources_service),
) -> SourceItem:
    update = SourceUpdate(**body.model_dump(exclude_none=True))
    if not update.to_fields():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update",
        )

    source = await service.update(name, update)
    if source is None:
        raise _not_found(name)
    return _source_to_item(source)


@router.delete(
    "/sources/{name}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
    summary="Delete a source",
)
async def delete_source(
    name: str,
    service: SourcesService = Depends(get_sources_service),
) -> None:
    if not await service.delete(name):
        raise _not_found(name)
    logger.info("source_deleted", name=name)
