"""Dashboard widget endpoints: a structural team-scoped resource."""

from __future__ import annotations

import structlog
from fastapi import APIRouter

from teamgate_service.auth.models import TeamContext
from teamgate_service.auth.policies import Operation, gate, require, require_member
from teamgate_service.db.deps import WidgetsRepoDep
from teamgate_service.errors import ResourceNotFound, validation_error
from teamgate_service.rest.schemas import (
    CreateWidgetRequest,
    UpdateWidgetRequest,
    WidgetListResponse,
    WidgetSchema,
)
from teamgate_service.validation import parse_uuid

log = structlog.get_logger(__name__)

router = APIRouter()


def _widget_to_schema(widget) -> WidgetSchema:
    return WidgetSchema(
        id=str(widget.id),
        team_id=str(widget.team_id),
        widget_type=widget.widget_type,
        title=widget.title,
        data=widget.data or {},
        position=widget.position,
        is_active=widget.is_active,
        created_at=widget.created_at,
        last_updated=widget.last_updated,
    )


@router.get("/teams/{team_id}/dashboard-widgets", response_model=WidgetListResponse)
async def list_widgets(
    repo: WidgetsRepoDep,
    ctx: TeamContext = require(Operation.READ),
) -> WidgetListResponse:
    widgets = [_widget_to_schema(w) for w in await repo.list_active(ctx.team_id)]
    return WidgetListResponse(team_id=str(ctx.team_id), widgets=widgets, total=len(widgets))


@router.post("/teams/{team_id}/dashboard-widgets", response_model=WidgetSchema)
async def create_widget(
    request: CreateWidgetRequest,
    repo: WidgetsRepoDep,
    ctx: TeamContext = require(Operation.CREATE_STRUCTURAL),
) -> WidgetSchema:
    widget = await repo.create(
        team_id=ctx.team_id,
        widget_type=request.widget_type,
        title=request.title,
        data=request.data,
        position=request.position,
    )
    log.info("widget_created", team_id=str(ctx.team_id), widget_id=str(widget.id))
    return _widget_to_schema(widget)


@router.put("/teams/{team_id}/dashboard-widgets/{widget_id}", response_model=WidgetSchema)
async def update_widget(
    widget_id: str,
    request: UpdateWidgetRequest,
    repo: WidgetsRepoDep,
    ctx: TeamContext = require_member(),
) -> WidgetSchema:
    """Members may refresh ``data``; layout fields need a team admin."""
    changes = request.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise validation_error("No fields to update", "body")
    gate.check(gate.update_operation(changes), ctx.role)

    widget = await repo.update(ctx.team_id, parse_uuid(widget_id, "widget_id"), changes)
    if widget is None:
        raise ResourceNotFound("Dashboard widget", widget_id)
    return _widget_to_schema(widget)


@router.delete("/teams/{team_id}/dashboard-widgets/{widget_id}")
async def delete_widget(
    widget_id: str,
    repo: WidgetsRepoDep,
    ctx: TeamContext = require(Operation.DELETE),
) -> dict[str, str]:
    if not await repo.delete(ctx.team_id, parse_uuid(widget_id, "widget_id")):
        raise ResourceNotFound("Dashboard widget", widget_id)
    log.info("widget_deleted", team_id=str(ctx.team_id), widget_id=widget_id)
    return {"status": "deleted", "id": widget_id}
