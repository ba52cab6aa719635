"""Review endpoints and team dashboard statistics.

Reviews are a business resource: any team member may list and submit them.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Query

from teamgate_service.auth.models import TeamContext
from teamgate_service.auth.policies import Operation, require
from teamgate_service.db.deps import MembershipRepoDep, ReviewsRepoDep, WidgetsRepoDep
from teamgate_service.errors import ResourceNotFound
from teamgate_service.rest.schemas import (
    DashboardStatsResponse,
    ReviewListResponse,
    ReviewSchema,
    SubmitReviewRequest,
    SubmitReviewResponse,
)
from teamgate_service.validation import parse_uuid, validate_required, validate_string_length

log = structlog.get_logger(__name__)

router = APIRouter()

BASE_POINTS = 10
PHOTO_BONUS_POINTS = 5


def _review_to_schema(review) -> ReviewSchema:
    return ReviewSchema(
        id=str(review.id),
        team_id=str(review.team_id),
        employee_id=str(review.employee_id),
        customer_name=review.customer_name,
        job_type=review.job_type,
        keywords=review.keywords,
        has_photo=bool(review.has_photo),
        created_at=review.created_at,
    )


def points_for(has_photo: bool) -> int:
    return BASE_POINTS + (PHOTO_BONUS_POINTS if has_photo else 0)


@router.get("/reviews", response_model=ReviewListResponse)
async def list_reviews(
    repo: ReviewsRepoDep,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    ctx: TeamContext = require(Operation.READ),
) -> ReviewListResponse:
    reviews, total = await repo.list(ctx.team_id, limit=limit, offset=offset)
    return ReviewListResponse(
        team_id=str(ctx.team_id),
        reviews=[_review_to_schema(r) for r in reviews],
        total=total,
    )


@router.post("/teams/{team_id}/reviews", response_model=SubmitReviewResponse, status_code=201)
async def submit_review(
    request: SubmitReviewRequest,
    repo: ReviewsRepoDep,
    memberships: MembershipRepoDep,
    ctx: TeamContext = require(Operation.CREATE),
) -> SubmitReviewResponse:
    employee_id = parse_uuid(request.employee_id, "employee_id")
    customer_name = validate_string_length(
        validate_required(request.customer_name.strip(), "customer_name"),
        "customer_name",
        max_length=100,
    )
    job_type = validate_string_length(
        validate_required(request.job_type.strip(), "job_type"), "job_type", max_length=100
    )
    keywords = validate_string_length(
        validate_required(request.keywords.strip(), "keywords"), "keywords", max_length=500
    )

    # The reviewed employee must belong to the same team.
    if await memberships.get_membership(employee_id, ctx.team_id) is None:
        raise ResourceNotFound("Employee", str(employee_id))

    points = points_for(request.has_photo)
    review = await repo.create(
        team_id=ctx.team_id,
        employee_id=employee_id,
        customer_name=customer_name,
        job_type=job_type,
        keywords=keywords,
        has_photo=request.has_photo,
        points=points,
    )
    log.info(
        "review_submitted",
        team_id=str(ctx.team_id),
        employee_id=str(employee_id),
        points=points,
    )
    return SubmitReviewResponse(review=_review_to_schema(review), points_awarded=points)


@router.get("/dashboard/stats", response_model=DashboardStatsResponse)
async def dashboard_stats(
    reviews: ReviewsRepoDep,
    memberships: MembershipRepoDep,
    widgets: WidgetsRepoDep,
    ctx: TeamContext = require(Operation.READ),
) -> DashboardStatsResponse:
    stats = await reviews.stats(ctx.team_id)
    return DashboardStatsResponse(
        team_id=str(ctx.team_id),
        total_reviews=stats["total_reviews"],
        total_points=stats["total_points"],
        total_members=await memberships.count_members(ctx.team_id),
        active_widgets=await widgets.count_active(ctx.team_id),
    )
