"""Pydantic request/response models for REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from teamgate_service.auth.models import TeamRole

WidgetType = Literal["kpi", "chart", "table", "metric"]


# Teams & membership


class TeamSchema(BaseModel):
    id: str
    name: str
    description: str | None = None
    created_at: datetime | None = None
    user_role: TeamRole
    joined_at: datetime | None = None


class TeamListResponse(BaseModel):
    teams: list[TeamSchema]
    total_teams: int


class CreateTeamRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)


class MemberSchema(BaseModel):
    user_id: str
    email: str
    name: str
    role: TeamRole
    joined_at: datetime | None = None


class MemberListResponse(BaseModel):
    team_id: str
    members: list[MemberSchema]
    total: int


class AddMemberRequest(BaseModel):
    user_id: str
    role: TeamRole = TeamRole.MEMBER


class MembershipResponse(BaseModel):
    team_id: str
    user_id: str
    role: TeamRole
    joined_at: datetime | None = None


# Dashboard widgets


class WidgetSchema(BaseModel):
    id: str
    team_id: str
    widget_type: WidgetType
    title: str
    data: dict[str, Any] = Field(default_factory=dict)
    position: int = 0
    is_active: bool = True
    created_at: datetime | None = None
    last_updated: datetime | None = None


class WidgetListResponse(BaseModel):
    team_id: str
    widgets: list[WidgetSchema]
    total: int


class CreateWidgetRequest(BaseModel):
    widget_type: WidgetType
    title: str = Field(min_length=1, max_length=200)
    data: dict[str, Any] = Field(default_factory=dict)
    position: int = 0


class UpdateWidgetRequest(BaseModel):
    widget_type: WidgetType | None = None
    title: str | None = Field(default=None, min_length=1, max_length=200)
    data: dict[str, Any] | None = None
    position: int | None = None
    is_active: bool | None = None


# Reviews & stats


class ReviewSchema(BaseModel):
    id: str
    team_id: str
    employee_id: str
    customer_name: str
    job_type: str
    keywords: str
    has_photo: bool = False
    created_at: datetime | None = None


class ReviewListResponse(BaseModel):
    team_id: str
    reviews: list[ReviewSchema]
    total: int


class SubmitReviewRequest(BaseModel):
    employee_id: str
    customer_name: str
    job_type: str
    keywords: str
    has_photo: bool = False


class SubmitReviewResponse(BaseModel):
    review: ReviewSchema
    points_awarded: int


class DashboardStatsResponse(BaseModel):
    team_id: str
    total_reviews: int
    total_points: int
    total_members: int
    active_widgets: int


# Auth


class MeResponse(BaseModel):
    user_id: str
    email: str
    role_hint: str
    teams: list[TeamSchema] = Field(default_factory=list)
