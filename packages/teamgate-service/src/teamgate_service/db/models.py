"""SQLAlchemy ORM models."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import DeclarativeBase, relationship


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    pass


# ---------------------------------------------------------------------------
# Identity / tenancy models
# ---------------------------------------------------------------------------


class UserModel(Base):
    """Profile row mirrored from the identity provider; ``id`` is the token ``sub``."""

    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True)
    email = Column(Text, unique=True, nullable=False)
    name = Column(Text, nullable=False)
    role = Column(String, nullable=False, default="employee")
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    memberships = relationship(
        "TeamMemberModel", back_populates="user", cascade="all, delete-orphan"
    )


class TeamModel(Base):
    __tablename__ = "teams"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    members = relationship(
        "TeamMemberModel", back_populates="team", cascade="all, delete-orphan"
    )


class TeamMemberModel(Base):
    __tablename__ = "team_members"
    __table_args__ = (
        UniqueConstraint("user_id", "team_id", name="team_members_user_team_key"),
        CheckConstraint("role IN ('admin', 'member')", name="team_members_role_check"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    team_id = Column(
        UUID(as_uuid=True), ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    role = Column(String, nullable=False, default="member")
    joined_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    team = relationship("TeamModel", back_populates="members")
    user = relationship("UserModel", back_populates="memberships")


# ---------------------------------------------------------------------------
# Team-scoped resources
# ---------------------------------------------------------------------------


class DashboardWidgetModel(Base):
    __tablename__ = "dashboard_widgets"
    __table_args__ = (
        CheckConstraint(
            "widget_type IN ('kpi', 'chart', 'table', 'metric')",
            name="dashboard_widgets_type_check",
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    team_id = Column(
        UUID(as_uuid=True), ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    widget_type = Column(String, nullable=False)
    title = Column(Text, nullable=False)
    data = Column(JSONB, nullable=False, default=dict)
    position = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    last_updated = Column(DateTime(timezone=True), default=_utcnow)


class ReviewModel(Base):
    __tablename__ = "reviews"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    team_id = Column(
        UUID(as_uuid=True), ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    employee_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    customer_name = Column(Text, nullable=False)
    job_type = Column(Text, nullable=False)
    has_photo = Column(Boolean, nullable=False, default=False)
    keywords = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class PointsModel(Base):
    __tablename__ = "points"
    __table_args__ = (
        UniqueConstraint("employee_id", "team_id", name="points_employee_team_key"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    team_id = Column(
        UUID(as_uuid=True), ForeignKey("teams.id", ondelete="CASCADE"), nullable=False
    )
    employee_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    points = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
