"""Repository for dashboard widgets. Every query is constrained by ``team_id``."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from teamgate_service.db.models import DashboardWidgetModel


class WidgetsRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_active(self, team_id: UUID) -> list[DashboardWidgetModel]:
        result = await self._session.execute(
            select(DashboardWidgetModel)
            .where(
                DashboardWidgetModel.team_id == team_id,
                DashboardWidgetModel.is_active.is_(True),
            )
            .order_by(DashboardWidgetModel.position.asc())
        )
        return list(result.scalars().all())

    async def count_active(self, team_id: UUID) -> int:
        result = await self._session.execute(
            select(func.count()).select_from(DashboardWidgetModel).where(
                DashboardWidgetModel.team_id == team_id,
                DashboardWidgetModel.is_active.is_(True),
            )
        )
        return result.scalar_one()

    async def get(self, team_id: UUID, widget_id: UUID) -> DashboardWidgetModel | None:
        result = await self._session.execute(
            select(DashboardWidgetModel).where(
                DashboardWidgetModel.id == widget_id,
                DashboardWidgetModel.team_id == team_id,
            )
        )
        return result.scalars().first()

    async def create(
        self,
        team_id: UUID,
        widget_type: str,
        title: str,
        data: dict[str, Any],
        position: int = 0,
    ) -> DashboardWidgetModel:
        widget = DashboardWidgetModel(
            team_id=team_id,
            widget_type=widget_type,
            title=title,
            data=data,
            position=position,
            is_active=True,
        )
        self._session.add(widget)
        await self._session.commit()
        await self._session.refresh(widget)
        return widget

    async def update(
        self, team_id: UUID, widget_id: UUID, changes: dict[str, Any]
    ) -> DashboardWidgetModel | None:
        widget = await self.get(team_id, widget_id)
        if widget is None:
            return None
        for key, value in changes.items():
            setattr(widget, key, value)
        if "data" in changes:
            widget.last_updated = datetime.now(UTC)
        await self._session.commit()
        await self._session.refresh(widget)
        return widget

    async def delete(self, team_id: UUID, widget_id: UUID) -> bool:
        result = await self._session.execute(
            delete(DashboardWidgetModel).where(
                DashboardWidgetModel.id == widget_id,
                DashboardWidgetModel.team_id == team_id,
            )
        )
        await self._session.commit()
        return result.rowcount > 0
