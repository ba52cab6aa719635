"""Repository for reviews and the team-scoped points they award."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from teamgate_service.db.models import PointsModel, ReviewModel


class ReviewsRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list(
        self, team_id: UUID, limit: int = 20, offset: int = 0
    ) -> tuple[list[ReviewModel], int]:
        query = (
            select(ReviewModel)
            .where(ReviewModel.team_id == team_id)
            .order_by(ReviewModel.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        count_query = (
            select(func.count()).select_from(ReviewModel).where(ReviewModel.team_id == team_id)
        )
        result = await self._session.execute(query)
        total_result = await self._session.execute(count_query)
        return list(result.scalars().all()), total_result.scalar_one()

    async def create(
        self,
        team_id: UUID,
        employee_id: UUID,
        customer_name: str,
        job_type: str,
        keywords: str,
        has_photo: bool,
        points: int,
    ) -> ReviewModel:
        """Insert a review and credit the employee's points for the same team."""
        review = ReviewModel(
            team_id=team_id,
            employee_id=employee_id,
            customer_name=customer_name,
            job_type=job_type,
            keywords=keywords,
            has_photo=has_photo,
        )
        self._session.add(review)
        try:
            await self._session.flush()
            stmt = pg_insert(PointsModel).values(
                team_id=team_id, employee_id=employee_id, points=points
            )
            stmt = stmt.on_conflict_do_update(
                constraint="points_employee_team_key",
                set_={"points": PointsModel.points + stmt.excluded.points},
            )
            await self._session.execute(stmt)
            await self._session.commit()
        except BaseException:
            await self._session.rollback()
            raise
        await self._session.refresh(review)
        return review

    async def stats(self, team_id: UUID) -> dict[str, Any]:
        reviews = await self._session.execute(
            select(func.count()).select_from(ReviewModel).where(ReviewModel.team_id == team_id)
        )
        points = await self._session.execute(
            select(func.coalesce(func.sum(PointsModel.points), 0)).where(
                PointsModel.team_id == team_id
            )
        )
        return {
            "total_reviews": reviews.scalar_one(),
            "total_points": points.scalar_one(),
        }
