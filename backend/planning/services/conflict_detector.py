"""
Conflict detection for drops onto a day that already has allocations.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Optional
from uuid import UUID

from planning.core.config import Settings, get_settings
from planning.interfaces.allocation_repository import IAllocationRepository
from planning.models.allocation import ConflictInfo
from planning.models.enums import AllocationKind


@dataclass
class ConflictCheck:
    day: date
    kind: AllocationKind
    conflicts: list[ConflictInfo] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    @property
    def task_names(self) -> list[str]:
        names = []
        for conflict in self.conflicts:
            name = conflict.task_title or f"Task {conflict.task_id}"
            if name not in names:
                names.append(name)
        return names


class ConflictDetector:
    def __init__(
        self,
        allocation_repo: IAllocationRepository,
        settings: Optional[Settings] = None,
    ):
        self._allocation_repo = allocation_repo
        self._settings = settings or get_settings()

    async def check(
        self,
        user_id: str,
        day: date,
        kind: AllocationKind,
        exclude_task_id: Optional[UUID] = None,
    ) -> ConflictCheck:
        """Existing allocations of the same kind on the drop day."""
        rows = await self._allocation_repo.get_allocations_for_day(
            user_id, day, kind=kind, exclude_task_id=exclude_task_id
        )
        return ConflictCheck(
            day=day,
            kind=kind,
            conflicts=[
                ConflictInfo(
                    task_id=row.task_id,
                    task_title=row.task_title,
                    hours=row.hours,
                    start_time=row.start_time,
                    end_time=row.end_time,
                )
                for row in rows
            ],
        )

    def needs_hours_per_day_prompt(
        self,
        remaining_hours: float,
        max_daily_hours: float,
        hours_worked: float = 0.0,
    ) -> bool:
        """Large tasks and tasks with logged time ask for a per-day cap."""
        if hours_worked > 0:
            return True
        return remaining_hours > max_daily_hours * self._settings.HOURS_PER_DAY_PROMPT_RATIO

    @staticmethod
    def suggested_hours_per_day(remaining_hours: float, max_daily_hours: float) -> float:
        """Spread the work over roughly five days, at least one hour a day."""
        return float(min(max(1, math.ceil(remaining_hours / 5)), max_daily_hours))

    @staticmethod
    def clamp_hours_per_day(hours_per_day: Optional[float], max_daily_hours: float) -> float:
        if hours_per_day is None or hours_per_day <= 0:
            return max_daily_hours
        return min(hours_per_day, max_daily_hours)
