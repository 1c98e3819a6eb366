"""Breakdown of a task into ordered processes or quantity-based sub-tasks.

Both variants answer the same questions: what status the task should have, when it
started and finished, which stage is active or last, and what a given worker was
doing on a given day.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import ClassVar, Iterable, Optional, Sequence

from ..common.datetime_utils import covers
from ..core.enums import WorkStatus


@dataclass(frozen=True)
class PausePeriod:
    started_at: datetime
    ended_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.ended_at is None

    def covers(self, day: date) -> bool:
        # The resume day itself is a working day.
        if day < self.started_at.date():
            return False
        return self.ended_at is None or day < self.ended_at.date()


def paused_on(is_paused: bool, periods: Sequence[PausePeriod], day: date) -> bool:
    if periods:
        return any(p.covers(day) for p in periods)
    return bool(is_paused)


@dataclass(frozen=True)
class Assignment:
    """What a worker was doing on a task for a given day."""

    process_name: Optional[str] = None
    subtask_id: Optional[str] = None


@dataclass(frozen=True)
class Process:
    process_name: str
    status: WorkStatus = WorkStatus.WAITING
    worker_id: Optional[str] = None
    worker_name: Optional[str] = None
    helpers: tuple[str, ...] = ()
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_minutes: Optional[int] = None

    def involves(self, worker_id: str) -> bool:
        return self.worker_id == worker_id or worker_id in self.helpers

    def covers(self, day: date) -> bool:
        if self.started_at is None:
            return self.status == WorkStatus.IN_PROGRESS
        end = self.completed_at if self.status == WorkStatus.DONE else None
        return covers(day, self.started_at, end)


@dataclass(frozen=True)
class SubTask:
    subtask_id: str
    quantity: int
    current_stage: Optional[str] = None
    status: WorkStatus = WorkStatus.WAITING
    worker_id: Optional[str] = None
    worker_name: Optional[str] = None
    helpers: tuple[str, ...] = ()
    is_paused: bool = False
    pause_periods: tuple[PausePeriod, ...] = ()
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    def involves(self, worker_id: str) -> bool:
        return self.worker_id == worker_id or worker_id in self.helpers

    def covers(self, day: date) -> bool:
        if self.started_at is None:
            return self.status == WorkStatus.IN_PROGRESS
        end = self.completed_at if self.status == WorkStatus.DONE else None
        return covers(day, self.started_at, end)

    def is_paused_on(self, day: date) -> bool:
        return paused_on(self.is_paused, self.pause_periods, day)


def rollup_status(statuses: Iterable[WorkStatus]) -> Optional[WorkStatus]:
    """Done when every part is done, InProgress when any part is, else Waiting."""

    statuses = list(statuses)
    if not statuses:
        return None
    if all(s == WorkStatus.DONE for s in statuses):
        return WorkStatus.DONE
    if any(s == WorkStatus.IN_PROGRESS for s in statuses):
        return WorkStatus.IN_PROGRESS
    return WorkStatus.WAITING


class Decomposition(ABC):
    kind: ClassVar[str]

    @abstractmethod
    def derived_status(self) -> Optional[WorkStatus]:
        """Status implied by the parts, or None when there is nothing to derive from."""

        raise NotImplementedError

    @abstractmethod
    def started_at(self) -> Optional[datetime]:
        raise NotImplementedError

    @abstractmethod
    def completed_at(self) -> Optional[datetime]:
        """Latest completion, only when every part is done."""

        raise NotImplementedError

    @abstractmethod
    def active_stage(self) -> Optional[str]:
        """Stage currently in progress, else the most recently completed one."""

        raise NotImplementedError

    @abstractmethod
    def last_stage(self) -> Optional[str]:
        raise NotImplementedError

    @abstractmethod
    def assignment_for(self, worker_id: str, day: date) -> Optional[Assignment]:
        raise NotImplementedError


class NoDecomposition(Decomposition):
    kind = "none"

    def derived_status(self) -> Optional[WorkStatus]:
        return None

    def started_at(self) -> Optional[datetime]:
        return None

    def completed_at(self) -> Optional[datetime]:
        return None

    def active_stage(self) -> Optional[str]:
        return None

    def last_stage(self) -> Optional[str]:
        return None

    def assignment_for(self, worker_id: str, day: date) -> Optional[Assignment]:
        return None


@dataclass(frozen=True)
class ProcessDecomposition(Decomposition):
    processes: tuple[Process, ...]

    kind: ClassVar[str] = "processes"

    def derived_status(self) -> Optional[WorkStatus]:
        return rollup_status(p.status for p in self.processes)

    def started_at(self) -> Optional[datetime]:
        starts = [p.started_at for p in self.processes if p.started_at]
        return min(starts) if starts else None

    def completed_at(self) -> Optional[datetime]:
        if self.derived_status() != WorkStatus.DONE:
            return None
        ends = [p.completed_at for p in self.processes if p.completed_at]
        return max(ends) if ends else None

    def active_stage(self) -> Optional[str]:
        for p in self.processes:
            if p.status == WorkStatus.IN_PROGRESS:
                return p.process_name
        done = [p.process_name for p in self.processes if p.status == WorkStatus.DONE]
        return done[-1] if done else None

    def last_stage(self) -> Optional[str]:
        return self.processes[-1].process_name if self.processes else None

    def assignment_for(self, worker_id: str, day: date) -> Optional[Assignment]:
        for p in self.processes:
            if p.involves(worker_id) and p.covers(day):
                return Assignment(process_name=p.process_name)
        return None


@dataclass(frozen=True)
class SubTaskDecomposition(Decomposition):
    subtasks: tuple[SubTask, ...]

    kind: ClassVar[str] = "subtasks"

    def derived_status(self) -> Optional[WorkStatus]:
        return rollup_status(s.status for s in self.subtasks)

    def started_at(self) -> Optional[datetime]:
        starts = [s.started_at for s in self.subtasks if s.started_at]
        return min(starts) if starts else None

    def completed_at(self) -> Optional[datetime]:
        if self.derived_status() != WorkStatus.DONE:
            return None
        ends = [s.completed_at for s in self.subtasks if s.completed_at]
        return max(ends) if ends else None

    def active_stage(self) -> Optional[str]:
        for s in self.subtasks:
            if s.status == WorkStatus.IN_PROGRESS and s.current_stage:
                return s.current_stage
        return self.last_stage()

    def last_stage(self) -> Optional[str]:
        done = [s for s in self.subtasks if s.status == WorkStatus.DONE and s.current_stage]
        if not done:
            return None
        done.sort(key=lambda s: s.completed_at or datetime.min)
        return done[-1].current_stage

    def assignment_for(self, worker_id: str, day: date) -> Optional[Assignment]:
        for s in self.subtasks:
            if s.involves(worker_id) and s.covers(day) and not s.is_paused_on(day):
                return Assignment(process_name=s.current_stage, subtask_id=s.subtask_id)
        return None
