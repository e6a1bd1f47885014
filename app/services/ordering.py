# app/services/ordering.py
"""
Kanban position model.

Every task lives in a bucket, the set of tasks sharing a (team_id, status)
pair, and its ``order`` is its position inside that bucket. Buckets are kept
dense (0..n-1): a move removes the task from its source bucket, inserts it at
the requested index of the destination bucket and renumbers both. Reads sort
by ``order`` then ``id`` so any tie falls back to insertion order.

Writers on the same team are serialized by locking the team row before the
bucket is read, so two concurrent creates cannot pick the same next order.
"""

import logging
from typing import List, Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from app.models.task import Task, TaskStatus, PRIORITY_RANK
from app.models.team import Team

logger = logging.getLogger(__name__)

# LOW < MEDIUM < HIGH, independent of how the enum is stored
priority_rank = case(PRIORITY_RANK, value=Task.priority)


class TaskOrdering:
    """Order arithmetic for the tasks of one database session"""

    def __init__(self, db: Session):
        self.db = db

    def lock_team(self, team_id: int) -> Optional[Team]:
        """Take the per-team write lock (SELECT ... FOR UPDATE; a no-op on SQLite)"""
        return self.db.query(Team).filter(Team.id == team_id).with_for_update().first()

    def get_bucket(self, team_id: int, status: TaskStatus) -> List[Task]:
        """Tasks of one bucket in display order"""
        return self.db.query(Task).filter(
            Task.team_id == team_id,
            Task.status == status
        ).order_by(Task.order.asc(), Task.id.asc()).all()

    def next_order(self, team_id: int, status: TaskStatus) -> int:
        """Position for a task appended to the bucket: 0 when empty, else max + 1"""
        max_order = self.db.query(func.max(Task.order)).filter(
            Task.team_id == team_id,
            Task.status == status
        ).scalar()
        return 0 if max_order is None else max_order + 1

    @staticmethod
    def renumber(tasks: List[Task]) -> None:
        for index, task in enumerate(tasks):
            if task.order != index:
                task.order = index

    def compact(self, team_id: int, status: TaskStatus) -> None:
        """Close the gaps left in a bucket, e.g. after a delete (flush first)"""
        self.renumber(self.get_bucket(team_id, status))

    def move(self, task: Task, new_order: Optional[int], new_status: Optional[TaskStatus] = None) -> Task:
        """Place ``task`` at index ``new_order`` of the destination bucket.

        ``None`` or an index past the end appends to the destination bucket. Both the
        source and destination buckets are rewritten densely; the caller
        commits.
        """
        source_status = task.status
        target_status = new_status or source_status

        source = [t for t in self.get_bucket(task.team_id, source_status) if t.id != task.id]
        if target_status == source_status:
            target = source
        else:
            target = [t for t in self.get_bucket(task.team_id, target_status) if t.id != task.id]

        index = len(target) if new_order is None else min(new_order, len(target))
        target.insert(index, task)
        task.status = target_status

        self.renumber(target)
        if target is not source:
            self.renumber(source)

        logger.debug(
            f"Task {task.id} moved from {source_status.value} to {target_status.value} at index {index}"
        )
        return task
