"""
tasks/store.py -- SQLAlchemy-backed persistence layer for tasks.

Uses SQLAlchemy Core (not ORM) so the dataclasses in tasks/models.py remain
the authoritative domain representation.

Pattern: Repository + Data Mapper. TaskStore is the repository; _row_to_task
is the mapper. Route handlers never touch SQL directly.

Ownership: create_task() takes the owner id as its own required argument and
ignores Task.owner_id, so there is no code path that copies an owner out of a
client payload. update_task() refuses to touch owner_id.

Security: all queries use bound parameters. Sort columns come from the
_SORT_COLUMNS whitelist, never from raw input.

Usage:
    store = TaskStore("sqlite:///taskhub.db")
    task_id = store.create_task(user.id, Task(title="Write report"))
    tasks, total = store.list_tasks(user.id, status=TaskStatus.pending, page=1, limit=10)
    store.close()
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import Column, Index, MetaData, String, Table, Text, func, select
from sqlalchemy.engine import Engine

from core.db import make_engine, new_id, now_iso
from tasks.models import Task, TaskPriority, TaskStatus

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_tasks = Table(
    "tasks",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("owner_id", String(32), nullable=False),
    Column("title", String(100), nullable=False),
    Column("description", Text),
    Column("status", String(20), nullable=False, server_default=TaskStatus.pending.value),
    Column("priority", String(10), nullable=False, server_default=TaskPriority.medium.value),
    Column("due_date", String(10)),  # YYYY-MM-DD
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Index("ix_tasks_owner_created", "owner_id", "created_at"),
)

# API sort key -> column. A leading "-" on the key means descending.
_SORT_COLUMNS = {
    "createdAt": _tasks.c.created_at,
    "updatedAt": _tasks.c.updated_at,
    "title": _tasks.c.title,
    "status": _tasks.c.status,
    "priority": _tasks.c.priority,
    "dueDate": _tasks.c.due_date,
}
SORT_KEYS = frozenset(_SORT_COLUMNS) | frozenset(f"-{k}" for k in _SORT_COLUMNS)
DEFAULT_SORT = "-createdAt"

_UPDATABLE_FIELDS = {"title", "description", "status", "priority", "due_date"}


def _order_by(sort: str):
    descending = sort.startswith("-")
    column = _SORT_COLUMNS.get(sort.lstrip("-"))
    if column is None:
        raise ValueError(f"Unknown sort key: {sort!r}")
    return column.desc() if descending else column.asc()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class TaskStore:
    """Repository for Task entities."""

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        metadata.create_all(self.engine)

    def create_task(self, owner_id: str, task: Task) -> str:
        """Insert a task owned by owner_id and return its id."""
        task_id = new_id()
        now = now_iso()
        with self.engine.connect() as conn:
            conn.execute(
                _tasks.insert().values(
                    id=task_id,
                    owner_id=owner_id,
                    title=task.title,
                    description=task.description,
                    status=TaskStatus(task.status).value,
                    priority=TaskPriority(task.priority).value,
                    due_date=task.due_date,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
        return task_id

    def get_task(self, task_id: str) -> Optional[Task]:
        with self.engine.connect() as conn:
            row = conn.execute(_tasks.select().where(_tasks.c.id == task_id)).fetchone()
        return _row_to_task(row) if row is not None else None

    def list_tasks(
        self,
        owner_id: str,
        status: Optional[TaskStatus] = None,
        priority: Optional[TaskPriority] = None,
        page: int = 1,
        limit: int = 10,
        sort: str = DEFAULT_SORT,
    ) -> tuple[list[Task], int]:
        """Return one page of owner_id's tasks and the total matching count.

        Ties on the sort key come back in whatever order the database picks.
        """
        conditions = [_tasks.c.owner_id == owner_id]
        if status is not None:
            conditions.append(_tasks.c.status == TaskStatus(status).value)
        if priority is not None:
            conditions.append(_tasks.c.priority == TaskPriority(priority).value)

        query = (
            _tasks.select()
            .where(*conditions)
            .order_by(_order_by(sort))
            .limit(limit)
            .offset((page - 1) * limit)
        )
        count_query = select(func.count()).select_from(_tasks).where(*conditions)
        with self.engine.connect() as conn:
            rows = conn.execute(query).fetchall()
            total = conn.execute(count_query).scalar() or 0
        return [_row_to_task(r) for r in rows], total

    def update_task(self, task_id: str, **fields) -> bool:
        """Update mutable fields and stamp updated_at.

        Accepted fields: title, description, status, priority, due_date.
        Returns True if a row was updated, False if task_id was not found.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown task fields: {unknown!r}")
        if "status" in fields:
            fields["status"] = TaskStatus(fields["status"]).value
        if "priority" in fields:
            fields["priority"] = TaskPriority(fields["priority"]).value
        with self.engine.connect() as conn:
            result = conn.execute(_tasks.update().where(_tasks.c.id == task_id).values(updated_at=now_iso(), **fields))
            conn.commit()
        return result.rowcount > 0

    def delete_task(self, task_id: str) -> bool:
        """Permanently delete a task. Returns True if deleted, False if not found."""
        with self.engine.connect() as conn:
            result = conn.execute(_tasks.delete().where(_tasks.c.id == task_id))
            conn.commit()
        return result.rowcount > 0

    def delete_tasks_for_owner(self, owner_id: str) -> int:
        """Delete every task owned by owner_id. Returns the number removed."""
        with self.engine.connect() as conn:
            result = conn.execute(_tasks.delete().where(_tasks.c.owner_id == owner_id))
            conn.commit()
        return result.rowcount

    def get_stats(self, owner_id: str) -> tuple[int, dict[str, int]]:
        """Return (total, {status: count}) for owner_id's tasks.

        Every status appears in the dict, with 0 where the owner has none.
        """
        counts = {s.value: 0 for s in TaskStatus}
        with self.engine.connect() as conn:
            rows = conn.execute(
                select(_tasks.c.status, func.count())
                .where(_tasks.c.owner_id == owner_id)
                .group_by(_tasks.c.status)
            ).fetchall()
        for status, count in rows:
            counts[status] = count
        return sum(counts.values()), counts

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_task(row) -> Task:
    return Task(
        id=row.id,
        owner_id=row.owner_id,
        title=row.title,
        description=row.description,
        status=TaskStatus(row.status),
        priority=TaskPriority(row.priority),
        due_date=row.due_date,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
