"""
tasks/models.py -- Domain types for tasks.

These are pure data containers with zero logic. Filtering, pagination and
statistics live in tasks/store.py; ownership checks live in auth/ownership.py.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TaskStatus(str, Enum):
    pending = "pending"
    in_progress = "in-progress"
    completed = "completed"


class TaskPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


@dataclass
class Task:
    """A unit of work owned by exactly one user.

    owner_id is assigned by TaskStore.create_task() from its explicit owner
    argument, never from this object, and is not updatable afterwards.

    id is None before the record is written to the database.
    """

    title: str
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.pending
    priority: TaskPriority = TaskPriority.medium
    due_date: Optional[str] = None  # YYYY-MM-DD
    owner_id: Optional[str] = None
    id: Optional[str] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""
