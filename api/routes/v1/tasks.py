"""
api/routes/v1/tasks.py -- Task CRUD routes for the TaskHub REST API.

Routes (in registration order to avoid FastAPI path capture conflicts):
  GET    /tasks            -- caller's tasks, filtered, sorted and paginated
  GET    /tasks/stats      -- caller's task counts by status
  POST   /tasks            -- create a task owned by the caller
  GET    /tasks/{task_id}  -- owner or admin
  PUT    /tasks/{task_id}  -- owner or admin, partial update
  DELETE /tasks/{task_id}  -- owner or admin, permanent

Ownership:
  Creation takes the owner from the authenticated User, never from the body
  (TaskCreate has no owner field). Read/update/delete go through
  _load_task(), which returns 404 for a missing task and 403 for a task the
  caller neither owns nor may administer.

Listing and stats are always scoped to the caller, admins included; admins
reach other users' tasks by id.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from api.limiter import api_limit
from api.models import Pagination, SuccessResponse, TaskCreate, TaskData, TaskPage, TaskResponse, TaskStats, TaskUpdate
from auth.dependencies import get_current_user
from auth.models import User
from auth.ownership import ensure_can_access
from core.errors import NotFoundError, ValidationError
from tasks.models import Task, TaskPriority, TaskStatus
from tasks.store import DEFAULT_SORT, SORT_KEYS, TaskStore

# All task routes require authentication.
# Router-level dependency applies to every route registered on this router;
# FastAPI caches it per request, so handlers that also ask for the User do not
# verify the token twice.
router = APIRouter(dependencies=[Depends(get_current_user)])


def _load_task(task_store: TaskStore, actor: User, task_id: str, action: str) -> Task:
    task = task_store.get_task(task_id)
    if task is None:
        raise NotFoundError("Task not found.")
    ensure_can_access(actor, task.owner_id, action)
    return task


# ---------------------------------------------------------------------------
# GET /tasks -- list the caller's tasks
# ---------------------------------------------------------------------------


@router.get("/tasks", response_model=SuccessResponse[TaskPage])
@api_limit
def list_tasks(
    request: Request,
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    sort: str = DEFAULT_SORT,
    current_user: User = Depends(get_current_user),
) -> SuccessResponse[TaskPage]:
    """Return one page of the caller's tasks.

    sort accepts createdAt, updatedAt, title, status, priority or dueDate,
    optionally prefixed with "-" for descending order.
    """
    if sort not in SORT_KEYS:
        raise ValidationError(f"Invalid sort key: {sort}")
    task_store: TaskStore = request.app.state.task_store
    tasks, total = task_store.list_tasks(
        current_user.id,
        status=status,
        priority=priority,
        page=page,
        limit=limit,
        sort=sort,
    )
    return SuccessResponse[TaskPage](
        data=TaskPage(
            results=len(tasks),
            tasks=[TaskResponse.from_task(t) for t in tasks],
            pagination=Pagination.build(page, limit, total),
        )
    )


# ---------------------------------------------------------------------------
# GET /tasks/stats -- must be registered before /tasks/{task_id}
# ---------------------------------------------------------------------------


@router.get("/tasks/stats", response_model=SuccessResponse[TaskStats])
@api_limit
def task_stats(request: Request, current_user: User = Depends(get_current_user)) -> SuccessResponse[TaskStats]:
    task_store: TaskStore = request.app.state.task_store
    total, by_status = task_store.get_stats(current_user.id)
    return SuccessResponse[TaskStats](data=TaskStats(total_tasks=total, by_status=by_status))


# ---------------------------------------------------------------------------
# POST /tasks -- create
# ---------------------------------------------------------------------------


@router.post("/tasks", response_model=SuccessResponse[TaskData], status_code=201)
@api_limit
def create_task(
    request: Request,
    body: TaskCreate,
    current_user: User = Depends(get_current_user),
) -> SuccessResponse[TaskData]:
    task_store: TaskStore = request.app.state.task_store
    task_id = task_store.create_task(current_user.id, body.to_task())
    created = task_store.get_task(task_id)
    return SuccessResponse[TaskData](
        message="Task created successfully",
        data=TaskData(task=TaskResponse.from_task(created)),
    )


# ---------------------------------------------------------------------------
# /tasks/{task_id} -- read, update, delete (owner or admin)
# ---------------------------------------------------------------------------


@router.get("/tasks/{task_id}", response_model=SuccessResponse[TaskData])
@api_limit
def get_task(
    request: Request,
    task_id: str,
    current_user: User = Depends(get_current_user),
) -> SuccessResponse[TaskData]:
    task_store: TaskStore = request.app.state.task_store
    task = _load_task(task_store, current_user, task_id, "access")
    return SuccessResponse[TaskData](data=TaskData(task=TaskResponse.from_task(task)))


@router.put("/tasks/{task_id}", response_model=SuccessResponse[TaskData])
@api_limit
def update_task(
    request: Request,
    task_id: str,
    body: TaskUpdate,
    current_user: User = Depends(get_current_user),
) -> SuccessResponse[TaskData]:
    """Apply the fields present in the body. An empty body leaves the task unchanged."""
    task_store: TaskStore = request.app.state.task_store
    task = _load_task(task_store, current_user, task_id, "update")

    changes = body.changes()
    if changes:
        task_store.update_task(task.id, **changes)
        task = task_store.get_task(task.id)
    return SuccessResponse[TaskData](
        message="Task updated successfully",
        data=TaskData(task=TaskResponse.from_task(task)),
    )


@router.delete("/tasks/{task_id}", response_model=SuccessResponse[None])
@api_limit
def delete_task(
    request: Request,
    task_id: str,
    current_user: User = Depends(get_current_user),
) -> SuccessResponse[None]:
    task_store: TaskStore = request.app.state.task_store
    task = _load_task(task_store, current_user, task_id, "delete")
    task_store.delete_task(task.id)
    return SuccessResponse[None](message="Task deleted successfully", data=None)
