"""Task API — CRUD, tree view and move/reorder for a transition's tasks.

POST   /api/v1/transitions/{transition_id}/tasks                 — create
GET    /api/v1/transitions/{transition_id}/tasks                 — filtered, paginated list
GET    /api/v1/transitions/{transition_id}/tasks/tree            — nested tree with sequences
GET    /api/v1/transitions/{transition_id}/tasks/{task_id}       — single task
PUT    /api/v1/transitions/{transition_id}/tasks/{task_id}       — partial update
DELETE /api/v1/transitions/{transition_id}/tasks/{task_id}       — delete + compact siblings
PATCH  /api/v1/transitions/{transition_id}/tasks/{task_id}/move  — reposition
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlmodel import Session

from tracker.db.database import get_session
from tracker.engines.query import TaskListQuery
from tracker.engines.task_hierarchy import TaskHierarchyManager
from tracker.models.task import TaskCreate, TaskMove, TaskPage, TaskRead, TaskTreeNode, TaskUpdate

router = APIRouter(prefix="/api/v1/transitions/{transition_id}/tasks", tags=["tasks"])


class TaskTreeResponse(BaseModel):
    data: list[TaskTreeNode]


class MessageResponse(BaseModel):
    message: str


def get_manager(session: Session = Depends(get_session)) -> TaskHierarchyManager:
    return TaskHierarchyManager(session)


@router.post("", response_model=TaskRead, status_code=201)
def create_task(
    transition_id: str,
    request: TaskCreate,
    manager: TaskHierarchyManager = Depends(get_manager),
) -> TaskRead:
    return TaskRead.model_validate(manager.create_task(transition_id, request))


@router.get("", response_model=TaskPage)
def list_tasks(
    transition_id: str,
    query: Annotated[TaskListQuery, Query()],
    manager: TaskHierarchyManager = Depends(get_manager),
) -> TaskPage:
    return manager.list_tasks(transition_id, query)


# Declared before /{task_id} so "tree" is not captured as an id
@router.get("/tree", response_model=TaskTreeResponse)
def get_task_tree(
    transition_id: str,
    manager: TaskHierarchyManager = Depends(get_manager),
) -> TaskTreeResponse:
    return TaskTreeResponse(data=manager.get_task_tree(transition_id))


@router.get("/{task_id}", response_model=TaskRead)
def get_task(
    transition_id: str,
    task_id: str,
    manager: TaskHierarchyManager = Depends(get_manager),
) -> TaskRead:
    return TaskRead.model_validate(manager.get_task(task_id, transition_id))


@router.put("/{task_id}", response_model=TaskRead)
def update_task(
    transition_id: str,
    task_id: str,
    request: TaskUpdate,
    manager: TaskHierarchyManager = Depends(get_manager),
) -> TaskRead:
    manager.get_task(task_id, transition_id)
    return TaskRead.model_validate(manager.update_task(task_id, request))


@router.delete("/{task_id}", response_model=MessageResponse)
def delete_task(
    transition_id: str,
    task_id: str,
    manager: TaskHierarchyManager = Depends(get_manager),
) -> MessageResponse:
    manager.get_task(task_id, transition_id)
    return MessageResponse(**manager.delete_task(task_id))


@router.patch("/{task_id}/move", response_model=TaskRead)
def move_task(
    transition_id: str,
    task_id: str,
    request: TaskMove,
    manager: TaskHierarchyManager = Depends(get_manager),
) -> TaskRead:
    return TaskRead.model_validate(manager.move_task(transition_id, task_id, request))
