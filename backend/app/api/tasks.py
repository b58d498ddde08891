from __future__ import annotations

import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel

from backend.app.dependencies import SessionIdentity, get_identity, get_todo_store
from inbox_intel.models import NewTask
from inbox_intel.storage.todos import TaskNotFoundError, TodoStore

logger = logging.getLogger(__name__)

router = APIRouter()


class TodoItemIn(BaseModel):
    text: str
    sender: str


class CreateTasksRequest(BaseModel):
    items: Optional[List[TodoItemIn]] = None


class MarkDoneRequest(BaseModel):
    id: Optional[str] = None


@router.get("/tasks")
def list_tasks(
    identity: SessionIdentity = Depends(get_identity),
    store: TodoStore = Depends(get_todo_store),
) -> list[dict[str, Any]]:
    try:
        tasks = store.list_open(identity.email)
    except Exception as exc:
        logger.exception("[GET /tasks] Failed to fetch tasks for %s", identity.email)
        raise HTTPException(status_code=500, detail="Failed to fetch to-do items.") from exc

    logger.info("[GET /tasks] Found %d items for %s", len(tasks), identity.email)
    return [task.to_api_dict() for task in tasks]


@router.post("/tasks")
def create_tasks(
    payload: Optional[CreateTasksRequest] = Body(default=None),
    identity: SessionIdentity = Depends(get_identity),
    store: TodoStore = Depends(get_todo_store),
) -> dict[str, Any]:
    if payload is None or not payload.items:
        raise HTTPException(status_code=400, detail="No items to add.")

    items = [NewTask(text=item.text, sender=item.sender) for item in payload.items]
    try:
        inserted = store.create_many(identity.email, items)
    except Exception as exc:
        logger.exception("[POST /tasks] Failed to add tasks for %s", identity.email)
        raise HTTPException(status_code=500, detail="Failed to add to-do items.") from exc

    return {"success": True, "insertedCount": inserted}


@router.patch("/tasks")
def mark_task_done(
    payload: Optional[MarkDoneRequest] = Body(default=None),
    identity: SessionIdentity = Depends(get_identity),
    store: TodoStore = Depends(get_todo_store),
) -> dict[str, Any]:
    task_id = (payload.id or "").strip() if payload else ""
    if not task_id:
        raise HTTPException(status_code=400, detail="To-do ID is required.")

    try:
        store.mark_done(identity.email, task_id)
    except TaskNotFoundError as exc:
        raise HTTPException(
            status_code=404,
            detail="To-do item not found or you do not have permission.",
        ) from exc
    except Exception as exc:
        logger.exception("[PATCH /tasks] Failed to update task %s", task_id)
        raise HTTPException(status_code=500, detail="Failed to update to-do item.") from exc

    return {"success": True}
