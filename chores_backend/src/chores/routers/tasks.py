from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status

from ..auth import Requester, get_requester
from ..completion import TaskCompletionWorkflow
from ..schemas import MessageResponse, TaskActionResponse, TaskCreate, TaskDoneFlag, TaskOut
from ..utils import parse_rooms
from ..visibility import TaskVisibilityPolicy

router = APIRouter(
    prefix="/api/v1/tasks",
    tags=["tasks"],
)


def _get_visibility(request: Request) -> TaskVisibilityPolicy:
    """
    Process-scoped visibility policy built by create_app().
    """
    return request.app.state.visibility


def _get_workflow(request: Request) -> TaskCompletionWorkflow:
    return request.app.state.workflow


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=TaskOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a new private chore owned by the requester.",
    responses={
        201: {"description": "Task created successfully"},
        401: {"description": "Not authenticated"},
        422: {"description": "Validation error"},
    },
)
def create_task(
    payload: TaskCreate,
    requester: Requester = Depends(get_requester),
    workflow: TaskCompletionWorkflow = Depends(_get_workflow),
) -> TaskOut:
    created = workflow.create(requester.id, payload)
    return TaskOut(**created)


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=List[TaskOut],
    summary="List Tasks",
    description=(
        "List the requester's own tasks together with every global task.\n\n"
        "Query parameters:\n"
        "- rooms: optional comma-separated room filter\n"
        "- completed: when true, only tasks marked done"
    ),
)
def list_tasks(
    rooms: Optional[str] = Query(None, description="Comma-separated room names"),
    completed: bool = Query(False, description="Only return completed tasks"),
    requester: Requester = Depends(get_requester),
    visibility: TaskVisibilityPolicy = Depends(_get_visibility),
) -> List[TaskOut]:
    room_set = parse_rooms(rooms) if rooms is not None else None
    items = visibility.list_visible(requester.id, rooms=room_set, completed_only=completed)
    return [TaskOut(**it) for it in items]


# PUBLIC_INTERFACE
@router.get(
    "/global",
    response_model=List[TaskOut],
    summary="List Global Tasks",
    description="List every global task. No authentication required.",
)
def list_global_tasks(visibility: TaskVisibilityPolicy = Depends(_get_visibility)) -> List[TaskOut]:
    return [TaskOut(**it) for it in visibility.list_global()]


# PUBLIC_INTERFACE
@router.get(
    "/by-room",
    response_model=List[TaskOut],
    summary="List Tasks By Room",
    description="Visible tasks in the given rooms. A missing rooms parameter matches nothing.",
)
def list_tasks_by_room(
    rooms: Optional[str] = Query(None, description="Comma-separated room names"),
    requester: Requester = Depends(get_requester),
    visibility: TaskVisibilityPolicy = Depends(_get_visibility),
) -> List[TaskOut]:
    items = visibility.list_visible(requester.id, rooms=parse_rooms(rooms))
    return [TaskOut(**it) for it in items]


# PUBLIC_INTERFACE
@router.get(
    "/completed",
    response_model=List[TaskOut],
    summary="List Completed Tasks By Room",
    description="Visible tasks marked done in the given rooms. A missing rooms parameter matches nothing.",
)
def list_completed_tasks(
    rooms: Optional[str] = Query(None, description="Comma-separated room names"),
    requester: Requester = Depends(get_requester),
    visibility: TaskVisibilityPolicy = Depends(_get_visibility),
) -> List[TaskOut]:
    items = visibility.list_visible(requester.id, rooms=parse_rooms(rooms), completed_only=True)
    return [TaskOut(**it) for it in items]


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}",
    response_model=TaskOut,
    summary="Get Task",
    responses={404: {"description": "Task not found"}},
)
def get_task(
    task_id: int,
    requester: Requester = Depends(get_requester),
    visibility: TaskVisibilityPolicy = Depends(_get_visibility),
) -> TaskOut:
    """
    Retrieve a single task the requester can see.
    """
    return TaskOut(**visibility.get_visible(requester.id, task_id))


# PUBLIC_INTERFACE
@router.put(
    "/{task_id}/done",
    response_model=TaskActionResponse,
    summary="Mark Task Done",
    description="Mark a task done, stamp completion times and schedule its next occurrence.",
    responses={404: {"description": "Task not found"}},
)
def mark_task_done(
    task_id: int,
    requester: Requester = Depends(get_requester),
    workflow: TaskCompletionWorkflow = Depends(_get_workflow),
) -> TaskActionResponse:
    task = workflow.mark_done(task_id)
    return TaskActionResponse(message="Task marked as done", task=TaskOut(**task))


# PUBLIC_INTERFACE
@router.put(
    "/{task_id}/undone",
    response_model=TaskActionResponse,
    summary="Mark Task Undone",
    description="Reset the completion flag. Timestamps and the next due date are kept.",
    responses={404: {"description": "Task not found"}},
)
def mark_task_undone(
    task_id: int,
    requester: Requester = Depends(get_requester),
    workflow: TaskCompletionWorkflow = Depends(_get_workflow),
) -> TaskActionResponse:
    task = workflow.mark_undone(task_id)
    return TaskActionResponse(message="Task marked as not done", task=TaskOut(**task))


# PUBLIC_INTERFACE
@router.patch(
    "/{task_id}",
    response_model=TaskOut,
    summary="Patch Done Flag",
    description="Overwrite isDone only. No completion timestamps, no due-date change.",
    responses={404: {"description": "Task not found"}},
)
def patch_task(
    task_id: int,
    payload: TaskDoneFlag,
    requester: Requester = Depends(get_requester),
    workflow: TaskCompletionWorkflow = Depends(_get_workflow),
) -> TaskOut:
    return TaskOut(**workflow.patch_done_flag(task_id, payload.is_done))


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    response_model=MessageResponse,
    summary="Delete Task",
    responses={404: {"description": "Task not found"}},
)
def delete_task(
    task_id: int,
    requester: Requester = Depends(get_requester),
    workflow: TaskCompletionWorkflow = Depends(_get_workflow),
) -> MessageResponse:
    workflow.delete(task_id)
    return MessageResponse(message="Task deleted")
