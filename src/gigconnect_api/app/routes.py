"""HTTP routes for /api/v1.

Bodies are read as raw JSON and validated by the handlers, so malformed input
gets the same 400 ``{"message": ...}`` shape as every other rejection instead
of FastAPI's default 422.
"""

from __future__ import annotations

import json
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Request, Response

from .bids import BidHandler
from .models import (
    Bid,
    CreateBidResponse,
    CreateTaskResponse,
    ErrorResponse,
    Task,
    TaskPage,
    UpdateTaskResponse,
)
from .tasks import TaskHandler

_ERRORS: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}

router = APIRouter(prefix="/api/v1", responses=_ERRORS)


def get_task_handler(request: Request) -> TaskHandler:
    return request.app.state.task_handler


def get_bid_handler(request: Request) -> BidHandler:
    return request.app.state.bid_handler


TaskHandlerDep = Annotated[TaskHandler, Depends(get_task_handler)]
BidHandlerDep = Annotated[BidHandler, Depends(get_bid_handler)]


async def read_json_body(request: Request) -> Any:
    """Parsed JSON body, or None when the body is empty or not JSON."""
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except (ValueError, UnicodeDecodeError):
        return None


@router.post("/tasks", status_code=201, response_model=CreateTaskResponse, tags=["tasks"])
async def create_task(request: Request, tasks: TaskHandlerDep) -> CreateTaskResponse:
    return await tasks.create(await read_json_body(request))


@router.get("/tasks", response_model=TaskPage, response_model_exclude_none=True, tags=["tasks"])
async def list_tasks(
    tasks: TaskHandlerDep,
    page: str | None = Query(None, description="1-based page number"),
    limit: str | None = Query(None, description="Tasks per page"),
) -> TaskPage:
    return await tasks.list_page(page=page, limit=limit)


# Registered before /tasks/{task_id} so the literal segment is not read as an id.
@router.get(
    "/tasks/my-posted-tasks",
    response_model=list[Task],
    response_model_exclude_none=True,
    tags=["tasks"],
)
async def list_my_posted_tasks(
    tasks: TaskHandlerDep,
    creator_email: str | None = Query(None, alias="creatorEmail"),
) -> list[Task]:
    return await tasks.list_by_creator(creator_email)


@router.get(
    "/featured-tasks",
    response_model=list[Task],
    response_model_exclude_none=True,
    tags=["tasks"],
)
async def list_featured_tasks(tasks: TaskHandlerDep) -> list[Task]:
    return await tasks.list_featured()


@router.get(
    "/tasks/{task_id}",
    response_model=Task,
    response_model_exclude_none=True,
    responses={404: {"model": ErrorResponse}},
    tags=["tasks"],
)
async def get_task(task_id: str, tasks: TaskHandlerDep) -> Task:
    return await tasks.get(task_id)


@router.put(
    "/tasks/{task_id}",
    response_model=UpdateTaskResponse,
    responses={404: {"model": ErrorResponse}},
    tags=["tasks"],
)
async def update_task(task_id: str, request: Request, tasks: TaskHandlerDep) -> UpdateTaskResponse:
    return await tasks.update(task_id, await read_json_body(request))


@router.delete(
    "/tasks/{task_id}",
    status_code=204,
    response_class=Response,
    responses={404: {"model": ErrorResponse}},
    tags=["tasks"],
)
async def delete_task(task_id: str, tasks: TaskHandlerDep) -> Response:
    await tasks.delete(task_id)
    return Response(status_code=204)


@router.post(
    "/tasks/{task_id}/bids",
    status_code=201,
    response_model=CreateBidResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["bids"],
)
async def place_bid(task_id: str, request: Request, bids: BidHandlerDep) -> CreateBidResponse:
    return await bids.create(task_id, await read_json_body(request))


@router.get(
    "/tasks/{task_id}/bids",
    response_model=list[Bid],
    response_model_exclude_none=True,
    tags=["bids"],
)
async def list_task_bids(task_id: str, bids: BidHandlerDep) -> list[Bid]:
    return await bids.list_by_task(task_id)


@router.get(
    "/my-bids",
    response_model=list[Bid],
    response_model_exclude_none=True,
    tags=["bids"],
)
async def list_my_bids(
    bids: BidHandlerDep,
    bidder_email: str | None = Query(None, alias="bidderEmail"),
) -> list[Bid]:
    return await bids.list_by_bidder(bidder_email)
