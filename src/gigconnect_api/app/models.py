"""Pydantic models for task and bid documents and API responses.

Beginner terms used in this file:
- Alias: the camelCase name a field has on the wire (``creatorEmail``) while
  Python code uses the snake_case attribute (``creator_email``).
- populate_by_name: lets code build models with either name.
- extra="allow": keeps client-supplied fields the schema does not list, the
  way a document store keeps them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

TaskCategory = Literal[
    "Web Development",
    "Graphic Design",
    "Digital Marketing",
    "Writing & Translation",
    "Video & Animation",
    "General",
]
TASK_CATEGORIES: tuple[str, ...] = get_args(TaskCategory)

# Bids are created "pending" and never move to another state.
BidStatus = Literal["pending"]


class ApiModel(BaseModel):
    """Base model that speaks camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Task(ApiModel):
    """Task document as stored and returned by the API."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(alias="_id")
    title: str
    category: TaskCategory
    budget: float
    # Kept exactly as submitted, e.g. "2026-10-20" or "2026-10-20T17:00:00Z".
    deadline: str
    description: str
    creator_email: str
    creator_name: str | None = None
    created_at: datetime
    # Only set once an update actually changed a field.
    updated_at: datetime | None = None


class Bid(ApiModel):
    """Bid document as stored and returned by the API."""

    id: str = Field(alias="_id")
    task_id: str
    bidder_email: str
    bidding_amount: float
    bidder_deadline: str | None = None
    comment: str | None = None
    status: BidStatus = "pending"
    bid_placed_at: datetime


class TaskPage(ApiModel):
    """Response body for GET /api/v1/tasks."""

    tasks: list[Task]
    total_tasks: int
    total_pages: int
    current_page: int


class CreateTaskResponse(ApiModel):
    message: str = "Task created successfully"
    task_id: str


class UpdateTaskResponse(ApiModel):
    message: str
    modified_count: int


class CreateBidResponse(ApiModel):
    message: str = "Bid placed successfully"
    bid_id: str


class ErrorResponse(BaseModel):
    """Body returned for every 4xx/5xx produced by the handlers."""

    message: str
    errors: list[str] | None = None
    dev_details: str | None = None
