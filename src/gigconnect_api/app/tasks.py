"""Task resource handler: create, read, update, delete and list tasks."""

from __future__ import annotations

import logging
import math
from typing import Any

from .clock import Clock, format_timestamp, utc_now
from .errors import NotFoundError, ValidationError, store_errors
from .models import CreateTaskResponse, Task, TaskPage, UpdateTaskResponse
from .storage import ASCENDING, DESCENDING, DocumentStore, parse_document_id
from .validation import INVALID_TASK_ID_MESSAGE, parse_task_changes, parse_task_create

logger = logging.getLogger(__name__)

TASK_NOT_FOUND_MESSAGE = "Task not found."


def require_task_id(raw: str) -> str:
    task_id = parse_document_id(raw)
    if task_id is None:
        raise ValidationError(INVALID_TASK_ID_MESSAGE)
    return task_id


def parse_page_param(raw: str | None, *, default: int) -> int:
    """Lenient positive-integer query parameter; anything else means ``default``."""
    if raw is None:
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    return value if value >= 1 else default


class TaskHandler:
    def __init__(
        self,
        store: DocumentStore,
        *,
        clock: Clock = utc_now,
        default_page_size: int = 10,
        featured_limit: int = 6,
    ) -> None:
        self.store = store
        self.clock = clock
        self.default_page_size = default_page_size
        self.featured_limit = featured_limit

    async def create(self, payload: Any) -> CreateTaskResponse:
        now = self.clock()
        task_input = parse_task_create(payload, today=now.date())
        document = task_input.to_document(created_at=format_timestamp(now))
        with store_errors("creating the task"):
            task_id = await self.store.tasks.insert_one(document)
        logger.info(
            "task event=created task_id=%s category=%s creator=%s",
            task_id,
            task_input.category,
            task_input.creator_email,
        )
        return CreateTaskResponse(task_id=task_id)

    async def list_page(self, page: str | None = None, limit: str | None = None) -> TaskPage:
        current_page = parse_page_param(page, default=1)
        page_size = parse_page_param(limit, default=self.default_page_size)
        skip = (current_page - 1) * page_size
        tasks: list[Task] = []
        with store_errors("fetching tasks"):
            total = await self.store.tasks.count()
            # Skip and limit never exceed the row count.
            if skip < total:
                documents = await self.store.tasks.find(
                    sort=("deadline", ASCENDING),
                    skip=skip,
                    limit=min(page_size, total - skip),
                )
                tasks = [Task.model_validate(document) for document in documents]
        return TaskPage(
            tasks=tasks,
            total_tasks=total,
            total_pages=math.ceil(total / page_size),
            current_page=current_page,
        )

    async def list_featured(self) -> list[Task]:
        with store_errors("fetching featured tasks"):
            documents = await self.store.tasks.find(
                sort=("deadline", ASCENDING),
                limit=self.featured_limit,
            )
            return [Task.model_validate(document) for document in documents]

    async def list_by_creator(self, creator_email: str | None) -> list[Task]:
        if not creator_email:
            raise ValidationError("creatorEmail query parameter is required.")
        with store_errors("fetching your posted tasks"):
            documents = await self.store.tasks.find(
                {"creatorEmail": creator_email},
                sort=("createdAt", DESCENDING),
            )
            return [Task.model_validate(document) for document in documents]

    async def get(self, raw_id: str) -> Task:
        task_id = require_task_id(raw_id)
        with store_errors("retrieving the task"):
            document = await self.store.tasks.find_one(task_id)
            if document is None:
                raise NotFoundError(TASK_NOT_FOUND_MESSAGE)
            return Task.model_validate(document)

    async def update(self, raw_id: str, payload: Any) -> UpdateTaskResponse:
        task_id = require_task_id(raw_id)
        now = self.clock()
        changes = parse_task_changes(payload, today=now.date())
        with store_errors("updating the task"):
            result = await self.store.tasks.update_one(
                task_id,
                changes,
                stamp={"updatedAt": format_timestamp(now)},
            )
        if result.matched_count == 0:
            raise NotFoundError(TASK_NOT_FOUND_MESSAGE)
        logger.info(
            "task event=updated task_id=%s fields=%s modified=%s",
            task_id,
            ",".join(sorted(changes)),
            result.modified_count,
        )
        if result.modified_count == 0:
            return UpdateTaskResponse(
                message="Task found but no changes were applied (data might be the same).",
                modified_count=0,
            )
        return UpdateTaskResponse(
            message="Task updated successfully",
            modified_count=result.modified_count,
        )

    async def delete(self, raw_id: str) -> None:
        task_id = require_task_id(raw_id)
        with store_errors("deleting the task"):
            deleted = await self.store.tasks.delete_one(task_id)
        if deleted == 0:
            raise NotFoundError(TASK_NOT_FOUND_MESSAGE)
        logger.info("task event=deleted task_id=%s", task_id)
