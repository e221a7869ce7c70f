"""Bid resource handler: place bids on tasks and list them."""

from __future__ import annotations

import logging
from typing import Any

from .clock import Clock, format_timestamp, utc_now
from .errors import ForbiddenError, NotFoundError, ValidationError, store_errors
from .models import Bid, CreateBidResponse
from .storage import DESCENDING, DocumentStore
from .tasks import require_task_id
from .validation import parse_bid_create, parse_date_value, require_object_body

logger = logging.getLogger(__name__)


class BidHandler:
    def __init__(self, store: DocumentStore, *, clock: Clock = utc_now) -> None:
        self.store = store
        self.clock = clock

    async def create(self, raw_task_id: str, payload: Any) -> CreateBidResponse:
        """Place a bid on an existing task.

        The task lookup and the insert are separate store calls, so two bids
        arriving together are checked independently of each other.
        """
        task_id = require_task_id(raw_task_id)
        body = require_object_body(payload)

        with store_errors("placing your bid"):
            task = await self.store.tasks.find_one(task_id)
        if task is None:
            raise NotFoundError("Task not found. Cannot place bid.")

        if task.get("creatorEmail") == body.get("bidderEmail"):
            logger.info("bid event=rejected reason=self_bid task_id=%s", task_id)
            raise ForbiddenError("You cannot bid on your own task.")

        now = self.clock()
        deadline = parse_date_value(task.get("deadline"))
        if deadline is not None and now > deadline.moment:
            logger.info("bid event=rejected reason=deadline_passed task_id=%s", task_id)
            raise ForbiddenError("The deadline for bidding on this task has passed.")

        bid_input = parse_bid_create(body)
        document = bid_input.to_document(task_id=task_id, placed_at=format_timestamp(now))
        with store_errors("placing your bid"):
            bid_id = await self.store.bids.insert_one(document)
        logger.info(
            "bid event=placed bid_id=%s task_id=%s bidder=%s amount=%s",
            bid_id,
            task_id,
            bid_input.bidder_email,
            bid_input.bidding_amount,
        )
        return CreateBidResponse(bid_id=bid_id)

    async def list_by_task(self, raw_task_id: str) -> list[Bid]:
        task_id = require_task_id(raw_task_id)
        with store_errors("fetching bids for the task"):
            documents = await self.store.bids.find(
                {"taskId": task_id},
                sort=("bidPlacedAt", DESCENDING),
            )
            return [Bid.model_validate(document) for document in documents]

    async def list_by_bidder(self, bidder_email: str | None) -> list[Bid]:
        if not bidder_email:
            raise ValidationError("bidderEmail query parameter is required.")
        with store_errors("fetching your bids"):
            documents = await self.store.bids.find(
                {"bidderEmail": bidder_email},
                sort=("bidPlacedAt", DESCENDING),
            )
            return [Bid.model_validate(document) for document in documents]
