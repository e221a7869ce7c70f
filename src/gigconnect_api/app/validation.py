"""Boundary checks that turn loose JSON bodies into typed handler inputs.

Each ``parse_*`` function either returns a typed input or raises
``ValidationError`` carrying every violation found, in the order a client
would want to fix them.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time
from typing import Any

from .errors import ValidationError
from .models import TASK_CATEGORIES

BODY_NOT_JSON_MESSAGE = (
    "Request body is missing or not in JSON format. Ensure Content-Type is application/json."
)
EMPTY_UPDATE_MESSAGE = "Request body is empty. No update data provided."
INVALID_TASK_ID_MESSAGE = "Invalid Task ID format."

REQUIRED_TASK_FIELDS = ("title", "category", "budget", "deadline", "description", "creatorEmail")
REQUIRED_BID_FIELDS = ("biddingAmount", "bidderEmail")
# Server-assigned fields a client can never write.
RESERVED_TASK_FIELDS = frozenset({"_id", "id", "createdAt", "updatedAt"})
# Owner fields are fixed at creation and stripped from updates.
IMMUTABLE_TASK_FIELDS = frozenset({"creatorEmail", "creatorName"})
_TEXT_TASK_FIELDS = ("title", "description", "creatorEmail")


@dataclass(frozen=True)
class ParsedDate:
    """A client date string resolved to a UTC instant."""

    moment: datetime
    date_only: bool

    @property
    def day(self) -> date:
        return self.moment.date()


@dataclass(frozen=True)
class TaskInput:
    title: str
    category: str
    budget: float | int
    deadline: str
    description: str
    creator_email: str
    creator_name: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_document(self, *, created_at: str) -> dict[str, Any]:
        document: dict[str, Any] = {
            **self.extra,
            "title": self.title,
            "category": self.category,
            "budget": self.budget,
            "deadline": self.deadline,
            "description": self.description,
            "creatorEmail": self.creator_email,
        }
        if self.creator_name is not None:
            document["creatorName"] = self.creator_name
        document["createdAt"] = created_at
        return document


@dataclass(frozen=True)
class BidInput:
    bidder_email: str
    bidding_amount: float
    bidder_deadline: str | None = None
    comment: str | None = None

    def to_document(self, *, task_id: str, placed_at: str) -> dict[str, Any]:
        document: dict[str, Any] = {
            "taskId": task_id,
            "bidderEmail": self.bidder_email,
            "biddingAmount": self.bidding_amount,
        }
        if self.bidder_deadline is not None:
            document["bidderDeadline"] = self.bidder_deadline
        if self.comment is not None:
            document["comment"] = self.comment
        document["status"] = "pending"
        document["bidPlacedAt"] = placed_at
        return document


def parse_date_value(value: Any) -> ParsedDate | None:
    """Parse ``YYYY-MM-DD`` or an ISO-8601 datetime; naive values are read as UTC."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    try:
        day = date.fromisoformat(text)
    except ValueError:
        pass
    else:
        return ParsedDate(moment=datetime.combine(day, time.min, tzinfo=UTC), date_only=True)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        moment = datetime.fromisoformat(text)
    except ValueError:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return ParsedDate(moment=moment.astimezone(UTC), date_only=False)


def is_positive_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        number = float(value)
    except OverflowError:
        return False
    return math.isfinite(number) and number > 0


def require_object_body(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValidationError(BODY_NOT_JSON_MESSAGE)
    return payload


def parse_task_create(payload: Any, *, today: date) -> TaskInput:
    body = require_object_body(payload)
    violations: list[str] = []
    missing = [name for name in REQUIRED_TASK_FIELDS if not body.get(name)]
    if missing:
        violations.append(f"Missing required task fields: {', '.join(missing)}.")
    present = {key: value for key, value in body.items() if key not in missing}
    violations.extend(_task_field_violations(present, today=today))
    if violations:
        raise ValidationError(violations)

    extra = {
        key: value
        for key, value in body.items()
        if key not in RESERVED_TASK_FIELDS
        and key not in REQUIRED_TASK_FIELDS
        and key != "creatorName"
    }
    return TaskInput(
        title=body["title"],
        category=body["category"],
        budget=body["budget"],
        deadline=body["deadline"],
        description=body["description"],
        creator_email=body["creatorEmail"],
        creator_name=body.get("creatorName"),
        extra=extra,
    )


def parse_task_changes(payload: Any, *, today: date) -> dict[str, Any]:
    """Validate a partial update and drop the fields clients may not change."""
    if not isinstance(payload, dict) or not payload:
        raise ValidationError(EMPTY_UPDATE_MESSAGE)
    changes = {
        key: value
        for key, value in payload.items()
        if key not in RESERVED_TASK_FIELDS and key not in IMMUTABLE_TASK_FIELDS
    }
    violations = _task_field_violations(changes, today=today)
    if violations:
        raise ValidationError(violations)
    return changes


def parse_bid_create(payload: dict[str, Any]) -> BidInput:
    violations: list[str] = []
    missing = [name for name in REQUIRED_BID_FIELDS if not payload.get(name)]
    if missing:
        violations.append(f"Missing required bid fields: {', '.join(missing)}.")

    amount = payload.get("biddingAmount")
    if "biddingAmount" not in missing and not is_positive_number(amount):
        violations.append("Bidding amount must be a positive number.")

    bidder_email = payload.get("bidderEmail")
    if "bidderEmail" not in missing and not isinstance(bidder_email, str):
        violations.append("bidderEmail must be a string.")

    bidder_deadline = payload.get("bidderDeadline")
    if bidder_deadline and parse_date_value(bidder_deadline) is None:
        violations.append("Bidder deadline must be a valid date format if provided.")

    comment = payload.get("comment")
    if comment is not None and not isinstance(comment, str):
        violations.append("Comment must be a string if provided.")

    if violations:
        raise ValidationError(violations)
    return BidInput(
        bidder_email=bidder_email,
        bidding_amount=float(amount),
        bidder_deadline=bidder_deadline or None,
        comment=comment,
    )


def _task_field_violations(fields: dict[str, Any], *, today: date) -> list[str]:
    """Type/range checks for whichever known task fields are present."""
    violations: list[str] = []
    if "budget" in fields and not is_positive_number(fields["budget"]):
        violations.append("Budget must be a positive number.")
    if "category" in fields and fields["category"] not in TASK_CATEGORIES:
        violations.append(
            f"Invalid category. Allowed categories are: {', '.join(TASK_CATEGORIES)}."
        )
    if "deadline" in fields:
        parsed = parse_date_value(fields["deadline"])
        if parsed is None or parsed.day < today:
            violations.append("Deadline must be a valid date and set to a future date.")
    for name in _TEXT_TASK_FIELDS:
        if name in fields and not isinstance(fields[name], str):
            violations.append(f"{name} must be a string.")
    if fields.get("creatorName") is not None and not isinstance(fields["creatorName"], str):
        violations.append("creatorName must be a string.")
    return violations
