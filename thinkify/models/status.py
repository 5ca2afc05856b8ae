"""Lifecycle shared by assignments and polls"""
import enum
from datetime import datetime
from typing import Dict, FrozenSet

from sqlalchemy import inspect

from thinkify.core.exceptions import InvalidStatusTransitionError, ValidationError


class ItemStatus(str, enum.Enum):
    """Assignment / poll status"""
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"


# Explicit transitions a creator may request
ALLOWED_TRANSITIONS: Dict[ItemStatus, FrozenSet[ItemStatus]] = {
    ItemStatus.DRAFT: frozenset({ItemStatus.ACTIVE}),
    ItemStatus.ACTIVE: frozenset({ItemStatus.COMPLETED, ItemStatus.EXPIRED}),
    ItemStatus.COMPLETED: frozenset(),
    ItemStatus.EXPIRED: frozenset(),
}


def is_new(obj) -> bool:
    """True until the row has been flushed once"""
    return inspect(obj).key is None


class DeadlineLifecycleMixin:
    """Deadline-driven status for models with ``deadline`` and ``status`` columns"""

    @property
    def is_expired(self) -> bool:
        return self.deadline is not None and datetime.utcnow() > self.deadline

    def refresh_status(self) -> None:
        """active -> expired once the deadline has passed"""
        if self.status == ItemStatus.ACTIVE and self.is_expired:
            self.status = ItemStatus.EXPIRED

    def transition_to(self, new_status) -> None:
        try:
            target = ItemStatus(new_status)
        except ValueError:
            raise ValidationError(f"Invalid status: {new_status}", field="status")
        current = ItemStatus(self.status)
        if target not in ALLOWED_TRANSITIONS[current]:
            raise InvalidStatusTransitionError(current.value, target.value)
        self.status = target

    def validate_deadline(self) -> None:
        if self.deadline is None:
            raise ValidationError("Deadline is required", field="deadline")
        if is_new(self) and self.deadline <= datetime.utcnow():
            raise ValidationError("Deadline must be in the future", field="deadline")

    def touch(self) -> None:
        self.updated_at = datetime.utcnow()
