from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored datetimes are naive UTC"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class UserSummary(BaseModel):
    """Populated reference to a user"""
    id: str
    full_name: str
    email: str

    class Config:
        from_attributes = True


class StatusUpdate(BaseModel):
    status: str
