"""
Shared test helpers
"""
from datetime import datetime, timedelta

from thinkify.core.security import create_user_token

TEST_PASSWORD = 'testpassword123'


def headers_for(user) -> dict:
    """Bearer header for a user"""
    return {'Authorization': f'Bearer {create_user_token(user)}'}


def future(days: int = 7) -> datetime:
    return datetime.utcnow() + timedelta(days=days)


def past(hours: int = 1) -> datetime:
    return datetime.utcnow() - timedelta(hours=hours)
