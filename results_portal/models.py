"""SQLModel models for the school results portal."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    """Naive UTC timestamp; every datetime column stores naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Admin(SQLModel, table=True):
    """Administrator account allowed to upload and list results."""

    __table_args__ = (UniqueConstraint("username", name="uq_admin_username"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str
    password_hash: str
    created_at: datetime = Field(default_factory=utcnow)


class ResultRecord(SQLModel, table=True):
    """One uploaded student result file.

    (exam_number, pin) is the student's credential but is not unique; lookups
    prefer the most recently created row.
    """

    id: Optional[int] = Field(default=None, primary_key=True)
    student_name: str
    exam_number: str = Field(index=True)
    pin: str
    file_path: str  # relative to the upload directory
    original_filename: str
    created_at: datetime = Field(default_factory=utcnow)


class AccessGrant(SQLModel, table=True):
    """Time-limited bearer permission to read exactly one ResultRecord."""

    token: str = Field(primary_key=True)
    # Weak reference: no foreign key, a missing record just invalidates the grant
    result_id: int = Field(index=True)
    issued_at: datetime = Field(default_factory=utcnow)
    expires_at: datetime = Field(index=True)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


class AccessLog(SQLModel, table=True):
    """Audit trail of result credential checks."""

    id: Optional[int] = Field(default=None, primary_key=True)
    exam_number: str
    ip_address: Optional[str] = None
    succeeded: bool = Field(default=False)
    accessed_at: datetime = Field(default_factory=utcnow)
