import math
from sqlalchemy import Column, JSON, Text
from sqlmodel import SQLModel, Field
from typing import Optional, List
from datetime import datetime, timezone
from enum import Enum

class Difficulty(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


def as_utc(value: datetime) -> datetime:
    # Naive datetimes come back from databases that drop the offset; they are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def days_until(deadline: datetime, now: Optional[datetime] = None) -> int:
    """Whole days left before the deadline, rounded up. Zero once it has passed."""
    now = as_utc(now) if now else datetime.now(timezone.utc)
    remaining = (as_utc(deadline) - now).total_seconds() / 86400
    if remaining <= 0:
        return 0
    return math.ceil(remaining)


class Challenge(SQLModel, table=True):
    challenge_id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(max_length=100)
    company: str = Field(index=True, max_length=100)  # Owning company name, matched against Profile.company_name
    company_logo_url: Optional[str] = Field(default=None, max_length=500)
    description: str = Field(max_length=300)
    long_description: str = Field(sa_column=Column(Text, nullable=False))
    difficulty: Difficulty
    deadline: datetime
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    prizes: List[dict] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    submission_requirements: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    evaluation_criteria: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    participants: int = Field(default=0)
    featured: bool = Field(default=False)
    created_by: Optional[int] = Field(default=None, foreign_key="profile.user_id")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    @property
    def is_expired(self) -> bool:
        return as_utc(self.deadline) <= datetime.now(timezone.utc)

    @property
    def days_left(self) -> int:
        return days_until(self.deadline)
