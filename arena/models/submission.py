from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime, timezone
from enum import Enum

class SubmissionStatus(str, Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    REJECTED = "rejected"

class SubmissionBase(SQLModel):
    challenge_id: int = Field(foreign_key="challenge.challenge_id", index=True)
    user_id: int = Field(foreign_key="profile.user_id", index=True)
    github_url: str = Field(max_length=500)
    video_url: str = Field(max_length=500)
    presentation_url: str = Field(max_length=500)
    description: Optional[str] = Field(default=None, max_length=2000)
    submitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

class Submission(SubmissionBase, table=True):
    # One submission per user per challenge
    __table_args__ = (
        UniqueConstraint("challenge_id", "user_id", name="uq_submission_challenge_user"),
    )

    submission_id: Optional[int] = Field(default=None, primary_key=True)
    status: SubmissionStatus = Field(default=SubmissionStatus.PENDING, index=True)
    score: Optional[int] = None
    feedback: Optional[str] = Field(default=None, max_length=1000)
    reviewed_at: Optional[datetime] = None

class SubmissionPublic(SubmissionBase):
    submission_id: int
    status: SubmissionStatus
    score: Optional[int]
    feedback: Optional[str]
    reviewed_at: Optional[datetime]
