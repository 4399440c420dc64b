from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime, timezone

class ChallengeParticipantBase(SQLModel):
    challenge_id: int = Field(foreign_key="challenge.challenge_id", index=True)
    user_id: int = Field(foreign_key="profile.user_id", index=True)
    joined_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

class ChallengeParticipant(ChallengeParticipantBase, table=True):
    # One participation per user per challenge
    __table_args__ = (
        UniqueConstraint("challenge_id", "user_id", name="uq_participant_challenge_user"),
    )

    participant_id: Optional[int] = Field(default=None, primary_key=True)

class ChallengeParticipantPublic(ChallengeParticipantBase):
    participant_id: int
